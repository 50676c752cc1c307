"""Operation routing: one handler per CLI subcommand.

Every handler follows the same shape:
1. resolve the fields it needs from the document (missing -> MissingKey);
2. check cross-field rules (path kinds that cannot go together ->
   InvalidArgument), before any connection is opened;
3. open one session and call the relevant catalog capability, holding the
   connection exclusively when several requests are issued in a row;
4. return an `OperationOutcome`, or let the classified error propagate.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from core.config import EmptyFilterPolicy
from core.domain.models import (
    CatalogPath,
    LocalPath,
    MetaOperation,
    MetaQueryRequest,
    OperationOutcome,
    TargetClass,
)
from core.errors import BatchProgress, BatonError, InvalidArgumentError, is_catalog_empty
from core.interfaces.catalog import CatalogClient, CatalogSession
from core.services import metadata_dispatcher
from core.services.acl_compiler import compile_acl_entries
from core.services.avu_compiler import compile_query, extract_avus
from core.services.path_resolver import resolve_catalog_path, resolve_local_path


def check_upload_paths(local: LocalPath, remote: CatalogPath) -> None:
    if local.is_directory and not remote.is_collection:
        raise InvalidArgumentError(
            "a directory may not be uploaded onto a single data-object path",
            context={"local": local.path, "remote": remote.path},
        )


def check_download_paths(remote: CatalogPath, local: LocalPath) -> None:
    if remote.is_collection and not local.is_directory:
        raise InvalidArgumentError(
            "a collection may not be downloaded into a single local file path",
            context={"local": local.path, "remote": remote.path},
        )


class OperationRouter:
    """Entry point of the Core for `put`, `get`, `chmod`, `metamod` and `metaquery`."""

    COMMANDS = ("put", "get", "chmod", "metamod", "metaquery")

    def __init__(
        self,
        client: CatalogClient,
        account: Any,
        logger: Any,
        *,
        home_zone: str = "",
        empty_avu_filter: EmptyFilterPolicy = EmptyFilterPolicy.MATCH_ALL,
    ) -> None:
        self._client = client
        self._account = account
        self._logger = logger
        self._home_zone = home_zone
        self._empty_avu_filter = empty_avu_filter

    @contextmanager
    def _session(self) -> Iterator[CatalogSession]:
        session = self._client.connect(self._account)
        try:
            yield session
        finally:
            session.close()

    def route(self, command: str, document: Mapping[str, Any], **options: Any) -> OperationOutcome:
        if command not in self.COMMANDS:
            raise InvalidArgumentError(
                f"unknown operation {command!r}",
                context={"operation": command},
            )
        handler = getattr(self, command)
        return handler(document, **options)

    def put(self, document: Mapping[str, Any], *, checksum: bool = False) -> OperationOutcome:
        log = self._logger.bind(command="put")
        remote = resolve_catalog_path(document, log)
        local = resolve_local_path(document, log)
        check_upload_paths(local, remote)

        log.info("uploading", local=local.path, remote=remote.path, checksum=checksum)
        with self._session() as session:
            result = session.upload(local, remote, checksum=checksum)
        log.debug("uploaded", local=result.local_path, remote=result.remote_path, items=result.items)
        return OperationOutcome(command="put", result=result)

    def get(self, document: Mapping[str, Any]) -> OperationOutcome:
        log = self._logger.bind(command="get")
        remote = resolve_catalog_path(document, log)
        local = resolve_local_path(document, log)
        check_download_paths(remote, local)

        log.info("downloading", remote=remote.path, local=local.path)
        with self._session() as session:
            result = session.download(remote, local)
        log.debug("downloaded", remote=result.remote_path, local=result.local_path, items=result.items)
        return OperationOutcome(command="get", result=result)

    def chmod(self, document: Mapping[str, Any], *, recurse: bool = False) -> OperationOutcome:
        log = self._logger.bind(command="chmod")
        remote = resolve_catalog_path(document, log)
        entries = compile_acl_entries(document, log)

        recursive = recurse and remote.is_collection
        if recurse and not recursive:
            log.debug("recurse ignored for a data object", path=remote.path)

        applied = 0
        with self._session() as session, session.exclusive():
            for entry in entries:
                try:
                    session.change_access(remote, entry, recursive=recursive)
                except BatonError as exc:
                    exc.with_progress(
                        BatchProgress(applied=applied, last_applied=entries[applied - 1] if applied else None)
                    )
                    raise
                applied += 1
                log.debug(
                    "changed permissions",
                    path=remote.path,
                    owner=entry.owner,
                    zone=entry.zone,
                    level=entry.level.value,
                    recursive=recursive,
                )
        return OperationOutcome(command="chmod", applied=applied)

    def metamod(self, document: Mapping[str, Any], *, operation: MetaOperation | str) -> OperationOutcome:
        log = self._logger.bind(command="metamod")
        if not isinstance(operation, MetaOperation):
            operation = MetaOperation.parse(operation)
        remote = resolve_catalog_path(document, log)
        avus = extract_avus(document, required=True, logger=log)
        if not avus:
            log.warning("empty avus list, nothing to do", path=remote.path)
            return OperationOutcome(command="metamod", applied=0)

        log.info(
            "modifying metadata",
            operation=operation.value,
            path=remote.path,
            attributes=[avu.attribute for avu in avus],
        )
        with self._session() as session:
            applied = metadata_dispatcher.apply(operation, remote, avus, session, log)
        return OperationOutcome(command="metamod", applied=applied)

    def metaquery(
        self,
        document: Mapping[str, Any],
        *,
        zone: str | None = None,
        collections: bool = False,
        objects: bool = False,
    ) -> OperationOutcome:
        log = self._logger.bind(command="metaquery")
        if not collections and not objects:
            # same default as baton: query both classes
            collections = objects = True

        avus = extract_avus(document, logger=log)
        if not avus and self._empty_avu_filter is EmptyFilterPolicy.REJECT:
            raise InvalidArgumentError("metaquery needs at least one AVU in 'avus'")

        zone = zone or self._home_zone
        targets: list[TargetClass] = []
        if collections:
            targets.append(TargetClass.COLLECTION)
        if objects:
            targets.append(TargetClass.DATA_OBJECT)
        requests = [compile_query(avus, target, zone, log) for target in targets]

        results: list[dict[str, str]] = []
        with self._session() as session, session.exclusive():
            for request in requests:
                results.extend(self._run_query(session, request, log))
        log.debug("metaquery finished", results=len(results))
        return OperationOutcome(command="metaquery", result=results)

    @staticmethod
    def _run_query(session: CatalogSession, request: MetaQueryRequest, log: Any) -> list[dict[str, str]]:
        target = request.target_class.value
        try:
            rows = session.run_query(request)
        except BatonError as exc:
            if not is_catalog_empty(exc):
                raise
            rows = []
        if not rows:
            log.info("no entries found with metadata", target_class=target, zone=request.zone)
            return []
        return [request.to_result(row) for row in rows]
