"""Cliente de catálogo sobre python-irodsclient.

Implementa `core.interfaces.catalog.CatalogClient` / `CatalogSession`.

Por qué un adaptador:
- Mantiene el Core libre del SDK de iRODS: el router solo ve rutas tipadas,
  AVUs, entradas ACL y consultas compiladas.
- Traduce las excepciones del SDK a `CollaboratorFailure` (conservando el
  código de error de iRODS) para que la CLI las reporte como cualquier otro fallo.

Transferencias:
- fichero -> data object / fichero -> colección (queda en `colección/<nombre>`);
- directorio -> colección replica el árbol dentro de la colección;
- data object -> fichero / data object -> directorio (queda en `dir/<nombre>`);
- colección -> directorio replica el árbol dentro del directorio.
"""

from __future__ import annotations

import os
import posixpath
import threading
from contextlib import contextmanager
from typing import Any, Iterator

import irods.keywords as kw
from irods.access import iRODSAccess
from irods.column import Criterion
from irods.exception import CAT_NO_ROWS_FOUND, iRODSException
from irods.meta import iRODSMeta
from irods.models import Collection, CollectionMeta, DataObject, DataObjectMeta
from irods.session import iRODSSession

from core.app_info import APP_NAME
from core.config import CatalogAccount
from core.domain.models import (
    ACLEntry,
    CatalogColumn,
    CatalogPath,
    LocalPath,
    MetaQueryRequest,
    TransferResult,
)
from core.errors import CatalogEmptyError, CollaboratorFailure

COLUMN_MAP = {
    CatalogColumn.COLL_NAME: Collection.name,
    CatalogColumn.DATA_NAME: DataObject.name,
    CatalogColumn.META_COLL_ATTR_NAME: CollectionMeta.name,
    CatalogColumn.META_COLL_ATTR_VALUE: CollectionMeta.value,
    CatalogColumn.META_DATA_ATTR_NAME: DataObjectMeta.name,
    CatalogColumn.META_DATA_ATTR_VALUE: DataObjectMeta.value,
}


@contextmanager
def catalog_errors(action: str, path: str) -> Iterator[None]:
    """Translate SDK and local I/O failures into Core errors."""

    try:
        yield
    except CAT_NO_ROWS_FOUND as exc:
        raise CatalogEmptyError(context={"action": action, "path": path}, cause=exc) from exc
    except iRODSException as exc:
        raise CollaboratorFailure(
            f"{action} failed for {path}: {type(exc).__name__} {exc}".rstrip(),
            code=getattr(exc, "code", None),
            context={"action": action, "path": path},
            cause=exc,
        ) from exc
    except OSError as exc:
        raise CollaboratorFailure(
            f"{action} failed for {path}: {exc}",
            context={"action": action, "path": path},
            cause=exc,
        ) from exc


def _raise_walk_error(error: OSError) -> None:
    raise error


def _model_for(path: CatalogPath) -> Any:
    return Collection if path.is_collection else DataObject


class IRODSCatalogSession:
    """One iRODS session plus the lock that serialises request sequences."""

    def __init__(self, session: iRODSSession, *, zone: str = "", logger: Any = None) -> None:
        self._session = session
        self._zone = zone
        self._logger = logger
        self._lock = threading.RLock()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        with self._lock:
            yield

    def _debug(self, event: str, **kwargs: Any) -> None:
        if self._logger is not None:
            self._logger.debug(event, **kwargs)

    # Transfers

    def upload(self, local: LocalPath, remote: CatalogPath, *, checksum: bool = False) -> TransferResult:
        options: dict[str, Any] = {}
        if checksum:
            options[kw.REG_CHKSUM_KW] = ""

        with self._lock, catalog_errors("upload", remote.path):
            if not local.is_directory:
                target = remote.path
                if remote.is_collection:
                    target = posixpath.join(remote.path, local.name)
                self._session.data_objects.put(local.path, target, **options)
                return TransferResult(local_path=local.path, remote_path=target, items=1)

            items = 0
            for dirpath, _dirnames, filenames in os.walk(local.path, onerror=_raise_walk_error):
                relative = os.path.relpath(dirpath, local.path)
                collection = remote.path
                if relative != os.curdir:
                    collection = posixpath.join(remote.path, *relative.split(os.sep))
                if not self._session.collections.exists(collection):
                    self._session.collections.create(collection)
                for filename in sorted(filenames):
                    target = posixpath.join(collection, filename)
                    self._session.data_objects.put(os.path.join(dirpath, filename), target, **options)
                    self._debug("uploaded file", local=os.path.join(dirpath, filename), remote=target)
                    items += 1
            return TransferResult(local_path=local.path, remote_path=remote.path, items=items)

    def download(self, remote: CatalogPath, local: LocalPath) -> TransferResult:
        options = {kw.FORCE_FLAG_KW: ""}

        with self._lock, catalog_errors("download", remote.path):
            if not remote.is_collection:
                target = local.path
                if local.is_directory:
                    target = os.path.join(local.path, remote.name)
                self._session.data_objects.get(remote.path, target, **options)
                return TransferResult(local_path=target, remote_path=remote.path, items=1)

            items = 0
            root = self._session.collections.get(remote.path)
            for collection, _subcollections, data_objects in root.walk():
                relative = posixpath.relpath(collection.path, remote.path)
                directory = local.path
                if relative != posixpath.curdir:
                    directory = os.path.join(local.path, *relative.split("/"))
                os.makedirs(directory, exist_ok=True)
                for data_object in data_objects:
                    target = os.path.join(directory, data_object.name)
                    self._session.data_objects.get(data_object.path, target, **options)
                    self._debug("downloaded data object", remote=data_object.path, local=target)
                    items += 1
            return TransferResult(local_path=local.path, remote_path=remote.path, items=items)

    # Metadata and permissions

    def add_metadata(self, path: CatalogPath, attribute: str, value: str, units: str = "") -> None:
        with self._lock, catalog_errors("add metadata", path.path):
            self._session.metadata.add(_model_for(path), path.path, iRODSMeta(attribute, value, units or None))

    def delete_metadata_by_name(self, path: CatalogPath, attribute: str) -> None:
        model = _model_for(path)
        with self._lock, catalog_errors("delete metadata", path.path):
            for avu in self._session.metadata.get(model, path.path):
                if avu.name == attribute:
                    self._session.metadata.remove(model, path.path, avu)

    def change_access(self, path: CatalogPath, entry: ACLEntry, *, recursive: bool = False) -> None:
        acl = iRODSAccess(entry.level.value, path.path, entry.owner, entry.zone or self._zone)
        with self._lock, catalog_errors("change access", path.path):
            self._session.acls.set(acl, recursive=recursive and path.is_collection)

    # Queries

    def run_query(self, request: MetaQueryRequest) -> list[dict[CatalogColumn, str]]:
        selected = [COLUMN_MAP[column] for column in request.select_columns]
        criteria = [
            Criterion(condition.operator.value, COLUMN_MAP[condition.column], condition.value)
            for condition in request.conditions
        ]

        with self._lock, catalog_errors("metadata query", request.target_class.value):
            query = self._session.query(*selected)
            if criteria:
                query = query.filter(*criteria)
            if request.zone:
                query = query.add_keyword(kw.ZONE_KW, request.zone)
            rows = [
                {column: str(row[COLUMN_MAP[column]]) for column in request.select_columns}
                for row in query
            ]
        self._debug("query returned rows", target_class=request.target_class.value, rows=len(rows))
        return rows

    def close(self) -> None:
        self._session.cleanup()


class IRODSCatalogClient:
    """Opens `IRODSCatalogSession`s from a `CatalogAccount`."""

    def __init__(self, logger: Any = None) -> None:
        self._logger = logger

    def connect(self, account: CatalogAccount) -> IRODSCatalogSession:
        with catalog_errors("connect", account.host or str(account.environment_file)):
            if account.password is None:
                session = iRODSSession(irods_env_file=str(account.environment_file))
            else:
                # No auth file: build the account from the environment values.
                session = iRODSSession(
                    password=account.password.get_secret_value(),
                    **account.environment,
                )
        if self._logger is not None:
            self._logger.debug(
                "catalog session opened",
                host=account.host,
                zone=account.zone,
                client=APP_NAME,
            )
        return IRODSCatalogSession(session, zone=account.zone, logger=self._logger)
