"""Shared fixtures: a recording fake catalog and a capturing logger."""

from __future__ import annotations

import io
import logging
from contextlib import contextmanager
from typing import Any, Iterator

import pytest
import structlog
from structlog.testing import LogCapture

from core.domain.models import (
    ACLEntry,
    CatalogColumn,
    CatalogPath,
    LocalPath,
    MetaQueryRequest,
    TargetClass,
    TransferResult,
)


class FakeSession:
    """In-memory `CatalogSession` that records every call.

    `failures` maps a method name to an exception raised on the n-th call
    (`(exc, call_index)`), `rows` maps a target class to the rows (or the
    exception) returned by `run_query`.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.failures: dict[str, tuple[BaseException, int]] = {}
        self.rows: dict[TargetClass, Any] = {}
        self.queries: list[MetaQueryRequest] = []
        self.locked = False
        self.lock_events: list[str] = []
        self.closed = False
        self._counts: dict[str, int] = {}

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        self.locked = True
        self.lock_events.append("acquire")
        try:
            yield
        finally:
            self.locked = False
            self.lock_events.append("release")

    def _record(self, name: str, *args: Any) -> None:
        index = self._counts.get(name, 0)
        self._counts[name] = index + 1
        failure = self.failures.get(name)
        if failure is not None and failure[1] == index:
            raise failure[0]
        self.calls.append((name, *args, self.locked))

    def upload(self, local: LocalPath, remote: CatalogPath, *, checksum: bool = False) -> TransferResult:
        self._record("upload", local, remote, checksum)
        return TransferResult(local_path=local.path, remote_path=remote.path)

    def download(self, remote: CatalogPath, local: LocalPath) -> TransferResult:
        self._record("download", remote, local)
        return TransferResult(local_path=local.path, remote_path=remote.path)

    def add_metadata(self, path: CatalogPath, attribute: str, value: str, units: str = "") -> None:
        self._record("add_metadata", path.path, attribute, value, units)

    def delete_metadata_by_name(self, path: CatalogPath, attribute: str) -> None:
        self._record("delete_metadata_by_name", path.path, attribute)

    def change_access(self, path: CatalogPath, entry: ACLEntry, *, recursive: bool = False) -> None:
        self._record("change_access", path.path, entry.owner, entry.level.value, recursive)

    def run_query(self, request: MetaQueryRequest) -> list[dict[CatalogColumn, str]]:
        self.queries.append(request)
        self._record("run_query", request.target_class)
        outcome = self.rows.get(request.target_class, [])
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeClient:
    def __init__(self, session: FakeSession) -> None:
        self.session = session
        self.connects = 0

    def connect(self, account: Any) -> FakeSession:
        self.connects += 1
        return self.session


@pytest.fixture
def log_capture() -> LogCapture:
    return LogCapture()


@pytest.fixture
def logger(log_capture: LogCapture) -> Any:
    return structlog.wrap_logger(
        structlog.PrintLogger(file=io.StringIO()),
        processors=[log_capture],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(session: FakeSession) -> FakeClient:
    return FakeClient(session)
