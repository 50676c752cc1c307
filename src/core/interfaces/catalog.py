"""Contratos del cliente de catálogo.

Por qué Protocol:
- El Core compila y valida peticiones; conectar, transferir bytes y ejecutar
  consultas es cosa de un cliente concreto (ver `adapters.irods_client`).
- Los tests usan un fake que registra llamadas sin tocar el router.

Contrato de errores para implementaciones:
- cualquier fallo del cliente se lanza como `core.errors.CollaboratorFailure`,
  conservando el código numérico del catálogo cuando lo hay;
- una consulta sin coincidencias puede devolver cero filas o lanzar
  `core.errors.CatalogEmptyError`.
"""

from __future__ import annotations

from typing import Any, ContextManager, Protocol, runtime_checkable

from core.domain.models import (
    ACLEntry,
    CatalogColumn,
    CatalogPath,
    LocalPath,
    MetaQueryRequest,
    TransferResult,
)


@runtime_checkable
class CatalogSession(Protocol):
    """An open connection to the catalog."""

    def exclusive(self) -> ContextManager[None]:
        """Hold the connection for a sequence of requests.

        Released on every exit path, including when a request in the
        sequence fails.
        """

        ...

    def upload(self, local: LocalPath, remote: CatalogPath, *, checksum: bool = False) -> TransferResult:
        ...

    def download(self, remote: CatalogPath, local: LocalPath) -> TransferResult:
        ...

    def add_metadata(self, path: CatalogPath, attribute: str, value: str, units: str = "") -> None:
        ...

    def delete_metadata_by_name(self, path: CatalogPath, attribute: str) -> None:
        ...

    def change_access(self, path: CatalogPath, entry: ACLEntry, *, recursive: bool = False) -> None:
        ...

    def run_query(self, request: MetaQueryRequest) -> list[dict[CatalogColumn, str]]:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class CatalogClient(Protocol):
    def connect(self, account: Any) -> CatalogSession:
        ...
