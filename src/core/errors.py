"""Errores tipados del Core.

Por qué una jerarquía:
- Cada fallo lleva una categoría, así la CLI lo reporta sin parsear mensajes.
- El resultado benigno "sin filas" de una consulta se distingue de un fallo
  real del colaborador por un código estructurado, nunca comparando texto.

Los errores se lanzan y se propagan intactos por resolvers, compiladores y
el router; solo `cli.main` los convierte en código de salida.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

# General-query error code returned by the catalog when nothing matched.
CAT_NO_ROWS_FOUND = -808000


class ErrorCategory(str, Enum):
    """Classification used for reporting and exit handling."""

    MISSING_KEY = "missing_key"
    MISSING_ARGUMENT = "missing_argument"
    INVALID_ARGUMENT = "invalid_argument"
    CATALOG_EMPTY = "catalog_empty"
    COLLABORATOR = "collaborator"


@dataclass(frozen=True)
class BatchProgress:
    """What a fail-fast loop managed to apply before it stopped."""

    applied: int
    last_applied: Any = None

    def to_dict(self) -> dict[str, Any]:
        last = self.last_applied
        if hasattr(last, "model_dump"):
            last = last.model_dump(mode="json")
        return {"applied": self.applied, "last_applied": last}


class BatonError(Exception):
    """Base class for every classified failure."""

    default_category = ErrorCategory.INVALID_ARGUMENT

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause
        self.progress: BatchProgress | None = None
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> "BatonError":
        self.context.update(kwargs)
        return self

    def with_progress(self, progress: BatchProgress) -> "BatonError":
        self.progress = progress
        return self

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "error_type": type(self).__name__,
            "category": self.category.value,
            "message": self.message,
        }
        if self.context:
            out["context"] = self.context
        if self.progress is not None:
            out["progress"] = self.progress.to_dict()
        if self.cause is not None:
            out["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return out

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class MissingKeyError(BatonError):
    """A field required by the active operation is absent from the document."""

    default_category = ErrorCategory.MISSING_KEY

    def __init__(self, key: str, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message or f"no {key} key found", **kwargs)
        self.key = key
        self.context.setdefault("key", key)


class MissingArgumentError(BatonError):
    """A required external input (flag, environment variable, file) was not supplied."""

    default_category = ErrorCategory.MISSING_ARGUMENT


class InvalidArgumentError(BatonError):
    """A supplied value is structurally or semantically wrong."""

    default_category = ErrorCategory.INVALID_ARGUMENT


class CatalogEmptyError(BatonError):
    """A catalog query matched zero rows."""

    default_category = ErrorCategory.CATALOG_EMPTY

    def __init__(self, message: str = "no rows found", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.code = CAT_NO_ROWS_FOUND


class CollaboratorFailure(BatonError):
    """Any failure reported by the external catalog client, passed through verbatim."""

    default_category = ErrorCategory.COLLABORATOR

    def __init__(self, message: str, *, code: int | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.code = code
        if code is not None:
            self.context.setdefault("code", code)


def is_catalog_empty(exc: BaseException) -> bool:
    """True when `exc` is the benign "no rows found" outcome of a query."""

    if isinstance(exc, CatalogEmptyError):
        return True
    return isinstance(exc, CollaboratorFailure) and exc.code == CAT_NO_ROWS_FOUND
