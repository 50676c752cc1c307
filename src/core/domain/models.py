"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core al cliente del catálogo ni a la CLI.
- Todo valor construido a partir del documento JSON de entrada termina aquí,
  así que el resto del código nunca ve un string sin validar.

Nota:
- Estos modelos describen *qué* es una petición al catálogo, no *cómo* se envía.
"""

from __future__ import annotations

import posixpath
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.errors import InvalidArgumentError, MissingArgumentError


class CatalogKind(str, Enum):
    """Kind of node addressed in the remote catalog."""

    COLLECTION = "collection"
    DATA_OBJECT = "data_object"


class LocalKind(str, Enum):
    """Kind of node addressed on the local filesystem."""

    DIRECTORY = "directory"
    FILE = "file"


class CatalogPath(BaseModel):
    """A normalized remote path and the kind of node it names."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Cleaned, slash-separated catalog path.")
    kind: CatalogKind = Field(..., description="Collection (container) or data object (leaf).")

    @property
    def is_collection(self) -> bool:
        return self.kind is CatalogKind.COLLECTION

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)


class LocalPath(BaseModel):
    """Local side of a transfer: a directory, or a file inside one."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Cleaned local path.")
    kind: LocalKind = Field(..., description="Directory or file.")

    @property
    def is_directory(self) -> bool:
        return self.kind is LocalKind.DIRECTORY

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)


class QueryOperator(str, Enum):
    """Comparison operators accepted for AVU value conditions."""

    EQ = "="
    NE = "<>"
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    LIKE = "like"
    NOT_LIKE = "not like"

    @classmethod
    def parse(cls, raw: str | None) -> "QueryOperator":
        if raw is None or not raw.strip():
            return cls.EQ
        normalized = " ".join(raw.strip().lower().split())
        try:
            return cls(normalized)
        except ValueError:
            allowed = ", ".join(op.value for op in cls)
            raise InvalidArgumentError(
                f"unsupported operator {raw!r} (expected one of: {allowed})",
                context={"operator": raw},
            ) from None


class AVUDescriptor(BaseModel):
    """One attribute/value/units triple, plus the operator used when querying.

    `value` may be empty: it is mandatory only when adding metadata, and that
    rule is enforced per item by the mutation dispatcher.
    """

    model_config = ConfigDict(frozen=True)

    attribute: str = Field(..., min_length=1, description="Attribute name.")
    value: str = Field(default="", description="Attribute value (empty when not supplied).")
    units: str = Field(default="", description="Optional units.")
    operator: QueryOperator = Field(default=QueryOperator.EQ, description="Value comparison operator.")

    @field_validator("operator", mode="before")
    @classmethod
    def _parse_operator(cls, value: Any) -> QueryOperator:
        if isinstance(value, QueryOperator):
            return value
        return QueryOperator.parse(value)


class PermissionLevel(str, Enum):
    """Access levels understood by the catalog."""

    NULL = "null"
    READ = "read"
    WRITE = "write"
    OWN = "own"

    @classmethod
    def parse(cls, raw: str) -> "PermissionLevel":
        try:
            return cls(raw.strip().lower())
        except ValueError:
            allowed = ", ".join(level.value for level in cls)
            raise InvalidArgumentError(
                f"unsupported permission level {raw!r} (expected one of: {allowed})",
                context={"level": raw},
            ) from None


class ACLEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1, description="User or group receiving the permission.")
    zone: str | None = Field(
        default=None,
        description="Owner zone; None means the account's home zone.",
    )
    level: PermissionLevel


class TargetClass(str, Enum):
    """Which kind of catalog entry a metadata query runs against."""

    COLLECTION = "collection"
    DATA_OBJECT = "data_object"


class CatalogColumn(int, Enum):
    """General-query column numbers used by metadata queries."""

    DATA_NAME = 403
    COLL_NAME = 501
    META_DATA_ATTR_NAME = 600
    META_DATA_ATTR_VALUE = 601
    META_COLL_ATTR_NAME = 610
    META_COLL_ATTR_VALUE = 611


class QueryCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: CatalogColumn
    operator: QueryOperator = QueryOperator.EQ
    value: str = ""

    @property
    def predicate(self) -> str:
        """Condition text as the catalog expects it, e.g. `= 'project'`."""

        return f"{self.operator.value} '{self.value}'"


class MetaQueryRequest(BaseModel):
    """A compiled metadata query against one target class.

    Requests for collections and for data objects are always built and run
    separately.
    """

    target_class: TargetClass
    zone: str = Field(default="", description="Zone the query is scoped to (keyword, not a condition).")
    select_columns: list[CatalogColumn] = Field(default_factory=list)
    result_keys: list[str] = Field(
        default_factory=list,
        description="JSON key for each selected column, in the same order.",
    )
    conditions: list[QueryCondition] = Field(default_factory=list)

    def to_result(self, row: dict[CatalogColumn, str]) -> dict[str, str]:
        """Map one returned row onto the JSON result keys."""

        return {key: row.get(column, "") for column, key in zip(self.select_columns, self.result_keys)}


class MetaOperation(str, Enum):
    """Metadata mutation requested by `metamod --operation`."""

    ADD = "add"
    REMOVE = "rem"

    @classmethod
    def parse(cls, raw: str | None) -> "MetaOperation":
        value = (raw or "").strip().lower()
        if value == "remove":
            return cls.REMOVE
        try:
            return cls(value)
        except ValueError:
            raise MissingArgumentError(
                f"operation argument must be {cls.ADD.value} or {cls.REMOVE.value}, got {raw!r}",
                context={"operation": raw},
            ) from None


class TransferResult(BaseModel):
    local_path: str
    remote_path: str
    items: int = Field(default=1, ge=0, description="Number of files/data objects transferred.")


class OperationOutcome(BaseModel):
    """Success marker returned by every router handler.

    Failures are raised as `core.errors.BatonError` instead of being encoded
    here.
    """

    command: str
    result: TransferResult | list[dict[str, str]] | None = None
    applied: int | None = Field(default=None, description="Items applied by batch operations.")
