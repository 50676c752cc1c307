"""AVU extraction and metadata query compilation.

Every AVU in the filter list contributes exactly two conditions, ANDed with
the rest: an equality on the attribute-name column and an operator-qualified
condition on the attribute-value column. Units are never a predicate. The
columns depend on the target class (collection metadata and data-object
metadata live in different columns), and so do the selected columns used to
rebuild a result path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from core.domain import keys
from core.domain.models import (
    AVUDescriptor,
    CatalogColumn,
    MetaQueryRequest,
    QueryCondition,
    QueryOperator,
    TargetClass,
)
from core.services.key_resolver import as_object, optional, require, resolve_field


@dataclass(frozen=True)
class QueryColumns:
    attribute: CatalogColumn
    value: CatalogColumn
    select: tuple[CatalogColumn, ...]
    result_keys: tuple[str, ...]


QUERY_COLUMNS: dict[TargetClass, QueryColumns] = {
    TargetClass.COLLECTION: QueryColumns(
        attribute=CatalogColumn.META_COLL_ATTR_NAME,
        value=CatalogColumn.META_COLL_ATTR_VALUE,
        select=(CatalogColumn.COLL_NAME,),
        result_keys=(keys.COLLECTION.canonical,),
    ),
    TargetClass.DATA_OBJECT: QueryColumns(
        attribute=CatalogColumn.META_DATA_ATTR_NAME,
        value=CatalogColumn.META_DATA_ATTR_VALUE,
        select=(CatalogColumn.COLL_NAME, CatalogColumn.DATA_NAME),
        result_keys=(keys.COLLECTION.canonical, keys.DATA_OBJECT.canonical),
    ),
}


def avu_from_object(item: Mapping[str, Any]) -> AVUDescriptor:
    """Build a descriptor from one element of the `avus` array.

    Only the attribute is mandatory here; whether a value is required depends
    on the operation and is checked by the caller.
    """

    return AVUDescriptor(
        attribute=require(item, keys.ATTRIBUTE),
        value=optional(item, keys.VALUE, ""),
        units=optional(item, keys.UNITS, ""),
        operator=QueryOperator.parse(optional(item, keys.OPERATOR)),
    )


def extract_avus(
    document: Mapping[str, Any],
    *,
    required: bool = False,
    logger: Any = None,
) -> list[AVUDescriptor]:
    """Decode the `avus` array.

    When `required` is False an absent key yields an empty list.
    """

    if required:
        raw = require(document, keys.AVUS)
    else:
        resolved = resolve_field(document, keys.AVUS)
        raw = resolved.value if resolved.found else []

    avus = [avu_from_object(as_object(item, where=keys.AVUS.canonical)) for item in raw]
    if logger is not None:
        logger.debug("extracted avus", count=len(avus))
    return avus


def compile_conditions(
    avus: Iterable[AVUDescriptor],
    columns: QueryColumns,
) -> list[QueryCondition]:
    conditions: list[QueryCondition] = []
    for avu in avus:
        conditions.append(
            QueryCondition(column=columns.attribute, operator=QueryOperator.EQ, value=avu.attribute)
        )
        conditions.append(QueryCondition(column=columns.value, operator=avu.operator, value=avu.value))
    return conditions


def compile_query(
    avus: Sequence[AVUDescriptor],
    target_class: TargetClass,
    zone: str,
    logger: Any = None,
) -> MetaQueryRequest:
    """Compile an AVU filter list into a query against one target class.

    An empty list compiles to a query without metadata conditions (it matches
    every entry of the class); whether that is acceptable is decided by the
    router's configured policy.
    """

    columns = QUERY_COLUMNS[target_class]
    request = MetaQueryRequest(
        target_class=target_class,
        zone=zone,
        select_columns=list(columns.select),
        result_keys=list(columns.result_keys),
        conditions=compile_conditions(avus, columns),
    )
    if logger is not None:
        logger.debug(
            "compiled metadata query",
            target_class=target_class.value,
            zone=zone,
            conditions=[(c.column.name, c.predicate) for c in request.conditions],
        )
    return request
