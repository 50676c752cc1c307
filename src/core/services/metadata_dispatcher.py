"""Batch metadata mutation (`metamod`).

Items are applied one at a time and the first failure stops the batch.
Items applied before the failure stay applied: the catalog has no
multi-AVU transaction. The raised error keeps its own type and carries a
`BatchProgress` with how many items were applied and which one was last.
"""

from __future__ import annotations

from typing import Any, Sequence

from core.domain.models import AVUDescriptor, CatalogPath, MetaOperation
from core.errors import BatchProgress, BatonError, MissingKeyError
from core.interfaces.catalog import CatalogSession


def apply_one(
    operation: MetaOperation,
    path: CatalogPath,
    avu: AVUDescriptor,
    session: CatalogSession,
    logger: Any,
) -> None:
    if operation is MetaOperation.ADD:
        # value is mandatory for additions only
        if not avu.value:
            raise MissingKeyError(
                "value",
                f"no value key found for attribute {avu.attribute!r}",
                context={"attribute": avu.attribute},
            )
        session.add_metadata(path, avu.attribute, avu.value, avu.units)
        logger.debug(
            "added metadata",
            path=path.path,
            attribute=avu.attribute,
            value=avu.value,
            units=avu.units,
        )
        return

    session.delete_metadata_by_name(path, avu.attribute)
    logger.debug("removed metadata", path=path.path, attribute=avu.attribute)


def apply(
    operation: MetaOperation,
    path: CatalogPath,
    avus: Sequence[AVUDescriptor],
    session: CatalogSession,
    logger: Any,
) -> int:
    """Apply every descriptor in order and return how many were applied."""

    applied = 0
    last: AVUDescriptor | None = None
    with session.exclusive():
        for avu in avus:
            try:
                apply_one(operation, path, avu, session, logger)
            except BatonError as exc:
                exc.with_progress(BatchProgress(applied=applied, last_applied=last))
                logger.error(
                    "metadata batch stopped",
                    operation=operation.value,
                    path=path.path,
                    failed_attribute=avu.attribute,
                    applied=applied,
                    error=exc.message,
                )
                raise
            applied += 1
            last = avu
    return applied
