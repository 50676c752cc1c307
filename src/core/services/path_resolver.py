"""Catalog and local path assembly.

A document names a catalog entry with a collection fragment and an optional
data-object fragment, and a local entry with a directory fragment and an
optional file fragment. The second fragment decides the kind: without it the
target is a collection / directory.

This module only reports the kind. Checking that a pair of kinds makes sense
for an operation belongs to the router.
"""

from __future__ import annotations

import os
import posixpath
from typing import Any, Mapping

from core.domain import keys
from core.domain.models import CatalogKind, CatalogPath, LocalKind, LocalPath
from core.services.key_resolver import require, resolve_field


def clean_catalog_path(path: str) -> str:
    """Collapse repeated separators and `.`/`..` segments, drop trailing slashes."""

    cleaned = posixpath.normpath(path)
    # normpath keeps a leading "//" (POSIX allows it); catalog paths never use it.
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def clean_local_path(path: str) -> str:
    cleaned = os.path.normpath(path)
    if os.sep == "/" and cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def resolve_catalog_path(document: Mapping[str, Any], logger: Any = None) -> CatalogPath:
    collection = require(document, keys.COLLECTION)

    data_object = resolve_field(document, keys.DATA_OBJECT)
    if not data_object.found:
        if logger is not None:
            logger.debug("no data object key in input document", collection=collection)
        return CatalogPath(path=clean_catalog_path(collection), kind=CatalogKind.COLLECTION)

    return CatalogPath(
        path=clean_catalog_path(f"{collection}/{data_object.value}"),
        kind=CatalogKind.DATA_OBJECT,
    )


def resolve_local_path(document: Mapping[str, Any], logger: Any = None) -> LocalPath:
    directory = require(document, keys.DIRECTORY)

    file_name = resolve_field(document, keys.FILE)
    if not file_name.found:
        if logger is not None:
            logger.debug("no file key in input document", directory=directory)
        return LocalPath(path=clean_local_path(directory), kind=LocalKind.DIRECTORY)

    return LocalPath(
        path=clean_local_path(f"{directory}/{file_name.value}"),
        kind=LocalKind.FILE,
    )
