"""Access-control entries for `chmod`."""

from __future__ import annotations

from typing import Any, Mapping

from core.domain import keys
from core.domain.models import ACLEntry, PermissionLevel
from core.services.key_resolver import as_object, optional, require


def acl_from_object(item: Mapping[str, Any]) -> ACLEntry:
    owner = require(item, keys.OWNER)
    level = PermissionLevel.parse(require(item, keys.LEVEL))
    # No zone means the account's home zone; the catalog client fills it in.
    return ACLEntry(owner=owner, level=level, zone=optional(item, keys.ZONE))


def compile_acl_entries(document: Mapping[str, Any], logger: Any = None) -> list[ACLEntry]:
    """Decode the mandatory `access` array; every entry needs an owner and a level."""

    raw = require(document, keys.ACCESS)
    entries = [acl_from_object(as_object(item, where=keys.ACCESS.canonical)) for item in raw]
    if logger is not None:
        logger.debug("extracted access entries", count=len(entries))
    return entries
