"""Resolución de claves del documento JSON.

El documento de entrada es un mapping sin tipos cuyos campos pueden venir con
la clave canónica o con un alias corto. `resolve` busca un campo y decodifica
su valor a la forma pedida; la ausencia es un resultado normal (`found=False`)
y solo se convierte en `MissingKeyError` cuando el llamador exige el campo
(`require`).

La decodificación trabaja sobre el valor JSON: números y booleanos pedidos
como string vuelven en su forma de texto JSON (`5`, `true`), mientras que
contenedores pedidos como string, o escalares pedidos como lista/objeto, son
un `InvalidArgumentError`. Un `null` JSON cuenta exactamente como clave ausente.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from core.domain.keys import FieldSpec
from core.errors import InvalidArgumentError, MissingKeyError


@dataclass(frozen=True)
class ResolvedField:
    key: str
    value: Any
    found: bool


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _decode(key: str, value: Any, shape: type) -> Any:
    if shape is str:
        if isinstance(value, str):
            return value
        if isinstance(value, (bool, int, float)):
            return json.dumps(value)
    elif shape is list:
        if isinstance(value, list):
            return list(value)
    elif shape is dict:
        if isinstance(value, dict):
            return dict(value)
    else:
        raise TypeError(f"unsupported shape {shape!r}")

    raise InvalidArgumentError(
        f"value of {key!r} must be a JSON {_shape_name(shape)}, got {type(value).__name__}",
        context={"key": key},
    )


def _shape_name(shape: type) -> str:
    return {str: "string", list: "array", dict: "object"}.get(shape, shape.__name__)


def resolve(
    document: Mapping[str, Any],
    canonical_key: str,
    short_key: str | None = None,
    *,
    shape: type = str,
) -> ResolvedField:
    """Look up `canonical_key`, falling back to `short_key` when absent or empty."""

    for key in (canonical_key, short_key):
        if not key:
            continue
        raw = document.get(key)
        if _is_empty(raw):
            continue
        return ResolvedField(key=key, value=_decode(key, raw, shape), found=True)
    return ResolvedField(key=canonical_key, value=None, found=False)


def resolve_field(document: Mapping[str, Any], spec: FieldSpec) -> ResolvedField:
    return resolve(document, spec.canonical, spec.short, shape=spec.shape)


def require(document: Mapping[str, Any], spec: FieldSpec) -> Any:
    """Return the decoded value of a mandatory field or raise `MissingKeyError`."""

    resolved = resolve_field(document, spec)
    if not resolved.found:
        raise MissingKeyError(spec.canonical)
    return resolved.value


def optional(document: Mapping[str, Any], spec: FieldSpec, default: Any = None) -> Any:
    resolved = resolve_field(document, spec)
    return resolved.value if resolved.found else default


def parse_document(text: str) -> dict[str, Any]:
    """Decode the single JSON object read from stdin."""

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidArgumentError(f"failed to decode JSON input: {exc}", cause=exc) from exc
    if not isinstance(document, dict):
        raise InvalidArgumentError(
            f"JSON input must be an object, got {type(document).__name__}",
        )
    return document


def as_object(item: Any, *, where: str) -> dict[str, Any]:
    """Validate that an array element is a JSON object."""

    if not isinstance(item, dict):
        raise InvalidArgumentError(
            f"each element of {where!r} must be a JSON object, got {type(item).__name__}",
            context={"key": where},
        )
    return item
