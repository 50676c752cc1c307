"""Salida JSON de `metaquery`.

Por qué JSON:
- Las herramientas estilo baton leen el resultado de stdout y lo parsean.
- La salida es siempre un array (`[]` si no hubo coincidencias), nunca `null`.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, TextIO


def export_results_json(*, results: Iterable[dict[str, Any]], stream: TextIO) -> None:
    """Write the merged result rows as a single JSON array and a newline."""

    payload = list(results)
    stream.write(json.dumps(payload, ensure_ascii=False) + "\n")
    stream.flush()
