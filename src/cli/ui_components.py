"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Los diagnósticos van a una consola en stderr: stdout solo lleva la salida JSON.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from core.errors import BatonError


def build_error_panel(error: BatonError) -> Panel:
    """Panel describing a classified failure (category, message, progress)."""

    title = Text(type(error).__name__, style="bold red")
    body = Text()
    body.append(error.message.strip() + "\n")
    body.append(f"\nCategory: {error.category.value}", style="dim")

    code = getattr(error, "code", None)
    if code is not None:
        body.append(f"\nCatalog error code: {code}", style="dim")

    if error.progress is not None:
        body.append(f"\nApplied before failure: {error.progress.applied}", style="yellow")
        last = error.progress.last_applied
        if last is not None:
            label = getattr(last, "attribute", None) or getattr(last, "owner", None) or str(last)
            body.append(f"\nLast applied: {label}", style="yellow")

    return Panel(body, title=title, border_style="red")


def print_failure(console: Console, error: BatonError) -> None:
    console.print(build_error_panel(error))
