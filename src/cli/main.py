"""CLI principal (Typer).

Cada subcomando lee un objeto JSON de stdin y se lo pasa a
`core.services.operation_router.OperationRouter`. Typer valida las opciones
antes de leer stdin. Este módulo es el único sitio donde un error
clasificado se convierte en código de salida.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from typing_extensions import Annotated

from adapters.irods_client import IRODSCatalogClient
from adapters.json_exporter import export_results_json
from cli.ui_components import print_failure
from core.app_info import APP_NAME, __version__
from core.config import AppSettings, load_account
from core.domain.models import MetaOperation, OperationOutcome
from core.errors import BatonError
from core.logging import LogLevel, configure_logging
from core.services.key_resolver import parse_document
from core.services.operation_router import OperationRouter

EXIT_FAILURE = 1
EXIT_IO_ERROR = 74

app = typer.Typer(
    name=APP_NAME,
    help="Run catalog operations described by a JSON document read from stdin.",
    no_args_is_help=True,
    add_completion=False,
)

_console = Console(stderr=True)


@dataclass
class CLIState:
    log_level: LogLevel = LogLevel.INFO


def version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: Annotated[
        LogLevel,
        typer.Option("--log-level", case_sensitive=False, help="Set the log level."),
    ] = LogLevel.INFO,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit."),
    ] = None,
) -> None:
    ctx.obj = CLIState(log_level=log_level)


def _fail(logger: Any, error: BatonError) -> NoReturn:
    logger.error("operation failed", **error.to_dict())
    print_failure(_console, error)
    raise typer.Exit(code=EXIT_FAILURE)


def _execute(ctx: typer.Context, command: str, **options: Any) -> OperationOutcome:
    state: CLIState = ctx.obj or CLIState()
    logger = configure_logging(state.log_level)

    try:
        text = sys.stdin.read()
    except OSError as exc:
        logger.error("failed to read stdin", error=str(exc))
        raise typer.Exit(code=EXIT_IO_ERROR) from exc

    try:
        document = parse_document(text)
        settings = AppSettings()
        account = load_account(settings, logger)
        router = OperationRouter(
            IRODSCatalogClient(logger),
            account,
            logger,
            home_zone=account.zone,
            empty_avu_filter=settings.empty_avu_filter,
        )
        return router.route(command, document, **options)
    except BatonError as exc:
        _fail(logger, exc)


@app.command()
def put(
    ctx: typer.Context,
    checksum: Annotated[bool, typer.Option("--checksum", help="Register a checksum on upload.")] = False,
) -> None:
    """Upload files to the catalog."""

    _execute(ctx, "put", checksum=checksum)


@app.command()
def get(ctx: typer.Context) -> None:
    """Download data objects or collections from the catalog."""

    _execute(ctx, "get")


@app.command()
def chmod(
    ctx: typer.Context,
    recurse: Annotated[bool, typer.Option("--recurse", help="Apply to a collection recursively.")] = False,
) -> None:
    """Change permissions on a collection or data object."""

    _execute(ctx, "chmod", recurse=recurse)


@app.command()
def metamod(
    ctx: typer.Context,
    operation: Annotated[
        str,
        typer.Option("--operation", help="Operation to perform. One of [add, rem]."),
    ],
) -> None:
    """Alter metadata on data objects or collections."""

    try:
        parsed = MetaOperation.parse(operation)
    except BatonError as exc:
        state: CLIState = ctx.obj or CLIState()
        _fail(configure_logging(state.log_level), exc)
    _execute(ctx, "metamod", operation=parsed)


@app.command()
def metaquery(
    ctx: typer.Context,
    zone: Annotated[
        str,
        typer.Option("--zone", help="Zone in which to perform the query (default: home zone)."),
    ] = "",
    collection: Annotated[bool, typer.Option("--collection", help="Query collection metadata.")] = False,
    data_object: Annotated[bool, typer.Option("--object", help="Query data object metadata.")] = False,
) -> None:
    """Query data object or collection metadata; prints a JSON array."""

    outcome = _execute(ctx, "metaquery", zone=zone or None, collections=collection, objects=data_object)
    export_results_json(results=outcome.result or [], stream=sys.stdout)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
