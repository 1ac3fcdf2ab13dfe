"""CLI entrypoint for pricemos."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer

from .errors import InvalidAddressFormat
from .logger import setup_logging
from .report import BalanceReport, format_balance_table
from .settings import PricemosSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Multi-chain Cosmos balance aggregation service.",
)


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("pricemos")


def _load_settings(ctx: typer.Context, **overrides: Any) -> PricemosSettings:
    """Build settings from the global options plus command-level overrides."""
    init_kwargs: dict[str, Any] = dict(ctx.obj or {})
    init_kwargs.update({key: value for key, value in overrides.items() if value is not None})
    settings = PricemosSettings(**init_kwargs)
    setup_logging(settings.log_level)
    return settings


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [pricemos] table).",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Load configuration shared by every command."""
    if config_path:
        os.environ["PRICEMOS_CONFIG"] = str(config_path)

    ctx.obj = {}
    if log_level is not None:
        ctx.obj["log_level"] = log_level.upper()

    if show_config:
        settings = _load_settings(ctx)
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[
        str | None, typer.Option("--host", help="Interface to bind the HTTP server to.")
    ] = None,
    port: Annotated[
        int | None, typer.Option("--port", "-p", help="Port of the HTTP server.")
    ] = None,
):
    """Run the HTTP service."""
    settings = _load_settings(ctx, host=host, port=port)

    from .api import run_server

    run_server(settings)


@app.command()
def balance(
    ctx: typer.Context,
    address: Annotated[str, typer.Argument(help="Source bech32 address (any prefix).")],
    chains: Annotated[
        str | None,
        typer.Option(
            "--chains",
            help="Comma-separated chain names; defaults to the configured default_chains.",
        ),
    ] = None,
    output: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format."),
    ] = OutputFormat.TABLE,
):
    """Aggregate balances once, without the HTTP server or cache."""
    settings = _load_settings(ctx)
    state = AppState.create(settings, _build_logger(), with_cache=False)
    chain_names = chains.split(",") if chains else list(settings.default_chains)

    from .pipeline import run_balance

    async def _run() -> BalanceReport:
        try:
            return await run_balance(state, address, chain_names)
        finally:
            await state.close()

    try:
        report = asyncio.run(_run())
    except InvalidAddressFormat as exc:
        raise typer.BadParameter(str(exc), param_hint="ADDRESS") from exc

    if output is OutputFormat.JSON:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    else:
        format_balance_table(report)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
