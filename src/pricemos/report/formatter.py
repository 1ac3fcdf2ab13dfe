"""Rich console formatter for balance reports."""

from __future__ import annotations

from decimal import Decimal

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from ..domain import ChainStatus
from .generator import BalanceReport

_STATUS_STYLES = {
    ChainStatus.OK: "green",
    ChainStatus.PARTIAL: "yellow",
    ChainStatus.FAILED: "red",
    ChainStatus.UNSUPPORTED: "dim",
}


def _format_amount(amount: Decimal) -> str:
    """Format a display-unit amount with up to 6 decimals."""
    return f"{amount:,.6f}"


def _truncate_address(address: str | None) -> str:
    if not address:
        return "-"
    return f"{address[:12]}...{address[-6:]}"


def _bucket_rows(report: BalanceReport) -> list[tuple[str, str, Decimal]]:
    totals = report.balances
    rows: list[tuple[str, str, Decimal]] = []
    for bucket, values in (
        ("foreign", totals.foreign),
        ("staked", totals.staked),
        ("rewards", totals.rewards),
        ("pool_locked", totals.pool_locked),
        ("pools", totals.pools),
    ):
        rows.extend((bucket, denom, amount) for denom, amount in sorted(values.items()))
    return rows


def format_balance_table(report: BalanceReport, console: Console | None = None) -> None:
    """Print the per-chain breakdown and cross-chain totals to stdout.

    Args:
        report: The balance report to format
        console: Optional console (for testing)
    """
    console = console or Console()

    chain_table = Table(expand=True)
    chain_table.add_column("Chain", style="cyan", no_wrap=True)
    chain_table.add_column("Address", style="dim")
    chain_table.add_column("Native", justify="right")
    chain_table.add_column("Status")
    chain_table.add_column("Errors", style="red")
    for chain in report.balances.chains:
        style = _STATUS_STYLES[chain.status]
        errors = "; ".join(f"{part}: {msg}" for part, msg in chain.errors.items())
        if chain.unresolved:
            errors = "; ".join(filter(None, [errors, f"unresolved: {len(chain.unresolved)}"]))
        chain_table.add_row(
            chain.name,
            _truncate_address(chain.address),
            _format_amount(chain.native),
            f"[{style}]{chain.status.value}[/]",
            errors or "-",
        )

    total_table = Table(expand=True)
    total_table.add_column("Denom", style="cyan", no_wrap=True)
    total_table.add_column("Total", justify="right", style="green")
    for denom, amount in sorted(report.balances.total.items()):
        total_table.add_row(denom, _format_amount(amount))

    bucket_table = Table(expand=True)
    bucket_table.add_column("Bucket", style="dim")
    bucket_table.add_column("Denom", style="cyan", no_wrap=True)
    bucket_table.add_column("Amount", justify="right")
    for bucket, denom, amount in _bucket_rows(report):
        bucket_table.add_row(bucket, denom, _format_amount(amount))

    panels = [
        Panel(chain_table, title="[bold]Chains[/]", border_style="blue"),
        Panel(total_table, title="[bold]Totals[/]", border_style="green"),
        Panel(bucket_table, title="[bold]Buckets[/]", border_style="cyan"),
    ]
    if report.pools:
        pool_table = Table(expand=True)
        pool_table.add_column("Pair", style="cyan", no_wrap=True)
        pool_table.add_column("Denom", style="dim")
        pool_table.add_column("Shares", justify="right")
        pool_table.add_column("Implied price", justify="right", style="green")
        for position in report.pools:
            pool_table.add_row(
                position.pair_symbol,
                position.denom,
                _format_amount(position.amount),
                _format_amount(position.implied_price),
            )
        panels.append(Panel(pool_table, title="[bold]Pools[/]", border_style="magenta"))

    outer_panel = Panel(
        Group(*panels),
        title=f"[bold white]Balances for {report.address}[/]",
        border_style="white",
        padding=(1, 2),
    )

    console.print()
    console.print(outer_panel)
    console.print()
