"""Cross-chain balance aggregation for one source address."""

from __future__ import annotations

import asyncio

from ..adapters.pool_valuators import get_valuator_class
from ..addresses import decode_address, derive_addresses
from ..clients.chain import ChainQueryClient
from ..concurrency import settle_all
from ..domain import ChainProfile, ChainResult, DerivedAddress, PoolPosition
from ..errors import ChainUnsupported
from ..processors import ChainAggregator, totalize
from ..report import BalanceReport, generate_report
from ..state import AppState
from .clients import close_clients, make_chain_client
from .context import BalanceContext


def normalize_chain_names(chain_names: list[str]) -> list[str]:
    """Strip blanks and duplicates, keeping first-seen order."""
    return list(dict.fromkeys(name.strip() for name in chain_names if name.strip()))


def build_exponent_table(
    profiles: list[ChainProfile], overrides: dict[str, int]
) -> dict[str, int]:
    """Base denom -> exponent lookup used to scale bridged coins.

    Each enabled chain contributes its native denom; configured overrides win.
    """
    table = {profile.native_denom: profile.decimal_exponent for profile in profiles}
    table.update(overrides)
    return table


async def resolve_chains(ctx: BalanceContext) -> None:
    """Validate the source address and resolve the requested chains.

    Raises:
        InvalidAddressFormat: If the source address is not valid bech32.
    """
    decode_address(ctx.address)
    profiles, failures = await ctx.state.registry.resolve(ctx.chain_names)
    ctx.profiles = profiles
    ctx.failures = failures
    ctx.derived = derive_addresses(ctx.address, profiles)
    ctx.state.logger.debug(
        "Resolved %d of %d chains for %s",
        len(profiles),
        len(ctx.chain_names),
        ctx.address,
    )


async def _value_pools(
    ctx: BalanceContext, derived: DerivedAddress, client: ChainQueryClient
) -> list[PoolPosition]:
    try:
        valuator_cls = get_valuator_class(derived.chain_name)
    except ValueError as exc:
        ctx.state.logger.warning("Skipping pool valuation: %s", exc)
        return []
    valuator = valuator_cls(ctx.state.settings, ctx.state.runner)
    return await valuator.value_positions(derived.address, client)


def _pool_target(ctx: BalanceContext) -> DerivedAddress | None:
    s = ctx.state.settings
    if not s.include_pools_in_balance:
        return None
    return next((d for d in ctx.derived_required if d.chain_name == s.amm_chain), None)


async def collect_balances(ctx: BalanceContext) -> None:
    """Aggregate every derived address concurrently and join by chain name."""
    s = ctx.state.settings
    log = ctx.state.logger

    aggregator = ChainAggregator(
        ctx.state.runner,
        build_exponent_table(ctx.profiles_required, s.denom_exponents),
    )
    clients = {
        derived.chain_name: make_chain_client(s, derived.chain_profile)
        for derived in ctx.derived_required
    }
    pool_target = _pool_target(ctx)

    async def _no_pools() -> list[PoolPosition]:
        return []

    try:
        settled, pool_positions = await asyncio.gather(
            settle_all(
                (derived.chain_name, aggregator.aggregate(derived, clients[derived.chain_name]))
                for derived in ctx.derived_required
            ),
            _value_pools(ctx, pool_target, clients[pool_target.chain_name])
            if pool_target is not None
            else _no_pools(),
        )
    finally:
        await close_clients(clients.values())

    snapshots = dict(settled.succeeded)
    errors: dict[str, str] = {}
    for chain_name, exc in settled.failed:
        log.error("Aggregation failed for chain '%s': %s", chain_name, exc)
        errors[chain_name] = str(exc) or type(exc).__name__

    by_name = {derived.chain_name: derived for derived in ctx.derived_required}
    results: list[ChainResult] = []
    for name in dict.fromkeys(ctx.chain_names):
        derived = by_name.get(name)
        if derived is None:
            failure = ctx.failures.get(name)
            results.append(
                ChainResult(
                    name=name,
                    error=str(failure) if failure is not None else None,
                    metadata_failed=failure is not None
                    and not isinstance(failure, ChainUnsupported),
                )
            )
            continue
        results.append(
            ChainResult(
                name=name,
                profile=derived.chain_profile,
                address=derived.address,
                snapshot=snapshots.get(name),
                error=errors.get(name),
            )
        )

    ctx.results = results
    ctx.pool_positions = pool_positions


async def build_totals(ctx: BalanceContext) -> None:
    total = totalize(ctx.results_required, ctx.pool_positions)
    ctx.report = generate_report(ctx.address, total, ctx.chain_names, ctx.pool_positions)


async def run_balance(
    state: AppState, address: str, chain_names: list[str]
) -> BalanceReport:
    """Execute the balance pipeline.

    This is a thin orchestrator that sequences the pipeline steps:
    1. Address validation and chain resolution
    2. Per-chain aggregation (plus pool valuation on the AMM chain)
    3. Cross-chain totalization

    Args:
        state: Application state containing settings, registry and runner
        address: Source bech32 address, any prefix
        chain_names: Chains to aggregate, in the order of the breakdown

    Returns:
        The balance report. Unsupported or failing chains appear in the
        breakdown with a status marker and contribute zero.

    Raises:
        InvalidAddressFormat: If the source address is not valid bech32.
    """
    log = state.logger
    log.info("Starting balance aggregation for %s on %s", address, ",".join(chain_names))

    ctx = BalanceContext(
        state=state, address=address, chain_names=normalize_chain_names(chain_names)
    )
    await resolve_chains(ctx)
    await collect_balances(ctx)
    await build_totals(ctx)

    report = ctx.report_required
    statuses = {chain.name: chain.status.value for chain in report.balances.chains}
    log.info("Balance aggregation completed for %s: %s", address, statuses)
    return report
