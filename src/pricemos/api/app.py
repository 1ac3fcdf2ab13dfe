"""HTTP surface: cache-aside JSON routes over the aggregation pipelines."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from aiohttp import web

from ..cache import (
    CHAINS_KEY,
    TOKENS_KEY,
    apr_key,
    balance_key,
    chain_key,
    lp_key,
    price_key,
)
from ..domain import ChainStatus
from ..errors import ChainUnsupported, InvalidAddressFormat, PricingUnavailable
from ..logger import get_logger
from ..pipeline import run_apr, run_balance, run_pools
from ..report import to_jsonable
from ..settings import PricemosSettings
from ..state import AppState

logger = get_logger(__name__)

STATE_KEY = web.AppKey("state", AppState)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _json(body: Any, status: int = 200) -> web.Response:
    return web.json_response(to_jsonable(body), status=status)


def _state(request: web.Request) -> AppState:
    return request.app[STATE_KEY]


def _requested_chains(request: web.Request, state: AppState) -> str:
    """Raw ``chains`` query value, defaulting to the configured chain set."""
    return request.query.get("chains") or ",".join(state.settings.default_chains)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Turn any residual exception into a generic ``{error: true}`` body."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return _json({"error": True}, status=500)


async def balance_handler(request: web.Request) -> web.Response:
    state = _state(request)
    cache = state.cache_required
    address = request.match_info["address"]
    chains = _requested_chains(request, state)
    key = balance_key(address, chains)

    cached = await cache.get_json(key)
    if cached and cached.get("balances"):
        return _json(cached)

    try:
        report = await run_balance(state, address, chains.split(","))
    except InvalidAddressFormat as exc:
        logger.info("Rejected balance request: %s", exc)
        return _json({"error": "Invalid address"}, status=400)

    body = report.to_dict()
    body["chains"] = chains
    # Entries with a fully failed chain are served but not cached.
    if all(chain.status != ChainStatus.FAILED for chain in report.balances.chains):
        await cache.set_json(key, state.settings.cache_ttl_balance, body)
    return _json(body)


async def lp_handler(request: web.Request) -> web.Response:
    state = _state(request)
    cache = state.cache_required
    address = request.match_info["address"]
    key = lp_key(address)

    cached = await cache.get_json(key)
    if cached is not None:
        return _json(cached)

    chains = request.query.get("chains")
    try:
        positions = await run_pools(state, address, chains.split(",") if chains else None)
    except InvalidAddressFormat as exc:
        logger.info("Rejected lp request: %s", exc)
        return _json({"error": "Invalid address"}, status=400)

    await cache.set_json(key, state.settings.cache_ttl_lp, positions)
    return _json(positions)


async def _chain_listing(state: AppState) -> dict[str, Any]:
    cache = state.cache_required
    listing = await cache.get_json(CHAINS_KEY)
    if listing is None:
        listing = await state.registry.listing()
        await cache.set_json(CHAINS_KEY, state.settings.cache_ttl_chains, listing)
    return listing


async def apr_handler(request: web.Request) -> web.Response:
    state = _state(request)
    cache = state.cache_required
    chain = request.match_info["chain"]
    key = apr_key(chain)

    cached = await cache.get_json(key)
    if cached is not None:
        return _json({"apr": cached})

    if chain not in await _chain_listing(state):
        return _json({"error": "Chain is not supported"})
    try:
        apr = await run_apr(state, chain)
    except ChainUnsupported:
        return _json({"error": "Chain is not supported"})

    await cache.set_json(key, state.settings.cache_ttl_apr, apr)
    return _json({"apr": apr})


async def price_handler(request: web.Request) -> web.Response:
    state = _state(request)
    cache = state.cache_required
    coingecko_id = request.match_info.get("id", "").strip()
    if not coingecko_id:
        return _json({"no": "price"})
    key = price_key(coingecko_id)

    cached = await cache.get_json(key)
    if cached:
        return _json(cached)

    try:
        quote = await state.prices.get_price(coingecko_id)
    except PricingUnavailable as exc:
        return _json({"error": str(exc)}, status=503)

    await cache.set_json(key, state.settings.cache_ttl_price, quote)
    return _json(quote)


async def chains_handler(request: web.Request) -> web.Response:
    state = _state(request)
    cache = state.cache_required
    names = [name for name in _requested_chains(request, state).split(",") if name]

    cached = [await cache.get_json(chain_key(name)) for name in names]
    if names and all(entry is not None for entry in cached):
        return _json(cached)

    profiles, failures = await state.registry.resolve(names)
    for name, reason in failures.items():
        logger.info("Chain '%s' omitted from listing: %s", name, reason)
    for profile in profiles:
        await cache.set_json(chain_key(profile.name), state.settings.cache_ttl_chains, profile)
    return _json(profiles)


async def tokens_handler(request: web.Request) -> web.Response:
    state = _state(request)
    cache = state.cache_required

    cached = await cache.get_json(TOKENS_KEY)
    if cached is not None:
        return _json(cached)

    tokens = await state.registry.tokens()
    await cache.set_json(TOKENS_KEY, state.settings.cache_ttl_tokens, tokens)
    return _json(tokens)


async def health_handler(request: web.Request) -> web.Response:
    return _json({"status": "ok"})


async def _state_ctx(app: web.Application) -> AsyncIterator[None]:
    state = app[STATE_KEY]
    await state.startup()
    yield
    await state.close()


def create_app(settings: PricemosSettings, state: AppState | None = None) -> web.Application:
    """Build the aiohttp application.

    Args:
        settings: Service configuration
        state: Optional pre-built state (for testing); created from
            ``settings`` otherwise

    Returns:
        Application whose startup connects the cache and whose cleanup closes
        every long-lived client.
    """
    app = web.Application(middlewares=[error_middleware])
    app[STATE_KEY] = state or AppState.create(settings, get_logger("pricemos"))
    app.cleanup_ctx.append(_state_ctx)
    app.router.add_get("/balance/{address}", balance_handler)
    app.router.add_get("/lp/{address}", lp_handler)
    app.router.add_get("/apr/{chain}", apr_handler)
    app.router.add_get("/price", price_handler)
    app.router.add_get("/price/", price_handler)
    app.router.add_get("/price/{id}", price_handler)
    app.router.add_get("/chains", chains_handler)
    app.router.add_get("/tokens", tokens_handler)
    app.router.add_get("/health", health_handler)
    return app


def run_server(settings: PricemosSettings) -> None:
    logger.info("Serving on %s:%d", settings.host, settings.port)
    web.run_app(create_app(settings), host=settings.host, port=settings.port, print=None)
