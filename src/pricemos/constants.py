"""Endpoint and denomination constants."""

import re

DEFAULT_DIRECTORY_URL = "https://chains.cosmos.directory"
DEFAULT_RPC_PROXY_URL = "https://rpc.cosmos.directory"
DEFAULT_REST_PROXY_URL = "https://rest.cosmos.directory"
DEFAULT_PRICE_API_URL = "https://api.coingecko.com/api/v3"
DEFAULT_MARKET_API_URL = "https://api-osmosis.imperator.co"
DEFAULT_SIFCHAIN_APR_URL = "https://data.sifchain.finance/beta/validator/stakingRewards"

PRICE_CURRENCIES = ("usd", "cad", "eur")

# Cosmos SDK gRPC-gateway routes
BANK_BALANCES_PATH = "/cosmos/bank/v1beta1/balances/{address}"
BANK_SUPPLY_PATH = "/cosmos/bank/v1beta1/supply/by_denom"
STAKING_DELEGATIONS_PATH = "/cosmos/staking/v1beta1/delegations/{address}"
STAKING_POOL_PATH = "/cosmos/staking/v1beta1/pool"
DISTRIBUTION_REWARDS_PATH = "/cosmos/distribution/v1beta1/delegators/{address}/rewards"
MINT_INFLATION_PATH = "/cosmos/mint/v1beta1/inflation"
IBC_DENOM_TRACE_PATH = "/ibc/apps/transfer/v1/denom_traces/{hash}"
IBC_DENOM_PATH = "/ibc/apps/transfer/v1/denoms/{hash}"

# Osmosis-specific routes
OSMOSIS_LOCKED_COINS_PATH = "/osmosis/lockup/v1beta1/account_locked_coins/{address}"
OSMOSIS_MINT_PARAMS_PATH = "/osmosis/mint/v1beta1/params"
OSMOSIS_EPOCHS_PATH = "/osmosis/epochs/v1beta1/epochs"
OSMOSIS_EPOCH_PROVISIONS_PATH = "/osmosis/mint/v1beta1/epoch_provisions"

IBC_DENOM_PATTERN = re.compile(r"^ibc/(?P<hash>[0-9A-Fa-f]+)$")

POOL_SHARE_PREFIX = "gamm/pool/"
POOL_SHARE_EXPONENT = 18

SECONDS_PER_YEAR = 365 * 24 * 3600
