"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import tomllib

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    DEFAULT_DIRECTORY_URL,
    DEFAULT_MARKET_API_URL,
    DEFAULT_PRICE_API_URL,
    DEFAULT_REST_PROXY_URL,
    DEFAULT_RPC_PROXY_URL,
    DEFAULT_SIFCHAIN_APR_URL,
)

load_dotenv()


class PricemosSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with PRICEMOS_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- http server ---
    host: str = "0.0.0.0"
    port: int = 5001

    # --- cache ---
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl_chains: int = Field(default=86400, gt=0)
    cache_ttl_apr: int = Field(default=86400, gt=0)
    cache_ttl_price: int = Field(default=1800, gt=0)
    cache_ttl_lp: int = Field(default=3600, gt=0)
    cache_ttl_balance: int = Field(default=3600, gt=0)
    cache_ttl_tokens: int = Field(default=86400, gt=0)

    # --- upstream endpoints ---
    directory_url: str = DEFAULT_DIRECTORY_URL
    rpc_proxy_url: str = DEFAULT_RPC_PROXY_URL
    rest_proxy_url: str = DEFAULT_REST_PROXY_URL
    price_api_url: str = DEFAULT_PRICE_API_URL
    market_api_url: str = DEFAULT_MARKET_API_URL
    sifchain_apr_url: str = DEFAULT_SIFCHAIN_APR_URL

    # --- query behaviour ---
    request_timeout: float = Field(default=10.0, gt=0)
    query_retries: int = Field(default=2, ge=0)
    max_concurrent_queries: int = Field(default=16, gt=0)
    query_delay: float = Field(default=0.0, ge=0)
    query_jitter: float = Field(default=0.0, ge=0)
    pagination_limit: int = Field(default=200, gt=0)
    chain_profile_ttl: float = Field(default=3600.0, gt=0)

    # --- chains and denominations ---
    default_chains: list[str] = Field(default_factory=lambda: ["cosmoshub"])
    reward_denom_offsets: dict[str, int] = Field(default_factory=dict)
    denom_exponents: dict[str, int] = Field(default_factory=dict)
    amm_chain: str = "osmosis"
    include_pools_in_balance: bool = True

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="PRICEMOS_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("reward_denom_offsets", "denom_exponents")
    @classmethod
    def validate_non_negative_exponents(cls, v: dict[str, int]) -> dict[str, int]:
        negative = {key: value for key, value in v.items() if value < 0}
        if negative:
            raise ValueError(f"Exponents must be non-negative: {negative}")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def normalize_urls(self) -> "PricemosSettings":
        """Strip trailing slashes so paths can be appended uniformly."""
        for name in (
            "directory_url",
            "rpc_proxy_url",
            "rest_proxy_url",
            "price_api_url",
            "market_api_url",
        ):
            setattr(self, name, getattr(self, name).rstrip("/"))
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("PRICEMOS_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    # Try default locations
                    local_config = Path("pricemos.toml")
                    user_config = Path.home() / ".config" / "pricemos" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [pricemos]
                body = data.get("pricemos", data)
                if not isinstance(body, dict):
                    return {}
                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with the Redis password redacted."""
        data = self.model_dump()
        parts = urlsplit(self.redis_url)
        if parts.password:
            netloc = parts.netloc.replace(f":{parts.password}@", ":***redacted***@")
            data["redis_url"] = urlunsplit(parts._replace(netloc=netloc))
        return data

    def reward_denom_offset_for(self, chain_name: str) -> int:
        return self.reward_denom_offsets.get(chain_name, 0)
