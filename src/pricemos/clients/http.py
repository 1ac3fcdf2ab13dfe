"""Blocking JSON-over-HTTP base shared by the upstream clients."""

from __future__ import annotations

import asyncio
from typing import Any

import requests

from ..errors import MalformedResponse, NetworkUnavailable, QueryTimeout
from ..logger import TRACE, get_logger

logger = get_logger(__name__)


class JsonHttpClient:
    """Run ``requests`` GETs in a worker thread and map failures to QueryError."""

    def __init__(
        self,
        name: str,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._owns_session = session is None

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def _get_sync(self, path: str, params: dict[str, Any] | None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            raise QueryTimeout(
                f"{self.name}: timed out after {self.timeout}s on {path}"
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise NetworkUnavailable(f"{self.name}: {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise NetworkUnavailable(
                f"{self.name}: {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse(f"{self.name}: {path} returned a non-JSON body") from exc

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        logger.log(TRACE, "%s GET %s params=%s", self.name, path, params)
        return await asyncio.to_thread(self._get_sync, path, params)
