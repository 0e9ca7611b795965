"""Caching reverse proxy in front of the CoinGecko API.

Keeps the API key server-side and serves repeated requests for the same
endpoint from a short-lived in-memory cache.

Read path for ``resolve(endpoint)``:
    fresh entry  -> return it, no network I/O (HIT)
    absent/stale -> GET <base><endpoint> with the key header (MISS)
                    2xx + valid JSON -> store, return
                    anything else    -> raise, cache untouched

Concurrent misses on the same key are not coalesced: each performs its own
upstream fetch and the last successful response to finish is the one kept.
"""

import json
import logging
from typing import Any

import httpx

from config import Settings
from errors import ConfigurationError, NetworkError, ParseError, UpstreamError, ValidationError
from services.cache import TTLCache, make_cache_key

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _decode_json(resp: httpx.Response) -> Any:
    """Strict JSON decode. NaN and Infinity are not JSON and are rejected."""
    return json.loads(resp.content, parse_constant=_reject_constant)


def _upstream_body(resp: httpx.Response) -> Any:
    """Error body as sent by upstream: decoded JSON when possible, else raw text."""
    try:
        return _decode_json(resp)
    except ValueError:
        return resp.text


class ProxyCache:
    def __init__(
        self,
        cache: TTLCache,
        base_url: str,
        api_key: str | None,
        api_key_header: str,
        timeout_seconds: float | None = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.cache = cache
        self.base_url = base_url
        self._api_key = api_key
        self._api_key_header = api_key_header
        self._timeout = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "ProxyCache":
        """Build the per-process proxy from configuration."""
        return cls(
            cache=TTLCache(ttl_seconds=settings.cache_ttl_seconds),
            base_url=settings.coingecko_base_url,
            api_key=settings.coingecko_api_key,
            api_key_header=settings.coingecko_api_key_header,
            timeout_seconds=settings.upstream_timeout_seconds,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def resolve(self, endpoint: str | None) -> Any:
        """Return the JSON payload for ``endpoint``, from cache or upstream."""
        if not endpoint:
            raise ValidationError("Endpoint query parameter is required")
        if not self._api_key:
            raise ConfigurationError()

        key = make_cache_key(endpoint)
        entry = self.cache.lookup(key)
        if entry is not None:
            logger.info("Cache HIT for %s", endpoint)
            return entry.value

        logger.info("Cache MISS for %s. Fetching from upstream", endpoint)
        payload = await self._fetch(endpoint)
        self.cache.store(key, payload)
        return payload

    async def _fetch(self, endpoint: str) -> Any:
        url = f"{self.base_url}{endpoint}"
        headers = {self._api_key_header: self._api_key}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(url, headers=headers)
        except httpx.InvalidURL as e:
            logger.warning("Rejected endpoint that is not a valid URL path: %r", endpoint)
            raise ValidationError("Endpoint is not a valid URL path") from e
        except httpx.RequestError as e:
            logger.warning("Upstream request failed for %s: %s", endpoint, type(e).__name__)
            raise NetworkError() from e

        if not resp.is_success:
            logger.warning("Upstream returned %d for %s", resp.status_code, endpoint)
            raise UpstreamError(resp.status_code, _upstream_body(resp))

        try:
            return _decode_json(resp)
        except ValueError as e:
            logger.warning("Upstream returned non-JSON body for %s", endpoint)
            raise ParseError() from e
