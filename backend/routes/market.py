"""Market dashboard routes: MVRV estimates built on the proxy cache.

GET /market/mvrv        → one coin, full market view + MVRV
GET /market/comparison  → fixed comparison set, one row per coin

Both go through ProxyCache.resolve, so they share cache entries with any
client hitting /proxy for the same endpoint string.
"""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query

from errors import CoinDataError, ValidationError
from routes.proxy import get_proxy
from services.proxy_cache import ProxyCache
from services.valuation import summarize_coin, summarize_market_row

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_COMPARISON_COINS = ["bitcoin", "ethereum", "solana", "avalanche-2"]

COIN_QUERY = {
    "localization": "false",
    "tickers": "false",
    "market_data": "true",
    "community_data": "false",
    "developer_data": "false",
    "sparkline": "true",
}


def _normalize_coin(coin: str) -> str:
    coin = coin.strip().lower()
    if not coin:
        raise ValidationError("Coin id is required")
    return coin


def coin_endpoint(coin: str) -> str:
    return f"/coins/{coin}?{urlencode(COIN_QUERY)}"


def markets_endpoint(coins: list[str]) -> str:
    query = {
        "vs_currency": "usd",
        "ids": ",".join(coins),
        "order": "market_cap_desc",
        "sparkline": "true",
        "price_change_percentage": "24h,7d",
    }
    return f"/coins/markets?{urlencode(query, safe=',')}"


# ---------------------------------------------------------------------------
# Single coin
# ---------------------------------------------------------------------------

@router.get("/market/mvrv")
async def coin_mvrv(
    coin: str = Query("bitcoin"),
    proxy_cache: ProxyCache = Depends(get_proxy),
) -> dict:
    """Market data and estimated MVRV for a single coin."""
    coin = _normalize_coin(coin)
    data = await proxy_cache.resolve(coin_endpoint(coin))

    result = summarize_coin(data)
    result["_summary"] = (
        f"{result['name'] or coin} ({result['symbol']}): MVRV {result['mvrv']:.2f}, "
        f"{result['status']}"
    )
    return result


# ---------------------------------------------------------------------------
# Comparison set
# ---------------------------------------------------------------------------

@router.get("/market/comparison")
async def comparison(
    ids: str | None = Query(None),
    proxy_cache: ProxyCache = Depends(get_proxy),
) -> dict:
    """MVRV comparison across a set of coins (defaults to the dashboard's four)."""
    coins = [_normalize_coin(c) for c in ids.split(",")] if ids else DEFAULT_COMPARISON_COINS
    rows = await proxy_cache.resolve(markets_endpoint(coins))

    if not isinstance(rows, list) or not rows:
        raise CoinDataError("No data returned for comparison coins.")

    results = []
    errors = []
    for row in rows:
        if not isinstance(row, dict):
            logger.warning("Skipping malformed comparison row: %r", row)
            errors.append({"id": None, "error": "Malformed market data row"})
            continue
        try:
            results.append(summarize_market_row(row))
        except CoinDataError as e:
            logger.warning("Skipping comparison row %s: %s", row.get("id"), e)
            errors.append({"id": row.get("id"), "error": str(e)})

    if results:
        top = max(results, key=lambda r: r["mvrv"])
        _summary = f"{len(results)} coins compared; highest MVRV {top['symbol']} at {top['mvrv']:.2f}"
    else:
        _summary = "No coins had usable market data"

    return {
        "_summary": _summary,
        "coins": results,
        "errors": errors,
    }
