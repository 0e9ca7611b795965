"""Approximate MVRV (market value to realized value) computation.

True realized value needs on-chain UTXO data. This is a heuristic:
realized price ~= recent average price * a per-coin realization ratio.
The average comes from the 7-day sparkline CoinGecko returns alongside
market data; without one we fall back to market_cap * ratio.
"""

from statistics import fmean

from errors import CoinDataError

DEFAULT_REALIZATION_RATIO = 0.75

# Older coins trade further above their realized price.
REALIZATION_RATIOS = {
    "bitcoin": 0.70,
    "ethereum": 0.72,
    "solana": 0.68,
    "avalanche-2": 0.68,
    "cardano": 0.68,
    "polkadot": 0.68,
}

# (lower bound inclusive, status, color), checked top-down
MVRV_BANDS = [
    (3.5, "EUPHORIA - Major Sell Signal", "#8B0000"),
    (2.0, "OVERHEATED - Profit Taking Risk", "#FF4500"),
    (1.5, "MODERATELY OVERVALUED - Caution Zone", "#FFA500"),
    (1.2, "FAIRLY VALUED - Bull Market", "#FFD700"),
    (1.0, "MODERATELY VALUED - Normal", "#90EE90"),
    (0.8, "UNDERVALUED - Opportunity", "#00AA00"),
]
BOTTOM_BAND = ("HEAVILY UNDERVALUED - Capitulation/Bottom", "#006400")


def realized_value(coin_id: str, price: float, market_cap: float, history: list[float] | None) -> float:
    ratio = REALIZATION_RATIOS.get(coin_id, DEFAULT_REALIZATION_RATIO)
    if history:
        realized_price = fmean(history) * ratio
        return (market_cap / price) * realized_price
    return market_cap * ratio


def mvrv_status(mvrv: float) -> dict:
    for lower, status, color in MVRV_BANDS:
        if mvrv >= lower:
            return {"status": status, "color": color}
    status, color = BOTTOM_BAND
    return {"status": status, "color": color}


def compute_mvrv(coin_id: str, price: float | None, market_cap: float | None, history: list[float] | None) -> dict:
    """MVRV metrics for one coin. Raises CoinDataError on unusable inputs."""
    if not price or not market_cap:
        raise CoinDataError(f"Incomplete market data for {coin_id}", status_code=502)

    realized = realized_value(coin_id, price, market_cap, history)
    if realized <= 0:
        raise CoinDataError(f"Incomplete market data for {coin_id}", status_code=502)

    mvrv = market_cap / realized
    return {
        "market_value": market_cap,
        "realized_value": round(realized, 2),
        "mvrv": round(mvrv, 4),
        "holder_profit_pct": round((mvrv - 1) * 100, 2),
        **mvrv_status(mvrv),
    }


def _sparkline(prices: list | None) -> list[float]:
    return [float(p) for p in prices or [] if p is not None]


def summarize_coin(data: dict) -> dict:
    """Flatten a /coins/<id> payload into the dashboard's coin view."""
    market = data.get("market_data") if isinstance(data, dict) else None
    if not market:
        raise CoinDataError("Coin not found or invalid data from API.")

    coin_id = data.get("id", "")
    price = (market.get("current_price") or {}).get("usd")
    market_cap = (market.get("market_cap") or {}).get("usd")
    history = _sparkline((market.get("sparkline_7d") or {}).get("price"))

    return {
        "id": coin_id,
        "name": data.get("name"),
        "symbol": (data.get("symbol") or "").upper(),
        "price": price,
        "market_cap": market_cap,
        "circulating_supply": market.get("circulating_supply"),
        "price_change_percentage_24h": market.get("price_change_percentage_24h"),
        "market_cap_change_percentage_24h": market.get("market_cap_change_percentage_24h"),
        "price_change_percentage_7d": (market.get("price_change_percentage_7d_in_currency") or {}).get("usd"),
        "history_points": len(history),
        **compute_mvrv(coin_id, price, market_cap, history),
    }


def summarize_market_row(row: dict) -> dict:
    """One row of a /coins/markets payload as a comparison table row."""
    coin_id = row.get("id", "")
    history = _sparkline((row.get("sparkline_in_7d") or {}).get("price"))
    metrics = compute_mvrv(coin_id, row.get("current_price"), row.get("market_cap"), history)
    return {
        "id": coin_id,
        "name": row.get("name"),
        "symbol": (row.get("symbol") or "").upper(),
        "price": row.get("current_price"),
        "market_cap": row.get("market_cap"),
        "mvrv": metrics["mvrv"],
        "status": metrics["status"],
        "color": metrics["color"],
    }
