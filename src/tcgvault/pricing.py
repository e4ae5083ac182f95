# tcgvault/pricing.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence


"""
Price derivation for catalog rows.

The catalog carries prices in several columns depending on where a row came
from (TCGCSV market price, raw/graded market, API payloads). The market value
shown to the user is the first non-null column in a fixed, per-source
priority order. Changing an order changes what price the user sees.

A card whose market_price is null does not show 0: it falls back to
raw_market, then graded_market, then market_value. Only a card with none
of them set shows 0.
"""


# Priority orders, first non-null wins.
CARD_PRICE_COLUMNS: tuple[str, ...] = ("market_price", "raw_market", "graded_market", "market_value")
SEALED_PRICE_COLUMNS: tuple[str, ...] = ("market_price", "raw_market", "market_value")
API_CARD_PRICE_COLUMNS: tuple[str, ...] = ("raw_market", "market", "market_price", "graded_market", "market_value")
API_SEALED_PRICE_COLUMNS: tuple[str, ...] = ("market", "market_price", "price", "market_value")

TREND_WINDOWS: tuple[int, ...] = (7, 30, 90, 180)


# --- value types ---------------------------------------------------------------

@dataclass(frozen=True)
class Trends:
    """Percent change over 7/30/90/180 days."""
    days_7: float = 0.0
    days_30: float = 0.0
    days_90: float = 0.0
    days_180: float = 0.0


@dataclass(frozen=True)
class PriceBlock:
    market: Optional[float]
    low: Optional[float] = None
    mid: Optional[float] = None
    high: Optional[float] = None
    trends: Trends = Trends()


@dataclass(frozen=True)
class PricingBlock:
    raw: Optional[PriceBlock]
    graded: Optional[PriceBlock]
    last_updated: Optional[str] = None


# --- helpers -------------------------------------------------------------------

def to_float(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def first_price(row: Mapping[str, Any], columns: Sequence[str]) -> Optional[float]:
    """First column in `columns` holding a usable number, else None."""
    for col in columns:
        v = to_float(row.get(col))
        if v is not None:
            return v
    return None


def market_value(row: Mapping[str, Any], columns: Sequence[str]) -> float:
    v = first_price(row, columns)
    return v if v is not None else 0.0


def to_cents(value: Optional[float]) -> int:
    if value is None:
        return 0
    return int(round(value * 100))


def _nested_percent(trends: Mapping[str, Any], window: int) -> Optional[float]:
    bucket = trends.get(f"days_{window}")
    if isinstance(bucket, Mapping):
        return to_float(bucket.get("percent_change"))
    return to_float(bucket)


def trend_buckets(source: Optional[Mapping[str, Any]], prefix: str = "raw") -> Trends:
    """
    Normalize trend data into the four fixed buckets.

    Reads flat columns ('raw_trend_7d_percent', ...) when present, otherwise a
    nested 'trends' mapping ({'days_7': {'percent_change': 1.5}, ...}).
    For the raw block the legacy single 'trend' column stands in for the
    7-day bucket. Anything missing is 0.0.
    """
    if not source:
        return Trends()

    nested = source.get("trends")
    nested = nested if isinstance(nested, Mapping) else {}

    values: dict[str, float] = {}
    for window in TREND_WINDOWS:
        v = to_float(source.get(f"{prefix}_trend_{window}d_percent"))
        if v is None:
            v = _nested_percent(nested, window)
        if v is None and window == 7 and prefix == "raw":
            v = to_float(source.get("trend"))
        values[f"days_{window}"] = v if v is not None else 0.0
    return Trends(**values)


def price_block_from_row(
    row: Mapping[str, Any],
    *,
    market: Optional[float],
    prefix: str = "raw",
) -> Optional[PriceBlock]:
    """
    Build a PriceBlock for one price kind, or None when there is no market price.
    """
    if market is None:
        return None
    return PriceBlock(
        market=round(market, 2),
        low=to_float(row.get("low_price", row.get("low"))),
        mid=to_float(row.get("mid_price", row.get("mid"))),
        high=to_float(row.get("high_price", row.get("high"))),
        trends=trend_buckets(row, prefix),
    )


__all__ = [
    "Trends",
    "PriceBlock",
    "PricingBlock",
    "CARD_PRICE_COLUMNS",
    "SEALED_PRICE_COLUMNS",
    "API_CARD_PRICE_COLUMNS",
    "API_SEALED_PRICE_COLUMNS",
    "first_price",
    "market_value",
    "to_cents",
    "to_float",
    "trend_buckets",
    "price_block_from_row",
]
