# tcgvault/dto.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Generic, List, Mapping, Optional, Sequence, TypeVar

from .pricing import (
    API_CARD_PRICE_COLUMNS,
    API_SEALED_PRICE_COLUMNS,
    CARD_PRICE_COLUMNS,
    SEALED_PRICE_COLUMNS,
    PriceBlock,
    PricingBlock,
    first_price,
    market_value,
    price_block_from_row,
    to_cents,
    to_float,
)
from .utils import clean_card_name, clean_expansion_name, json_list


"""
View models handed to callers, and the formatters that build them.

Every formatter returns the same CatalogItem shape regardless of which table
or backend the row came from; `source` records the provenance.

version: 0.1.0
"""

T = TypeVar("T")

ITEM_SINGLE = "single"
ITEM_SEALED = "sealed"

SEALED_SUPERTYPE = "Sealed Product"


# --- CatalogItem ---------------------------------------------------------------

@dataclass(frozen=True)
class CatalogItem:
    """
    Normalized card or sealed product.
    """
    id: str
    name: str
    number: Optional[str]
    artist: Optional[str]
    rarity: Optional[str]
    supertype: Optional[str]
    types: List[str]
    subtypes: List[str]
    expansion_id: Optional[str]
    expansion_name: Optional[str]
    image_url: Optional[str]
    market_value: float
    market_value_cents: int
    pricing: PricingBlock
    item_kind: str          # "single" | "sealed"
    source: str             # table name or "api"
    game_id: str


# --- ExpansionItem -------------------------------------------------------------

@dataclass(frozen=True)
class ExpansionItem:
    id: str
    name: str
    code: Optional[str]
    series: Optional[str]
    release_date: Optional[str]
    language_code: Optional[str]
    logo: Optional[str]
    symbol: Optional[str]
    total_cards: int
    source: str
    game_id: str


# --- PageResult ----------------------------------------------------------------

@dataclass(frozen=True)
class PageResult(Generic[T]):
    """
    One page of results plus the server-side total.
    """
    data: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 30

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total

    @classmethod
    def empty(cls, page: int = 1, page_size: int = 30) -> "PageResult[T]":
        return cls(data=[], total=0, page=page, page_size=page_size)

    def to_dict(self) -> dict:
        return {
            "data": list(self.data),
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
            "hasMore": self.has_more,
        }


# --- helpers -------------------------------------------------------------------

def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _stamp(value: Any) -> Optional[str]:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return _text(value)


def _first(*values: Any) -> Optional[str]:
    for v in values:
        t = _text(v)
        if t:
            return t
    return None


def _nested_pricing(row: Mapping[str, Any], kind: str) -> Optional[Mapping[str, Any]]:
    """
    Already-formatted rows carry prices under pricing.raw / pricing.graded;
    read those so formatting twice keeps the same values.
    """
    pricing = row.get("pricing")
    if isinstance(pricing, Mapping):
        block = pricing.get(kind)
        if isinstance(block, Mapping):
            return block
    return None


def _raw_block(row: Mapping[str, Any], market: Optional[float]) -> Optional[PriceBlock]:
    nested = _nested_pricing(row, "raw")
    return price_block_from_row(nested if nested is not None else row, market=market, prefix="raw")


def _graded_block(row: Mapping[str, Any]) -> Optional[PriceBlock]:
    nested = _nested_pricing(row, "graded")
    if nested is not None:
        return price_block_from_row(nested, market=to_float(nested.get("market")), prefix="graded")
    graded = to_float(row.get("graded_market"))
    if graded is None:
        return None
    # low/mid/high columns belong to the raw (TCGCSV) price, not the graded one
    return price_block_from_row(
        {k: v for k, v in row.items() if not k.endswith("_price")},
        market=graded,
        prefix="graded",
    )


def _last_updated(row: Mapping[str, Any]) -> Optional[str]:
    pricing = row.get("pricing")
    if isinstance(pricing, Mapping) and pricing.get("last_updated"):
        return _stamp(pricing.get("last_updated"))
    return _stamp(row.get("updated_at"))


# --- card rows -----------------------------------------------------------------

def card_row_to_item(row: Mapping[str, Any], *, game_id: str, source: str) -> CatalogItem:
    """
    Convert a card row (dict) to a CatalogItem.

    Market value follows CARD_PRICE_COLUMNS; the raw price block is built
    from the TCGCSV/raw market columns, the graded block from graded_market.
    """
    value = market_value(row, CARD_PRICE_COLUMNS)
    raw_market = first_price(row, CARD_PRICE_COLUMNS[:2])
    nested_raw = _nested_pricing(row, "raw")
    if raw_market is None and nested_raw is not None:
        raw_market = to_float(nested_raw.get("market"))

    supertype = _text(row.get("supertype"))
    kind = row.get("item_kind")
    if kind not in (ITEM_SINGLE, ITEM_SEALED):
        kind = ITEM_SEALED if supertype == SEALED_SUPERTYPE else ITEM_SINGLE

    return CatalogItem(
        id=str(row.get("id")),
        name=clean_card_name(_text(row.get("name")) or "Unknown") or "Unknown",
        number=_text(row.get("number")),
        artist=_text(row.get("artist")),
        rarity=_text(row.get("rarity")),
        supertype=supertype,
        types=json_list(row.get("types")),
        subtypes=json_list(row.get("subtypes")),
        expansion_id=_text(row.get("expansion_id")),
        expansion_name=clean_expansion_name(_text(row.get("expansion_name"))),
        image_url=_first(row.get("image_url"), row.get("image_medium"), row.get("image_small")),
        market_value=value,
        market_value_cents=to_cents(value),
        pricing=PricingBlock(
            raw=_raw_block(row, raw_market),
            graded=_graded_block(row),
            last_updated=_last_updated(row),
        ),
        item_kind=kind,
        source=source,
        game_id=game_id,
    )


# --- sealed rows ---------------------------------------------------------------

def sealed_row_to_item(row: Mapping[str, Any], *, game_id: str, source: str) -> CatalogItem:
    """
    Convert a sealed-product row (dict) to a CatalogItem.
    Sealed rows have no graded price and report rarity as 'Sealed'.
    """
    value = market_value(row, SEALED_PRICE_COLUMNS)
    has_price = first_price(row, SEALED_PRICE_COLUMNS) is not None

    return CatalogItem(
        id=str(row.get("id")),
        name=_text(row.get("name")) or "Unknown",
        number=None,
        artist=None,
        rarity="Sealed",
        supertype=_text(row.get("supertype")) or SEALED_SUPERTYPE,
        types=[],
        subtypes=[],
        expansion_id=_text(row.get("expansion_id")),
        expansion_name=clean_expansion_name(_text(row.get("expansion_name"))),
        image_url=_first(row.get("image_url"), row.get("image_medium"), row.get("image_small")),
        market_value=value,
        market_value_cents=to_cents(value),
        pricing=PricingBlock(
            raw=_raw_block(row, value if has_price else None),
            graded=None,
            last_updated=_last_updated(row),
        ),
        item_kind=ITEM_SEALED,
        source=source,
        game_id=game_id,
    )


# --- remote API payloads -------------------------------------------------------

def _api_image(payload: Mapping[str, Any]) -> Optional[str]:
    images = payload.get("images")
    if isinstance(images, Sequence) and not isinstance(images, str) and images:
        img = images[0] if isinstance(images[0], Mapping) else {}
        return _first(img.get("medium"), img.get("large"), img.get("small"))
    if isinstance(images, Mapping):
        return _first(images.get("medium"), images.get("large"), images.get("small"))
    return _first(payload.get("image_url"), payload.get("image"))


def _api_expansion(payload: Mapping[str, Any]) -> tuple[Optional[str], Optional[str]]:
    exp = payload.get("expansion")
    if isinstance(exp, Mapping):
        return _text(exp.get("id")), _text(exp.get("name"))
    return _text(payload.get("expansion_id")), _text(payload.get("expansion_name"))


def api_card_to_item(payload: Mapping[str, Any], *, game_id: str) -> CatalogItem:
    """
    Convert a remote API card payload to a CatalogItem.
    The API nests the expansion and images; prices may sit at the top level
    or under 'prices'.
    """
    prices = payload.get("prices")
    flat = dict(prices) if isinstance(prices, Mapping) else {}
    flat.update({k: v for k, v in payload.items() if k != "prices"})
    exp_id, exp_name = _api_expansion(payload)

    return card_row_to_item(
        {
            **flat,
            "expansion_id": exp_id,
            "expansion_name": exp_name,
            "image_url": _api_image(payload),
            "market_price": None,
            "raw_market": first_price(flat, API_CARD_PRICE_COLUMNS),
        },
        game_id=game_id,
        source="api",
    )


def api_sealed_to_item(payload: Mapping[str, Any], *, game_id: str) -> CatalogItem:
    exp_id, exp_name = _api_expansion(payload)
    return sealed_row_to_item(
        {
            **payload,
            "expansion_id": exp_id,
            "expansion_name": exp_name,
            "image_url": _api_image(payload),
            "market_price": first_price(payload, API_SEALED_PRICE_COLUMNS),
        },
        game_id=game_id,
        source="api",
    )


def api_pricing_to_block(payload: Mapping[str, Any]) -> PricingBlock:
    """
    Build a PricingBlock from a pricing payload:
      {"raw": {"market": .., "trends": {..}}, "graded": {...}, "updated_at": ..}
    or a flat card-like mapping with raw_market / graded_market columns.
    """
    raw = payload.get("raw")
    graded = payload.get("graded")
    if isinstance(raw, Mapping) or isinstance(graded, Mapping):
        return PricingBlock(
            raw=price_block_from_row(raw, market=to_float(raw.get("market"))) if isinstance(raw, Mapping) else None,
            graded=(
                price_block_from_row(graded, market=to_float(graded.get("market")), prefix="graded")
                if isinstance(graded, Mapping) else None
            ),
            last_updated=_stamp(payload.get("updated_at") or payload.get("last_updated")),
        )
    item = card_row_to_item({"id": payload.get("id"), "name": "", **payload}, game_id="", source="api")
    return item.pricing


# --- expansions ----------------------------------------------------------------

def expansion_row_to_item(
    row: Mapping[str, Any],
    *,
    game_id: str,
    source: str,
    total_cards: int = 0,
) -> ExpansionItem:
    return ExpansionItem(
        id=str(row.get("id")),
        name=clean_expansion_name(_text(row.get("name"))) or "Unknown Set",
        code=_text(row.get("code")),
        series=_text(row.get("series")),
        release_date=_stamp(row.get("release_date")),
        language_code=_text(row.get("language_code")),
        logo=_text(row.get("logo")),
        symbol=_text(row.get("symbol")),
        total_cards=int(total_cards or 0),
        source=source,
        game_id=game_id,
    )


__all__ = [
    "CatalogItem",
    "ExpansionItem",
    "PageResult",
    "ITEM_SINGLE",
    "ITEM_SEALED",
    "SEALED_SUPERTYPE",
    "card_row_to_item",
    "sealed_row_to_item",
    "api_card_to_item",
    "api_sealed_to_item",
    "api_pricing_to_block",
    "expansion_row_to_item",
]
