"""
Parser strategy base types for tcgvault catalog imports.

- RawRow: a parsed row, canonical column name -> text value
- ParserStrategy: Protocol every parser must implement
- ParserError: raised for parsing/validation issues
- HEADER_ALIASES / REQUIRED_COLUMNS: per-kind header normalization
- choose_parser(): factory choosing a strategy by file extension

version: 0.1.0
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterable, List, Protocol, runtime_checkable


# ---- Row shape -------------------------------------------------------------------

# Keys are catalog column names (e.g. "id", "name", "expansion_id"); values are
# trimmed text, "" when the source cell was empty.
RawRow = Dict[str, str]

KIND_CARDS = "cards"
KIND_EXPANSIONS = "expansions"
KIND_SEALED = "sealed"
KINDS = (KIND_CARDS, KIND_EXPANSIONS, KIND_SEALED)


# ---- Header normalization --------------------------------------------------------

_CARD_ALIASES = {
    "id": "id",
    "card id": "id",
    "product id": "id",
    "productid": "id",

    "name": "name",
    "card name": "name",
    "product name": "name",

    "number": "number",
    "card number": "number",
    "no": "number",

    "rarity": "rarity",
    "artist": "artist",
    "illustrator": "artist",

    "supertype": "supertype",
    "card type": "supertype",
    "types": "types",
    "energy type": "types",
    "subtypes": "subtypes",
    "weaknesses": "weaknesses",
    "resistances": "resistances",

    "set id": "expansion_id",
    "expansion id": "expansion_id",
    "group id": "expansion_id",
    "groupid": "expansion_id",
    "set": "expansion_name",
    "set name": "expansion_name",
    "expansion": "expansion_name",
    "expansion name": "expansion_name",
    "group name": "expansion_name",

    "image": "image_url",
    "image url": "image_url",
    "imageurl": "image_url",

    "market price": "market_price",
    "marketprice": "market_price",
    "low price": "low_price",
    "lowprice": "low_price",
    "mid price": "mid_price",
    "midprice": "mid_price",
    "high price": "high_price",
    "highprice": "high_price",
    "raw market": "raw_market",
    "graded market": "graded_market",

    "flavor text": "flavor_text",
    "description": "flavor_text",
    "product type": "product_type",
    "language code": "language_code",
}

_EXPANSION_ALIASES = {
    "id": "id",
    "set id": "id",
    "expansion id": "id",

    "name": "name",
    "set name": "name",
    "expansion name": "name",

    "code": "code",
    "set code": "code",
    "abbreviation": "code",
    "series": "series",

    "total": "total",
    "printed total": "printed_total",

    "language": "language",
    "language code": "language_code",

    "release date": "release_date",
    "released": "release_date",
    "published on": "release_date",
    "publishedon": "release_date",

    "logo": "logo",
    "symbol": "symbol",

    "online only": "is_online_only",
    "is online only": "is_online_only",

    "group id": "tcgcsv_group_id",
    "groupid": "tcgcsv_group_id",
    "tcgcsv group id": "tcgcsv_group_id",
}

HEADER_ALIASES: Dict[str, Dict[str, str]] = {
    KIND_CARDS: _CARD_ALIASES,
    KIND_SEALED: _CARD_ALIASES,
    KIND_EXPANSIONS: _EXPANSION_ALIASES,
}

REQUIRED_COLUMNS: Dict[str, List[str]] = {
    KIND_CARDS: ["id", "name"],
    KIND_SEALED: ["id", "name"],
    KIND_EXPANSIONS: ["id", "name"],
}


def normalize_header(header: str | None, kind: str) -> str:
    """
    Map a source header to a catalog column name.

    Known aliases map directly; anything else is snake_cased so that files
    already using column names ("market_price", "expansion_id") pass through.
    """
    key = " ".join((header or "").replace("_", " ").strip().lower().split())
    aliases = HEADER_ALIASES.get(kind, {})
    if key in aliases:
        return aliases[key]
    return re.sub(r"[^a-z0-9]+", "_", key).strip("_")


# ---- Strategy interface ----------------------------------------------------------

@runtime_checkable
class ParserStrategy(Protocol):
    """Parsers yield RawRow dictionaries with normalized keys."""
    def parse(self, path: str | Path, kind: str = KIND_CARDS) -> Iterable[RawRow]: ...
    def name(self) -> str: ...


# ---- Exceptions ------------------------------------------------------------------

class ParserError(Exception):
    """Raised when a parser encounters an unrecoverable problem."""


def check_kind(kind: str) -> None:
    if kind not in KINDS:
        raise ParserError(f"Unknown import kind {kind!r}; expected one of {', '.join(KINDS)}")


# ---- Factory ---------------------------------------------------------------------

def choose_parser(path: str | Path) -> ParserStrategy:
    """
    Return an appropriate parser implementation based on file extension.

    .csv  -> CSVParser
    .json -> JSONParser
    """
    p = Path(path)
    ext = p.suffix.lower()

    if ext == ".csv":
        from .csv_parser import CSVParser
        return CSVParser()
    if ext == ".json":
        from .json_parser import JSONParser
        return JSONParser()

    raise ParserError(f"Unsupported file type: {ext!r} for {p.name}")


__all__ = [
    "RawRow",
    "ParserStrategy",
    "ParserError",
    "HEADER_ALIASES",
    "REQUIRED_COLUMNS",
    "KIND_CARDS",
    "KIND_EXPANSIONS",
    "KIND_SEALED",
    "KINDS",
    "normalize_header",
    "check_kind",
    "choose_parser",
]
