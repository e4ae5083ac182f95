"""
JSON parser for tcgvault catalog imports.

Accepts either a top-level array of objects, or an object wrapping the array
under "data", "results", "cards", "products" or "expansions" (the shapes
catalog exports and API dumps come in). Keys are normalized like CSV headers.
List values (types, subtypes, ...) are kept as JSON array text.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from .base import (
    KIND_CARDS,
    REQUIRED_COLUMNS,
    ParserError,
    ParserStrategy,
    RawRow,
    check_kind,
    normalize_header,
)

WRAPPER_KEYS = ("data", "results", "cards", "products", "expansions")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"))
    return str(value).strip()


class JSONParser(ParserStrategy):
    def name(self) -> str:
        return "JSONParser"

    def parse(self, path: str | Path, kind: str = KIND_CARDS) -> Iterable[RawRow]:
        check_kind(kind)
        p = Path(path)
        if not p.exists():
            raise ParserError(f"JSON file not found: {p}")

        try:
            body = json.loads(p.read_text(encoding="utf-8-sig"))
        except (ValueError, UnicodeDecodeError) as e:
            raise ParserError(f"JSON parsing error: {e}") from e

        if isinstance(body, dict):
            items = next((body[k] for k in WRAPPER_KEYS if isinstance(body.get(k), list)), None)
        else:
            items = body
        if not isinstance(items, list):
            raise ParserError("JSON must be an array of objects (optionally wrapped in 'data').")

        required = REQUIRED_COLUMNS[kind]
        for i, item in enumerate(items, start=1):
            if not isinstance(item, dict):
                raise ParserError(f"JSON item #{i} is not an object")
            row: RawRow = {normalize_header(k, kind): _cell(v) for k, v in item.items()}
            missing = [c for c in required if c not in row]
            if missing:
                raise ParserError(f"JSON item #{i} missing required fields: {', '.join(missing)}")
            yield row
