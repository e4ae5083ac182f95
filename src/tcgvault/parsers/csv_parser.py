"""
CSV parser for tcgvault catalog imports.

Reads a CSV of card, sealed-product or expansion rows.

- Headers go through the per-kind alias table ("Card Name" -> name,
  "Set ID" -> expansion_id, "Market Price" -> market_price, ...).
- The required columns (id, name) must be present after aliasing.
- Cells are trimmed; empty cells stay "".
- Blank rows and comment rows (first cell starts with '#') are dropped.

version: 0.1.0

Example:
    for row in CSVParser().parse("sv3_cards.csv", kind="cards"):
        print(row["id"], row["name"])
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, TextIO

from .base import (
    KIND_CARDS,
    REQUIRED_COLUMNS,
    ParserError,
    ParserStrategy,
    RawRow,
    check_kind,
    normalize_header,
)


def _cell(value) -> str:
    return "" if value is None else str(value).strip()


def _skippable(record: Mapping[Optional[str], object]) -> bool:
    """True for blank rows and '#' comment rows."""
    cells = [_cell(v) for v in record.values() if not isinstance(v, list)]
    if not any(cells):
        return True
    return cells[0].startswith("#")


# ---------------------------------------------------------------------------
# CSV Parser
# ---------------------------------------------------------------------------

class CSVParser(ParserStrategy):
    """
    Catalog exports come from TCGCSV dumps and spreadsheets, so the file is
    read as UTF-8 (with or without BOM) and then as cp1252 when UTF-8 fails
    on names like "Pokémon".
    """

    encodings = ("utf-8-sig", "utf-8", "cp1252")

    def name(self) -> str:
        return "CSVParser"

    def _read(self, handle: TextIO, kind: str) -> List[RawRow]:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ParserError("CSV has no header row.")

        columns: Dict[str, str] = {h: normalize_header(h, kind) for h in reader.fieldnames}
        absent = [c for c in REQUIRED_COLUMNS[kind] if c not in columns.values()]
        if absent:
            raise ParserError(f"CSV missing required columns: {', '.join(absent)}")

        out: List[RawRow] = []
        for record in reader:
            if _skippable(record):
                continue
            # cells beyond the header row are collected under the None key
            out.append({columns[h]: _cell(v) for h, v in record.items() if h is not None})
        return out

    def parse(self, path: str | Path, kind: str = KIND_CARDS) -> Iterable[RawRow]:
        """
        Yield one RawRow per data row of the CSV at `path`.

        Raises ParserError for a missing file, a missing header or required
        column, malformed CSV, or bytes no listed encoding can decode.
        """
        check_kind(kind)
        source = Path(path)
        if not source.is_file():
            raise ParserError(f"CSV file not found: {source}")

        decode_error: Optional[UnicodeDecodeError] = None
        for encoding in self.encodings:
            try:
                with source.open("r", encoding=encoding, newline="") as handle:
                    rows = self._read(handle, kind)
            except UnicodeDecodeError as e:
                decode_error = e
                continue
            except csv.Error as e:
                raise ParserError(f"CSV parsing error in {source.name}: {e}") from e
            yield from rows
            return

        raise ParserError(
            f"Could not decode {source.name} (tried {', '.join(self.encodings)}): {decode_error}"
        ) from decode_error

    def parse_with_count(self, path: str | Path, kind: str = KIND_CARDS):
        """(rows, row_count) for callers that report totals up front."""
        rows = list(self.parse(path, kind))
        return rows, len(rows)
