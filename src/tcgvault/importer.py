from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import DEFAULT_GAME_ID, get_game_by_id
from .dto import SEALED_SUPERTYPE
from .logging import get_logger
from .parsers.base import KIND_CARDS, KIND_SEALED, ParserError, RawRow, check_kind, choose_parser
from .pricing import to_float
from .repos import CatalogRepository


"""
Importer pipeline for the tcgvault catalog.

- Parses a file using the ParserStrategy system (CSV/JSON).
- For each row, in order:
    1. Drop empty cells
    2. Coerce numeric / boolean columns
    3. For sealed imports, mark the row as a sealed product
- Upserts rows in batches (one transaction per batch) into the table the
  game's config names for that kind.

version: 0.1.0
"""

log = get_logger("importer")

FLOAT_COLUMNS = frozenset({
    "market_price", "low_price", "mid_price", "high_price",
    "raw_market", "graded_market", "trend",
    "raw_trend_7d_percent", "raw_trend_30d_percent", "raw_trend_90d_percent", "raw_trend_180d_percent",
    "graded_trend_7d_percent", "graded_trend_30d_percent", "graded_trend_90d_percent",
    "graded_trend_180d_percent",
})
INT_COLUMNS = frozenset({"total", "printed_total", "tcgcsv_group_id"})
BOOL_COLUMNS = frozenset({"is_online_only"})

_TRUE = {"1", "true", "yes", "y", "t"}
_FALSE = {"0", "false", "no", "n", "f"}


@dataclass
class ImportResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.created + self.updated


# ---------------------------------------------------------------------------
# Row coercion
# ---------------------------------------------------------------------------

def _to_bool(value: str) -> Optional[bool]:
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return None


def _to_int(value: str) -> Optional[int]:
    f = to_float(value)
    return int(f) if f is not None else None


def coerce_row(row: RawRow, kind: str) -> Dict[str, Any]:
    """
    Turn parsed text cells into column values.

      ""             -> dropped (leaves the stored value alone on update)
      "12.50"        -> 12.5 for price columns
      "yes" / "true" -> True for boolean columns
    Unparseable numbers are dropped with a warning.
    """
    out: Dict[str, Any] = {}
    for key, value in row.items():
        if value is None or str(value).strip() == "":
            continue
        if key in FLOAT_COLUMNS:
            v = to_float(value)
        elif key in INT_COLUMNS:
            v = _to_int(value)
        elif key in BOOL_COLUMNS:
            v = _to_bool(value)
        else:
            out[key] = value
            continue
        if v is None:
            log.warning("ignoring unparseable %s=%r for row %s", key, value, row.get("id"))
            continue
        out[key] = v

    if kind == KIND_SEALED:
        out.setdefault("supertype", SEALED_SUPERTYPE)
    return out


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

def import_file(
    path: str | Path,
    kind: str = KIND_CARDS,
    *,
    game_id: str = DEFAULT_GAME_ID,
    repository: Optional[CatalogRepository] = None,
    batch_size: int = 500,
) -> ImportResult:
    """
    Import catalog rows from a data file into the database.

    kind: "cards", "sealed" or "expansions"; decides the header aliases and
    the target table (from the game's config).

    Rows without an id are skipped. Each batch of `batch_size` rows is
    upserted in its own transaction; progress is logged per batch.
    """
    check_kind(kind)
    game = get_game_by_id(game_id)
    if game is None:
        raise ParserError(f"Unknown game {game_id!r}")
    table = game.table(kind)
    if not table:
        raise ParserError(f"Game {game_id!r} has no {kind!r} table")

    parser = choose_parser(path)
    rows: List[RawRow] = list(parser.parse(path, kind))

    repo = repository or CatalogRepository()
    result = ImportResult()

    total_rows = len(rows)
    if total_rows == 0:
        log.info("no rows found in %s; nothing to do", path)
        return result

    start_time = time.perf_counter()
    batch: List[Dict[str, Any]] = []

    def flush() -> None:
        created, updated = repo.upsert_rows(table, batch)
        result.created += created
        result.updated += updated
        batch.clear()

        done = result.processed + result.skipped
        elapsed = time.perf_counter() - start_time
        log.info("[import] %d/%d rows into %s; elapsed=%.1fs", done, total_rows, table, elapsed)

    for row in rows:
        data = coerce_row(row, kind)
        if not data.get("id"):
            log.warning("skipping row without id: %r", row.get("name"))
            result.skipped += 1
            continue
        batch.append(data)
        if len(batch) >= batch_size:
            flush()

    if batch:
        flush()

    return result


__all__ = ["import_file", "coerce_row", "ImportResult"]
