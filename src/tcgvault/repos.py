# tcgvault/repos.py
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import MetaData, Table, and_, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import SessionLocal
from .logging import get_logger
from .models import Base
from .utils import encode_json_list, parse_card_number


"""
Query builder for the catalog database.

Translates QueryOptions (filters, free-text search, sort, page) into a
SQLAlchemy Core select against a named table and returns plain row dicts
plus the exact server-side count.

Collector numbers are stored as text, so the database sorts them
lexicographically ("10" before "2"). Sorting by such a column takes the
numeric path instead: fetch up to `numeric_sort_cap` matching rows, sort
them by their integer value here, then slice the requested page. The total
reported on that path is capped at the same limit.
"""

log = get_logger("repos")

# Text columns that hold numbers and must be sorted numerically.
NUMERIC_TEXT_FIELDS = frozenset({"number"})

DEFAULT_NUMERIC_SORT_CAP = 1000

SORT_ASC = "asc"
SORT_DESC = "desc"


class CatalogQueryError(Exception):
    """Raised for queries against unknown tables."""


# --- Predicates ----------------------------------------------------------------

# eq:         column == value
# neq:        column != value (NULL counts as "not equal")
# contains:   JSON-array text column contains value (or every value in a list)
# ilike:      case-insensitive substring match
# not_ilike:  negated case-insensitive substring match
PREDICATE_OPS = ("eq", "neq", "contains", "ilike", "not_ilike")


@dataclass(frozen=True)
class Predicate:
    column: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in PREDICATE_OPS:
            raise ValueError(f"unknown predicate op {self.op!r}")


# --- Search filters ------------------------------------------------------------

@dataclass(frozen=True)
class CardFilters:
    """
    Named card filters. None means unconstrained.
    """
    rarity: Optional[str] = None
    supertype: Optional[str] = None
    artist: Optional[str] = None
    types: Optional[str] = None
    subtypes: Optional[str] = None
    weaknesses: Optional[str] = None
    resistances: Optional[str] = None

    # equality filters
    EQUALS = ("rarity", "supertype", "artist")
    # list-membership filters
    CONTAINS = ("types", "subtypes", "weaknesses", "resistances")

    def to_predicates(self) -> List[Predicate]:
        preds: List[Predicate] = []
        for name in self.EQUALS:
            v = _blank_to_none(getattr(self, name))
            if v is not None:
                preds.append(Predicate(name, "eq", v))
        for name in self.CONTAINS:
            v = _blank_to_none(getattr(self, name))
            if v is not None:
                preds.append(Predicate(name, "contains", v))
        return preds


@dataclass(frozen=True)
class QueryOptions:
    page: int = 1
    page_size: int = 30
    sort_by: str = "name"
    sort_order: str = SORT_ASC
    search: Optional[str] = None
    filters: CardFilters = field(default_factory=CardFilters)

    def __post_init__(self) -> None:
        if int(self.page) < 1:
            raise ValueError("page must be >= 1")
        if int(self.page_size) < 1:
            raise ValueError("page_size must be > 0")
        order = (self.sort_order or SORT_ASC).lower()
        if order not in (SORT_ASC, SORT_DESC):
            raise ValueError(f"sort_order must be 'asc' or 'desc', got {self.sort_order!r}")
        object.__setattr__(self, "page", int(self.page))
        object.__setattr__(self, "page_size", int(self.page_size))
        object.__setattr__(self, "sort_order", order)

    @property
    def descending(self) -> bool:
        return self.sort_order == SORT_DESC

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def with_changes(self, **changes: Any) -> "QueryOptions":
        return replace(self, **changes)


# --- Session scope -------------------------------------------------------------

@contextmanager
def session_scope(session_factory=SessionLocal):
    s: Session = session_factory()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


# --- Internal helpers ----------------------------------------------------------

def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    if isinstance(v, (list, tuple)) and not v:
        return None
    return v


def _like_escape(s: str) -> str:
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains_pattern(s: str) -> str:
    return f"%{_like_escape(s)}%"


# --- Catalog Repository --------------------------------------------------------

class CatalogRepository:
    """
    Data-access boundary for catalog tables.
    - Tables are addressed by name and resolved against the model metadata.
    - query_page never raises for backend trouble: it logs and returns ([], 0).
    - count lets backend errors propagate so callers can degrade per item.
    """

    def __init__(
        self,
        session_factory=SessionLocal,
        *,
        metadata: MetaData = Base.metadata,
        numeric_sort_cap: int = DEFAULT_NUMERIC_SORT_CAP,
    ):
        if numeric_sort_cap < 1:
            raise ValueError("numeric_sort_cap must be >= 1")
        self._session_factory = session_factory
        self._metadata = metadata
        self.numeric_sort_cap = numeric_sort_cap

    # -- table / column resolution ---------------------------------------------

    def _table(self, name: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise CatalogQueryError(f"unknown table {name!r}")
        return table

    def _where(self, table: Table, predicates: Iterable[Predicate]) -> list:
        clauses = []
        for p in predicates:
            col = table.c.get(p.column)
            if col is None:
                log.warning("ignoring filter on unknown column %s.%s", table.name, p.column)
                continue

            if p.op == "eq":
                clauses.append(col == p.value)
            elif p.op == "neq":
                clauses.append(or_(col != p.value, col.is_(None)))
            elif p.op == "ilike":
                clauses.append(col.ilike(_contains_pattern(str(p.value)), escape="\\"))
            elif p.op == "not_ilike":
                clauses.append(~col.ilike(_contains_pattern(str(p.value)), escape="\\"))
            elif p.op == "contains":
                # JSON array text: match the quoted element, e.g. '"Fire"'
                values = p.value if isinstance(p.value, (list, tuple)) else [p.value]
                for v in values:
                    needle = _like_escape(f'"{v}"')
                    clauses.append(col.ilike(f"%{needle}%", escape="\\"))
        return clauses

    def _search_clause(self, table: Table, term: Optional[str], fields: Sequence[str]):
        term = (term or "").strip()
        if not term:
            return None
        pattern = _contains_pattern(term)
        cols = [table.c.get(f) for f in fields]
        cols = [c for c in cols if c is not None]
        if not cols:
            return None
        return or_(*[c.ilike(pattern, escape="\\") for c in cols])

    def _sort_column(self, table: Table, sort_by: str):
        col = table.c.get(sort_by)
        if col is None:
            log.warning("unknown sort column %s.%s; sorting by name", table.name, sort_by)
            col = table.c.get("name")
        return col

    def _base_select(
        self,
        table: Table,
        options: QueryOptions,
        predicates: Sequence[Predicate],
        search_fields: Sequence[str],
    ):
        stmt = select(table)
        clauses = self._where(table, predicates)
        search = self._search_clause(table, options.search, search_fields)
        if search is not None:
            clauses.append(search)
        if clauses:
            stmt = stmt.where(and_(*clauses))
        return stmt

    # -- paged query ------------------------------------------------------------

    def query_page(
        self,
        table_name: str,
        options: QueryOptions,
        *,
        predicates: Sequence[Predicate] = (),
        search_fields: Sequence[str] = ("name",),
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Returns (rows, total) for one page.

        total is the full server-side count, except on the numeric-sort path
        where it is min(count, numeric_sort_cap).
        """
        try:
            table = self._table(table_name)
            base = self._base_select(table, options, predicates, search_fields)
            with session_scope(self._session_factory) as s:
                total = s.execute(select(func.count()).select_from(base.subquery())).scalar_one()

                if options.sort_by in NUMERIC_TEXT_FIELDS and table.c.get(options.sort_by) is not None:
                    return self._numeric_page(s, table, base, options, total)

                col = self._sort_column(table, options.sort_by)
                order = [col.desc() if options.descending else col.asc()] if col is not None else []
                order.extend(table.primary_key.columns)  # stable tie-breaker

                stmt = base.order_by(*order).offset(options.offset).limit(options.page_size)
                rows = [dict(r._mapping) for r in s.execute(stmt)]
                return rows, int(total or 0)
        except (SQLAlchemyError, CatalogQueryError):
            log.exception("query on %s failed; returning empty page", table_name)
            return [], 0

    def _numeric_page(
        self,
        s: Session,
        table: Table,
        base,
        options: QueryOptions,
        total: int,
    ) -> Tuple[List[Dict[str, Any]], int]:
        cap = self.numeric_sort_cap
        stmt = base.order_by(*table.primary_key.columns).limit(cap)
        rows = [dict(r._mapping) for r in s.execute(stmt)]

        key = options.sort_by
        rows.sort(key=lambda r: parse_card_number(r.get(key)), reverse=options.descending)

        start = options.offset
        return rows[start:start + options.page_size], min(int(total or 0), cap)

    # -- counts / single rows ---------------------------------------------------

    def count(self, table_name: str, predicates: Sequence[Predicate] = ()) -> int:
        """
        Exact row count. Backend errors propagate.
        """
        table = self._table(table_name)
        stmt = select(func.count()).select_from(table)
        clauses = self._where(table, predicates)
        if clauses:
            stmt = stmt.where(and_(*clauses))
        with session_scope(self._session_factory) as s:
            return int(s.execute(stmt).scalar_one() or 0)

    def fetch_one(self, table_name: str, column: str, value: Any) -> Optional[Dict[str, Any]]:
        """
        First row where column == value, or None (also on backend errors).
        """
        try:
            table = self._table(table_name)
            col = table.c.get(column)
            if col is None:
                raise CatalogQueryError(f"unknown column {table_name}.{column}")
            with session_scope(self._session_factory) as s:
                row = s.execute(select(table).where(col == value).limit(1)).first()
                return dict(row._mapping) if row is not None else None
        except (SQLAlchemyError, CatalogQueryError):
            log.exception("lookup %s.%s=%r failed", table_name, column, value)
            return None

    def distinct_values(self, table_name: str, column: str) -> List[str]:
        """
        Sorted distinct non-null values of a column ([] on backend errors).
        """
        try:
            table = self._table(table_name)
            col = table.c.get(column)
            if col is None:
                raise CatalogQueryError(f"unknown column {table_name}.{column}")
            with session_scope(self._session_factory) as s:
                values = s.execute(select(col).where(col.is_not(None)).distinct()).scalars().all()
            return sorted({str(v) for v in values if str(v).strip()})
        except (SQLAlchemyError, CatalogQueryError):
            log.exception("distinct %s.%s failed", table_name, column)
            return []

    # -- writes (importer) ------------------------------------------------------

    def upsert_rows(self, table_name: str, rows: Iterable[Dict[str, Any]]) -> Tuple[int, int]:
        """
        Insert or update rows by primary key in one transaction.
        Unknown keys are dropped; list values for JSON-array columns are encoded.
        Returns: (created_count, updated_count)
        """
        table = self._table(table_name)
        pk_cols = list(table.primary_key.columns)
        if len(pk_cols) != 1:
            raise CatalogQueryError(f"{table_name} needs a single-column primary key for upserts")
        pk = pk_cols[0]

        created = 0
        updated = 0
        with session_scope(self._session_factory) as s:
            for data in rows:
                values = {k: v for k, v in data.items() if k in table.c}
                for k in CardFilters.CONTAINS:
                    if k in values:
                        values[k] = encode_json_list(values[k])

                key = values.get(pk.name)
                if key is None or key == "":
                    raise CatalogQueryError(f"row without {pk.name!r} for {table_name}")

                exists = s.execute(select(pk).where(pk == key)).first() is not None
                if exists:
                    changes = {k: v for k, v in values.items() if k != pk.name}
                    if changes:
                        s.execute(update(table).where(pk == key).values(**changes))
                    updated += 1
                else:
                    s.execute(table.insert().values(**values))
                    created += 1
        return created, updated


__all__ = [
    "CatalogRepository",
    "CatalogQueryError",
    "CardFilters",
    "QueryOptions",
    "Predicate",
    "NUMERIC_TEXT_FIELDS",
    "session_scope",
]
