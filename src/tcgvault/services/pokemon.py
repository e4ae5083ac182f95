from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence

from ..cache import CacheNamespaces, make_cache_key
from ..config import GameServiceConfig
from ..dto import (
    SEALED_SUPERTYPE,
    CatalogItem,
    ExpansionItem,
    PageResult,
    card_row_to_item,
    expansion_row_to_item,
    sealed_row_to_item,
)
from ..logging import get_logger
from ..pricing import PricingBlock
from ..repos import CatalogRepository, Predicate, QueryOptions
from .base import empty_page, worth_caching


"""
Pokémon game service backed by the catalog database.

All reads go through CatalogRepository; every result is cached per
namespace for the cache TTL. Sealed products are rows of the cards table
with supertype "Sealed Product".

version: 0.1.0
"""

log = get_logger("services.pokemon")

CARD_SEARCH_FIELDS = ("name", "number", "artist", "expansion_name")
SEALED_SEARCH_FIELDS = ("name", "flavor_text")

# digital-only and redemption products are not sealed stock
SEALED_EXCLUDED_TERMS = ("code card", "digital", "online")

LANGUAGE_CODES = {"english": "en", "japanese": "ja"}

ENERGY_TYPES = (
    "Colorless",
    "Darkness",
    "Dragon",
    "Fairy",
    "Fighting",
    "Fire",
    "Grass",
    "Lightning",
    "Metal",
    "Psychic",
    "Water",
)

DEFAULT_COUNT_WORKERS = 8


class PokemonGameService:
    """
    GameService for Pokémon over the catalog database.

    Args:
        config:       game descriptor (tables + feature flags)
        repository:   query builder bound to a session factory
        caches:       per-service cache namespaces (a fresh set if omitted)
        count_workers: max threads for the per-expansion card counts
    """

    def __init__(
        self,
        config: GameServiceConfig,
        repository: CatalogRepository,
        caches: Optional[CacheNamespaces] = None,
        *,
        count_workers: int = DEFAULT_COUNT_WORKERS,
    ):
        self.config = config
        self.repository = repository
        self.caches = caches or CacheNamespaces()
        self.count_workers = max(1, int(count_workers))

        self.cards_table = config.table("cards")
        self.expansions_table = config.table("expansions")
        self.sealed_table = config.table("sealed") or self.cards_table

    @property
    def game_id(self) -> str:
        return self.config.id

    def has_feature(self, feature: str) -> bool:
        return self.config.has_feature(feature)

    def clear_cache(self) -> None:
        self.caches.clear()

    def _key(self, operation: str, *parts, **options) -> str:
        return make_cache_key(self.game_id, operation, *parts, **options)

    def _page(self, rows, total, options: QueryOptions, formatter) -> PageResult:
        return PageResult(
            data=[formatter(r) for r in rows],
            total=total,
            page=options.page,
            page_size=options.page_size,
        )

    def _card(self, row) -> CatalogItem:
        return card_row_to_item(row, game_id=self.game_id, source=self.cards_table)

    def _sealed(self, row) -> CatalogItem:
        return sealed_row_to_item(row, game_id=self.game_id, source=self.sealed_table)

    @staticmethod
    def _single_predicates(expansion_id: str) -> List[Predicate]:
        # singles of one expansion; sealed rows share the table
        return [
            Predicate("expansion_id", "eq", expansion_id),
            Predicate("supertype", "neq", SEALED_SUPERTYPE),
        ]

    # --- cards -----------------------------------------------------------------

    def search_cards(self, query: str, options: Optional[QueryOptions] = None) -> PageResult[CatalogItem]:
        """
        Free-text search over singles (name, number, artist, expansion name)
        with the option filters applied. Sealed products never appear here.
        """
        opts = (options or QueryOptions()).with_changes(search=query)

        def load() -> PageResult[CatalogItem]:
            predicates = [Predicate("supertype", "neq", SEALED_SUPERTYPE)]
            predicates += opts.filters.to_predicates()
            rows, total = self.repository.query_page(
                self.cards_table, opts, predicates=predicates, search_fields=CARD_SEARCH_FIELDS,
            )
            return self._page(rows, total, opts, self._card)

        return self.caches.cached("search", self._key("search", query, options=opts), load, store_if=worth_caching)

    def get_card_by_id(self, card_id: str) -> Optional[CatalogItem]:
        def load() -> Optional[CatalogItem]:
            row = self.repository.fetch_one(self.cards_table, "id", card_id)
            return self._card(row) if row is not None else None

        return self.caches.cached("entity", self._key("card", card_id), load)

    def get_cards_by_expansion(
        self,
        expansion_id: str,
        options: Optional[QueryOptions] = None,
    ) -> PageResult[CatalogItem]:
        """
        Cards of one expansion; collector-number order unless told otherwise.
        """
        opts = options or QueryOptions(sort_by="number")

        def load() -> PageResult[CatalogItem]:
            predicates = self._single_predicates(expansion_id) + opts.filters.to_predicates()
            rows, total = self.repository.query_page(
                self.cards_table, opts, predicates=predicates, search_fields=CARD_SEARCH_FIELDS,
            )
            return self._page(rows, total, opts, self._card)

        key = self._key("expansion-cards", expansion_id, options=opts)
        return self.caches.cached("search", key, load, store_if=worth_caching)

    def get_pricing(self, card_id: str) -> Optional[PricingBlock]:
        if not self.has_feature("pricing"):
            return None

        def load() -> Optional[PricingBlock]:
            row = self.repository.fetch_one(self.cards_table, "id", card_id)
            return self._card(row).pricing if row is not None else None

        return self.caches.cached("pricing", self._key("pricing", card_id), load)

    # --- expansions ------------------------------------------------------------

    def get_expansions(
        self,
        options: Optional[QueryOptions] = None,
        language: Optional[str] = None,
    ) -> PageResult[ExpansionItem]:
        """
        One page of expansions (newest first by default), excluding
        online-only sets, each with its total_cards count.

        total_cards counts singles only. Sealed product rows share the
        cards table but are left out, so it can be lower than the number
        of rows carrying that expansion_id.

        language: "english" / "japanese" restricts by language code;
        anything else is ignored.
        """
        opts = options or QueryOptions(page_size=100, sort_by="release_date", sort_order="desc")
        lang_code = LANGUAGE_CODES.get((language or "").strip().lower())

        def load() -> PageResult[ExpansionItem]:
            predicates = [Predicate("is_online_only", "eq", False)]
            if lang_code:
                predicates.append(Predicate("language_code", "eq", lang_code))

            rows, total = self.repository.query_page(self.expansions_table, opts, predicates=predicates)
            counts = self._count_cards([r["id"] for r in rows])
            items = [
                expansion_row_to_item(
                    r,
                    game_id=self.game_id,
                    source=self.expansions_table,
                    total_cards=counts.get(r["id"], 0),
                )
                for r in rows
            ]
            return PageResult(data=items, total=total, page=opts.page, page_size=opts.page_size)

        key = self._key("expansions", options=opts, language=lang_code)
        return self.caches.cached("expansion", key, load, store_if=worth_caching)

    def _count_cards(self, expansion_ids: Sequence[str]) -> Dict[str, int]:
        """
        Card count per expansion, all queries in flight at once.
        Waits for every count; a failed one is 0 and does not affect the rest.
        """
        if not expansion_ids:
            return {}

        counts: Dict[str, int] = {}
        workers = min(self.count_workers, len(expansion_ids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="expansion-count") as pool:
            futures = {
                pool.submit(self.repository.count, self.cards_table, self._single_predicates(eid)): eid
                for eid in expansion_ids
            }
            for fut in as_completed(futures):
                eid = futures[fut]
                try:
                    counts[eid] = fut.result()
                except Exception:
                    log.warning("card count for expansion %s failed; using 0", eid, exc_info=True)
                    counts[eid] = 0
        return counts

    # --- sealed products -------------------------------------------------------

    def _sealed_predicates(self) -> List[Predicate]:
        preds = [Predicate("supertype", "eq", SEALED_SUPERTYPE)]
        preds += [Predicate("name", "not_ilike", term) for term in SEALED_EXCLUDED_TERMS]
        return preds

    def search_sealed_products(
        self,
        query: str,
        options: Optional[QueryOptions] = None,
    ) -> PageResult[CatalogItem]:
        opts = (options or QueryOptions()).with_changes(search=query)
        if not self.has_feature("sealed"):
            return empty_page(opts)

        def load() -> PageResult[CatalogItem]:
            rows, total = self.repository.query_page(
                self.sealed_table, opts,
                predicates=self._sealed_predicates(),
                search_fields=SEALED_SEARCH_FIELDS,
            )
            return self._page(rows, total, opts, self._sealed)

        return self.caches.cached("sealed", self._key("sealed", query, options=opts), load, store_if=worth_caching)

    def get_sealed_products_by_expansion(
        self,
        expansion_id: str,
        options: Optional[QueryOptions] = None,
    ) -> PageResult[CatalogItem]:
        opts = options or QueryOptions()
        if not self.has_feature("sealed"):
            return empty_page(opts)

        def load() -> PageResult[CatalogItem]:
            predicates = self._sealed_predicates() + [Predicate("expansion_id", "eq", expansion_id)]
            rows, total = self.repository.query_page(
                self.sealed_table, opts, predicates=predicates, search_fields=SEALED_SEARCH_FIELDS,
            )
            return self._page(rows, total, opts, self._sealed)

        key = self._key("expansion-sealed", expansion_id, options=opts)
        return self.caches.cached("sealed", key, load, store_if=worth_caching)

    # --- filter values ---------------------------------------------------------

    def get_available_rarities(self) -> List[str]:
        return self.repository.distinct_values(self.cards_table, "rarity")

    def get_available_types(self) -> List[str]:
        return list(ENERGY_TYPES)


__all__ = ["PokemonGameService", "ENERGY_TYPES", "LANGUAGE_CODES", "SEALED_EXCLUDED_TERMS"]
