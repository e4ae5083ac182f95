from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from ..api_client import (
    CARD_ALIASES,
    PRICING_ALIASES,
    ApiError,
    PricingApiClient,
    normalize_list_response,
    unwrap_entity,
)
from ..cache import CacheNamespaces, make_cache_key
from ..config import GameServiceConfig
from ..dto import (
    CatalogItem,
    ExpansionItem,
    PageResult,
    api_card_to_item,
    api_pricing_to_block,
    api_sealed_to_item,
    expansion_row_to_item,
)
from ..logging import get_logger
from ..pricing import PricingBlock
from ..repos import QueryOptions
from .base import empty_page, worth_caching
from .pokemon import LANGUAGE_CODES


"""
Game service backed by the remote pricing/search API.

Same contract as the database service. Remote calls are slower and
rate-limited, so each namespace keeps results longer than the database
service does.
"""

log = get_logger("services.remote")

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR

REMOTE_CACHE_TTLS: Dict[str, int] = {
    "search": 15 * MINUTE,
    "entity": 3 * DAY,
    "expansion": 7 * DAY,
    "pricing": DAY,
    "sealed": DAY,
}


def remote_caches() -> CacheNamespaces:
    return CacheNamespaces(REMOTE_CACHE_TTLS["search"], REMOTE_CACHE_TTLS)


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _truthy(value: Any) -> bool:
    # the API sends booleans, some exports send "true"/"1"
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


class RemoteGameService:
    def __init__(
        self,
        config: GameServiceConfig,
        client: PricingApiClient,
        caches: Optional[CacheNamespaces] = None,
    ):
        self.config = config
        self.client = client
        self.caches = caches or remote_caches()

    @property
    def game_id(self) -> str:
        return self.config.id

    def has_feature(self, feature: str) -> bool:
        return self.config.has_feature(feature)

    def clear_cache(self) -> None:
        self.caches.clear()

    def _key(self, operation: str, *parts, **options) -> str:
        return make_cache_key(self.game_id, operation, *parts, **options)

    # --- request helpers -------------------------------------------------------

    def _params(self, opts: QueryOptions, **extra: Any) -> Dict[str, Any]:
        f = opts.filters
        params: Dict[str, Any] = {
            "q": opts.search,
            "page": opts.page,
            "pageSize": opts.page_size,
            "sortBy": opts.sort_by,
            "sortOrder": opts.sort_order,
            "rarity": f.rarity,
            "supertype": f.supertype,
            "artist": f.artist,
            "type": f.types,
            "subtype": f.subtypes,
        }
        params.update(extra)
        return params

    def _list(
        self,
        fetch: Callable[[], Any],
        opts: QueryOptions,
        formatter: Callable[[Mapping[str, Any]], Any],
        *,
        keep: Optional[Callable[[Mapping[str, Any]], bool]] = None,
    ) -> PageResult:
        """
        Run one list request and shape it as a PageResult.

        The page size is the requested one, or the server's when it pages
        smaller; rows beyond it are dropped. Rows rejected by `keep` are
        dropped too and taken off the total.
        """
        try:
            body = fetch()
        except ApiError as e:
            log.warning("remote list request failed: %s", e)
            return empty_page(opts)

        payload = normalize_list_response(body, opts.page, opts.page_size)
        page_size = opts.page_size
        if 0 < payload.page_size < page_size:
            page_size = payload.page_size

        rows = payload.data
        if len(rows) > page_size:
            log.warning("remote page has %d rows for page size %d; truncating", len(rows), page_size)
            rows = rows[:page_size]

        total = payload.total
        if keep is not None:
            kept = [r for r in rows if keep(r)]
            total = max(total - (len(rows) - len(kept)), len(kept))
            rows = kept

        return PageResult(
            data=[formatter(r) for r in rows],
            total=total,
            page=payload.page or opts.page,
            page_size=page_size,
        )

    def _card(self, row: Mapping[str, Any]) -> CatalogItem:
        return api_card_to_item(row, game_id=self.game_id)

    def _sealed(self, row: Mapping[str, Any]) -> CatalogItem:
        return api_sealed_to_item(row, game_id=self.game_id)

    # --- cards -----------------------------------------------------------------

    def search_cards(self, query: str, options: Optional[QueryOptions] = None) -> PageResult[CatalogItem]:
        opts = (options or QueryOptions()).with_changes(search=query)

        def load() -> PageResult[CatalogItem]:
            return self._list(lambda: self.client.search_cards(self._params(opts)), opts, self._card)

        return self.caches.cached("search", self._key("search", query, options=opts), load, store_if=worth_caching)

    def get_cards_by_expansion(
        self,
        expansion_id: str,
        options: Optional[QueryOptions] = None,
    ) -> PageResult[CatalogItem]:
        opts = options or QueryOptions(sort_by="number")

        def load() -> PageResult[CatalogItem]:
            params = self._params(opts, expansionId=expansion_id)
            return self._list(lambda: self.client.search_cards(params), opts, self._card)

        key = self._key("expansion-cards", expansion_id, options=opts)
        return self.caches.cached("search", key, load, store_if=worth_caching)

    def get_card_by_id(self, card_id: str) -> Optional[CatalogItem]:
        def load() -> Optional[CatalogItem]:
            try:
                body = self.client.get_card(card_id)
            except ApiError as e:
                log.warning("card %s lookup failed: %s", card_id, e)
                return None
            entity = unwrap_entity(body, CARD_ALIASES)
            return self._card(entity) if entity else None

        return self.caches.cached("entity", self._key("card", card_id), load)

    def get_pricing(self, card_id: str) -> Optional[PricingBlock]:
        if not self.has_feature("pricing"):
            return None

        def load() -> Optional[PricingBlock]:
            try:
                body = self.client.get_card_pricing(card_id)
            except ApiError as e:
                log.warning("pricing %s lookup failed: %s", card_id, e)
                return None
            entity = unwrap_entity(body, PRICING_ALIASES)
            return api_pricing_to_block(entity) if entity else None

        return self.caches.cached("pricing", self._key("pricing", card_id), load)

    # --- expansions ------------------------------------------------------------

    def get_expansions(
        self,
        options: Optional[QueryOptions] = None,
        language: Optional[str] = None,
    ) -> PageResult[ExpansionItem]:
        """
        Online-only expansions are dropped here, as the database service
        does. total_cards comes from the expansion's own 'total' (or
        'printed_total') field; no extra requests are made.
        """
        opts = options or QueryOptions(page_size=100, sort_by="release_date", sort_order="desc")
        lang_code = LANGUAGE_CODES.get((language or "").strip().lower())

        def to_item(row: Mapping[str, Any]) -> ExpansionItem:
            return expansion_row_to_item(
                row,
                game_id=self.game_id,
                source="api",
                total_cards=_int(row.get("total") if row.get("total") is not None else row.get("printed_total")),
            )

        def load() -> PageResult[ExpansionItem]:
            params = {
                "page": opts.page,
                "pageSize": opts.page_size,
                "sortBy": opts.sort_by,
                "sortOrder": opts.sort_order,
                "q": opts.search,
                "language_code": lang_code,
            }
            return self._list(
                lambda: self.client.list_expansions(params), opts, to_item,
                keep=lambda row: not _truthy(row.get("is_online_only")),
            )

        key = self._key("expansions", options=opts, language=lang_code)
        return self.caches.cached("expansion", key, load, store_if=worth_caching)

    # --- sealed products -------------------------------------------------------

    def search_sealed_products(
        self,
        query: str,
        options: Optional[QueryOptions] = None,
    ) -> PageResult[CatalogItem]:
        opts = (options or QueryOptions()).with_changes(search=query)
        if not self.has_feature("sealed"):
            return empty_page(opts)

        def load() -> PageResult[CatalogItem]:
            params = {"q": opts.search, "page": opts.page, "pageSize": opts.page_size}
            return self._list(lambda: self.client.search_sealed(params), opts, self._sealed)

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
            params = {"page": opts.page, "pageSize": opts.page_size}
            return self._list(
                lambda: self.client.list_expansion_sealed(expansion_id, params), opts, self._sealed,
            )

        key = self._key("expansion-sealed", expansion_id, options=opts)
        return self.caches.cached("sealed", key, load, store_if=worth_caching)


__all__ = ["RemoteGameService", "REMOTE_CACHE_TTLS", "remote_caches"]
