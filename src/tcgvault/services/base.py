from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ..cache import CacheNamespaces
from ..config import GameServiceConfig
from ..dto import CatalogItem, ExpansionItem, PageResult
from ..pricing import PricingBlock
from ..repos import QueryOptions


"""
Game service contract.

Every game service, whatever its backend, exposes this capability set.
Optional capabilities (sealed products) are gated on the game's feature
flags; calling one the game does not support returns an empty page instead
of raising.

Shared behaviour is composed in (CacheNamespaces, the helpers below) rather
than inherited.
"""


@runtime_checkable
class GameService(Protocol):
    config: GameServiceConfig
    caches: CacheNamespaces

    @property
    def game_id(self) -> str: ...

    def has_feature(self, feature: str) -> bool: ...

    def search_cards(self, query: str, options: Optional[QueryOptions] = None) -> PageResult[CatalogItem]: ...

    def get_card_by_id(self, card_id: str) -> Optional[CatalogItem]: ...

    def get_expansions(
        self,
        options: Optional[QueryOptions] = None,
        language: Optional[str] = None,
    ) -> PageResult[ExpansionItem]: ...

    def get_cards_by_expansion(
        self,
        expansion_id: str,
        options: Optional[QueryOptions] = None,
    ) -> PageResult[CatalogItem]: ...

    def get_pricing(self, card_id: str) -> Optional[PricingBlock]: ...

    def search_sealed_products(
        self,
        query: str,
        options: Optional[QueryOptions] = None,
    ) -> PageResult[CatalogItem]: ...

    def get_sealed_products_by_expansion(
        self,
        expansion_id: str,
        options: Optional[QueryOptions] = None,
    ) -> PageResult[CatalogItem]: ...

    def clear_cache(self) -> None: ...


# --- shared helpers ------------------------------------------------------------

def empty_page(options: QueryOptions) -> PageResult:
    return PageResult.empty(options.page, options.page_size)


def worth_caching(result: Optional[PageResult]) -> bool:
    """
    Empty pages are not cached: a backend failure looks the same as an
    empty result, and caching it would hide recovery for a whole TTL.
    """
    return result is not None and result.total > 0


__all__ = ["GameService", "empty_page", "worth_caching"]
