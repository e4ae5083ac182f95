from __future__ import annotations

from typing import Dict, List, Mapping, Optional

import requests
from sqlalchemy.orm import sessionmaker

from .. import db
from ..api_client import PricingApiClient
from ..cache import CacheNamespaces, CacheStats
from ..config import (
    BACKEND_API,
    DEFAULT_GAME_ID,
    GameServiceConfig,
    Settings,
    get_enabled_games,
)
from ..logging import get_logger
from ..repos import CatalogRepository
from .base import GameService
from .pokemon import PokemonGameService
from .remote import RemoteGameService, remote_caches


"""
Maps game ids to game services.

ServiceFactory never fails a lookup: an unknown or unsupported game id gets
the default game's service and a logged warning. Callers that need to know
whether a game is really supported ask is_supported() first.

build_default_factory() wires the services for one Settings snapshot.
"""

log = get_logger("services.factory")

# games with a database service implementation
DATABASE_SERVICES = {"pokemon": PokemonGameService}

# games the remote API serves
REMOTE_GAMES = frozenset({"pokemon"})


class ServiceFactory:
    def __init__(self, services: Mapping[str, GameService], default_game_id: str = DEFAULT_GAME_ID):
        if default_game_id not in services:
            raise ValueError(f"default game {default_game_id!r} has no service")
        self._services: Dict[str, GameService] = dict(services)
        self.default_game_id = default_game_id

    def is_supported(self, game_id: Optional[str]) -> bool:
        return bool(game_id) and game_id in self._services

    def get_service_for(self, game_id: Optional[str]) -> GameService:
        service = self._services.get(game_id or "")
        if service is None:
            log.warning("no service for game %r; using %r", game_id, self.default_game_id)
            return self._services[self.default_game_id]
        return service

    def supported_games(self) -> List[GameServiceConfig]:
        return [s.config for s in self._services.values()]

    def clear_all_caches(self) -> None:
        for s in self._services.values():
            s.clear_cache()

    def cache_stats(self) -> Dict[str, Dict[str, CacheStats]]:
        """game id -> namespace -> hit/miss/set/eviction counters."""
        return {game_id: s.caches.stats() for game_id, s in self._services.items()}


def _session_factory_for(settings: Settings):
    if not settings.database_url or settings.database_url == db.DATABASE_URL:
        return db.SessionLocal
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=db.make_engine(settings.database_url),
        expire_on_commit=False,
    )


def build_default_factory(
    settings: Settings,
    *,
    session_factory=None,
    http_session: Optional[requests.Session] = None,
) -> ServiceFactory:
    """
    Build one service per enabled game that has an implementation for the
    configured backend. Each service gets its own caches.
    """
    services: Dict[str, GameService] = {}

    if settings.backend == BACKEND_API:
        if not settings.api_base_url:
            raise ValueError("TCGVAULT_API_BASE_URL is required for the api backend")
        for game in get_enabled_games():
            if game.id not in REMOTE_GAMES:
                continue
            client = PricingApiClient(
                settings.api_base_url,
                settings.api_token,
                game.id,
                session=http_session,
                timeout=settings.api_timeout_seconds,
            )
            services[game.id] = RemoteGameService(game, client, remote_caches())
    else:
        repo = CatalogRepository(
            session_factory or _session_factory_for(settings),
            numeric_sort_cap=settings.numeric_sort_cap,
        )
        for game in get_enabled_games():
            cls = DATABASE_SERVICES.get(game.id)
            if cls is None:
                continue
            services[game.id] = cls(
                game,
                repo,
                CacheNamespaces(settings.cache_ttl_seconds),
                count_workers=settings.count_workers,
            )

    log.debug("services built for %s (%s backend)", sorted(services), settings.backend)
    return ServiceFactory(services, DEFAULT_GAME_ID)


__all__ = ["ServiceFactory", "build_default_factory"]
