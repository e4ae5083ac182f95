# tcgvault/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


"""
Configuration for tcgvault.

Two kinds of configuration live here:

- GameServiceConfig: the static, per-game descriptor (table names and
  feature flags). The registry GAMES is built once at import time and is
  read-only afterwards.
- Settings: runtime knobs read from the environment (database URL, which
  backend to use, remote API credentials, cache TTL, numeric sort cap).

version: 0.1.0
"""


# ---------------------------------------------------------------------------
# Per-game descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GameServiceConfig:
    """
    Static descriptor for one trading card game.

    `databases` maps logical names ("cards", "expansions", "sealed") to
    backend table names. `features` holds capability flags; a service must
    not offer a capability whose flag is absent or False.
    """
    id: str
    name: str
    slug: str
    enabled: bool
    category_id: Optional[int]
    databases: Mapping[str, str] = field(default_factory=dict)
    features: Mapping[str, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # freeze the nested mappings as well
        object.__setattr__(self, "databases", MappingProxyType(dict(self.databases)))
        object.__setattr__(self, "features", MappingProxyType(dict(self.features)))

    def has_feature(self, feature: str) -> bool:
        return self.features.get(feature) is True

    def table(self, logical_name: str) -> Optional[str]:
        return self.databases.get(logical_name)


POKEMON = GameServiceConfig(
    id="pokemon",
    name="Pokémon",
    slug="pokemon",
    enabled=True,
    category_id=3,  # TCGplayer category
    databases={
        "cards": "pokemon_cards",
        "expansions": "pokemon_expansions",
        "sealed": "pokemon_cards",  # sealed products share the cards table
    },
    features={
        "singles": True,
        "sealed": True,
        "graded": True,
        "pricing": True,
        "trends": True,
        "expansions": True,
    },
)

MAGIC = GameServiceConfig(
    id="magic",
    name="Magic: The Gathering",
    slug="magic",
    enabled=False,
    category_id=1,
    databases={
        "cards": "magic_cards",
        "expansions": "magic_sets",
        "sealed": "magic_sealed",
    },
    features={
        "singles": True,
        "sealed": True,
        "graded": False,
        "pricing": True,
        "trends": True,
        "expansions": True,
    },
)

LORCANA = GameServiceConfig(
    id="lorcana",
    name="Disney Lorcana",
    slug="lorcana",
    enabled=False,
    category_id=26,
    databases={
        "cards": "lorcana_cards",
        "expansions": "lorcana_sets",
        "sealed": "lorcana_sealed",
    },
    features={
        "singles": True,
        "sealed": True,
        "graded": False,
        "pricing": True,
        "trends": False,
        "expansions": True,
    },
)

GUNDAM = GameServiceConfig(
    id="gundam",
    name="Gundam Card Game",
    slug="gundam",
    enabled=False,
    category_id=None,
    databases={
        "cards": "gundam_cards",
        "expansions": "gundam_sets",
        "sealed": "gundam_sealed",
    },
    features={
        "singles": True,
        "sealed": True,
        "graded": False,
        "pricing": False,
        "trends": False,
        "expansions": True,
    },
)

OTHER = GameServiceConfig(
    id="other",
    name="Other",
    slug="other",
    enabled=True,
    category_id=None,
    databases={"items": "items"},
    features={
        "singles": False,
        "sealed": False,
        "graded": False,
        "pricing": False,
        "trends": False,
        "expansions": False,
        "custom": True,
    },
)

# id -> descriptor, in display order
GAMES: Mapping[str, GameServiceConfig] = MappingProxyType({
    g.id: g for g in (POKEMON, MAGIC, LORCANA, GUNDAM, OTHER)
})

DEFAULT_GAME_ID = POKEMON.id


def get_game_by_id(game_id: str | None) -> Optional[GameServiceConfig]:
    if not game_id:
        return None
    return GAMES.get(game_id)


def get_game_by_slug(slug: str | None) -> Optional[GameServiceConfig]:
    if not slug:
        return None
    return next((g for g in GAMES.values() if g.slug == slug), None)


def get_enabled_games() -> list[GameServiceConfig]:
    return [g for g in GAMES.values() if g.enabled]


def game_has_feature(game_id: str, feature: str) -> bool:
    game = get_game_by_id(game_id)
    return bool(game and game.has_feature(feature))


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------

BACKEND_DATABASE = "database"
BACKEND_API = "api"

DEFAULT_CACHE_TTL_SECONDS = 5 * 60
DEFAULT_NUMERIC_SORT_CAP = 1000


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """
    Snapshot of runtime configuration. Build with Settings.from_env().
    """
    database_url: Optional[str] = None
    backend: str = BACKEND_DATABASE
    api_base_url: Optional[str] = None
    api_token: Optional[str] = None
    api_timeout_seconds: float = 20.0
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    numeric_sort_cap: int = DEFAULT_NUMERIC_SORT_CAP
    count_workers: int = 8
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        backend = (os.getenv("TCGVAULT_BACKEND") or BACKEND_DATABASE).strip().lower()
        if backend not in (BACKEND_DATABASE, BACKEND_API):
            raise ValueError(
                f"TCGVAULT_BACKEND must be {BACKEND_DATABASE!r} or {BACKEND_API!r}, got {backend!r}"
            )
        return cls(
            database_url=os.getenv("DATABASE_URL") or None,
            backend=backend,
            api_base_url=os.getenv("TCGVAULT_API_BASE_URL") or None,
            api_token=os.getenv("TCGVAULT_API_TOKEN") or None,
            cache_ttl_seconds=_env_int("TCGVAULT_CACHE_TTL", DEFAULT_CACHE_TTL_SECONDS),
            numeric_sort_cap=_env_int("TCGVAULT_NUMERIC_SORT_CAP", DEFAULT_NUMERIC_SORT_CAP),
            count_workers=_env_int("TCGVAULT_COUNT_WORKERS", 8),
            log_level=os.getenv("TCGVAULT_LOG_LEVEL", "INFO"),
        )


__all__ = [
    "GameServiceConfig",
    "GAMES",
    "DEFAULT_GAME_ID",
    "POKEMON",
    "get_game_by_id",
    "get_game_by_slug",
    "get_enabled_games",
    "game_has_feature",
    "Settings",
    "BACKEND_DATABASE",
    "BACKEND_API",
]
