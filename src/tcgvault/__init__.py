"""
tcgvault package initializer.

This sets up environment loading and exposes key classes/functions
for convenience imports.

version: 0.1.0
"""

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

# Re-export commonly used components
from .db import SessionLocal, engine, init_db
from .models import PokemonCard, PokemonExpansion
from .config import GAMES, GameServiceConfig, Settings, get_game_by_id
from .dto import CatalogItem, ExpansionItem, PageResult
from .repos import CardFilters, CatalogRepository, QueryOptions
from .api_client import PricingApiClient
from .services import GameService, ServiceFactory, build_default_factory
from . import importer

__all__ = [
    # DB
    "SessionLocal",
    "engine",
    "init_db",
    # Models
    "PokemonCard",
    "PokemonExpansion",
    # Config
    "GAMES",
    "GameServiceConfig",
    "Settings",
    "get_game_by_id",
    # View models
    "CatalogItem",
    "ExpansionItem",
    "PageResult",
    # Query
    "CardFilters",
    "CatalogRepository",
    "QueryOptions",
    # Services
    "PricingApiClient",
    "GameService",
    "ServiceFactory",
    "build_default_factory",
    "importer",
]
