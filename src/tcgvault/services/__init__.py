from .base import GameService
from .factory import ServiceFactory, build_default_factory
from .pokemon import PokemonGameService
from .remote import RemoteGameService

__all__ = [
    "GameService",
    "ServiceFactory",
    "build_default_factory",
    "PokemonGameService",
    "RemoteGameService",
]
