# tcgvault/cache.py
from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .logging import get_logger


"""
Short-lived in-memory cache for service results.

- TTLCache: key -> (value, timestamp) with one fixed time-to-live.
  Entries are evicted lazily when looked up after expiry; there is no
  background sweep.
- make_cache_key: deterministic key from (game id, operation, options).
- CacheNamespaces: one TTLCache per logical namespace (search, entity,
  expansion, pricing, sealed), owned by a single service.

version: 0.1.0
"""

log = get_logger("cache")

DEFAULT_TTL_SECONDS = 5 * 60

NAMESPACES = ("search", "entity", "expansion", "pricing", "sealed")


# --- key derivation ------------------------------------------------------------

def _plain(value: Any) -> Any:
    """Convert dataclasses (and containers of them) to JSON-friendly values."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_plain(v) for v in value]
        return sorted(items, key=repr) if isinstance(value, (set, frozenset)) else items
    return value


def make_cache_key(game_id: str, operation: str, *parts: Any, **options: Any) -> str:
    """
    Build a cache key from every input value.

    Options are serialized with sorted keys (nested filter lists included),
    so two logically identical queries always produce the same key and two
    different option sets never do.
    """
    payload = {"parts": _plain(list(parts)), "options": _plain(options)}
    body = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return f"{game_id}:{operation}:{body}"


# --- TTLCache ------------------------------------------------------------------

@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    sets: int = 0
    evictions: int = 0


class TTLCache:
    """
    Map with a fixed expiry. An entry is visible only while
    `now - timestamp < ttl_seconds`.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, tuple[Any, float]] = {}
        self.stats = CacheStats()

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self.stats.misses += 1
            return None

        value, stamp = entry
        if self._clock() - stamp >= self.ttl_seconds:
            # expired: treat as absent and drop it
            self._entries.pop(key, None)
            self.stats.evictions += 1
            self.stats.misses += 1
            return None

        self.stats.hits += 1
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock())
        self.stats.sets += 1

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# --- namespaces ----------------------------------------------------------------

class CacheNamespaces:
    """
    One TTLCache per namespace. `ttl_overrides` sets a different TTL for
    specific namespaces; everything else uses `default_ttl`.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        ttl_overrides: Optional[Mapping[str, float]] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        overrides = dict(ttl_overrides or {})
        unknown = set(overrides) - set(NAMESPACES)
        if unknown:
            raise ValueError(f"unknown cache namespace(s): {', '.join(sorted(unknown))}")
        self._caches: Dict[str, TTLCache] = {
            ns: TTLCache(overrides.get(ns, default_ttl), clock=clock)
            for ns in NAMESPACES
        }

    def __getitem__(self, namespace: str) -> TTLCache:
        return self._caches[namespace]

    def cached(
        self,
        namespace: str,
        key: str,
        loader: Callable[[], Any],
        *,
        store_if: Callable[[Any], bool] = lambda v: v is not None,
    ) -> Any:
        """
        Return the cached value for `key`, or run `loader`, store its result
        (when `store_if` accepts it) and return it.
        """
        cache = self._caches[namespace]
        hit = cache.get(key)
        if hit is not None:
            log.debug("cache hit %s %s", namespace, key)
            return hit
        value = loader()
        if store_if(value):
            cache.set(key, value)
        return value

    def clear(self) -> None:
        for cache in self._caches.values():
            cache.clear()

    def stats(self) -> Dict[str, CacheStats]:
        return {ns: c.stats for ns, c in self._caches.items()}


__all__ = [
    "TTLCache",
    "CacheStats",
    "CacheNamespaces",
    "make_cache_key",
    "NAMESPACES",
    "DEFAULT_TTL_SECONDS",
]
