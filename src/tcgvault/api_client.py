from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

from .logging import get_logger


"""
HTTP client for the remote pricing/search API.

- PricingApiClient: thin wrapper over a requests.Session with bearer auth.
  Every path lives under {base_url}/{game_id}.
- normalize_list_response(): list endpoints are not consistent about field
  names ("data" vs "products", "total_count" vs "totalCount" vs "total",
  and "count" on the sealed endpoints); this folds them into one ListPayload.
- unwrap_entity(): single-entity endpoints wrap the object in "data", "card"
  or "pricing", or return it bare.

Failures surface as ApiError; a 404 on an entity lookup is not a failure and
returns None.

version: 0.1.0
"""

log = get_logger("api")

USER_AGENT = "tcgvault/0.1"

DATA_ALIASES: tuple[str, ...] = ("data", "products")
TOTAL_ALIASES: tuple[str, ...] = ("total_count", "totalCount", "total", "count")
PAGE_SIZE_ALIASES: tuple[str, ...] = ("page_size", "pageSize")

CARD_ALIASES: tuple[str, ...] = ("data", "card")
PRICING_ALIASES: tuple[str, ...] = ("data", "pricing")


class ApiError(Exception):
    """Transport failure, non-2xx status, or a body that is not JSON."""

    def __init__(self, message: str, *, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.url = url


# --- response normalization ----------------------------------------------------

@dataclass(frozen=True)
class ListPayload:
    data: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 0


def _first_present(body: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    for key in aliases:
        value = body.get(key)
        if value is not None:
            return value
    return None


def _first_positive(body: Mapping[str, Any], aliases: Sequence[str]) -> int:
    # 0, null and junk all fall through to the next alias
    for key in aliases:
        value = _as_int(body.get(key), 0)
        if value > 0:
            return value
    return 0


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_list_response(body: Any, page: int = 1, page_size: int = 0) -> ListPayload:
    """
    Fold a list response into a ListPayload.

    The total is the first alias holding a positive number, so
    {"total_count": 0, "total": 9} has total 9; with none of them the total
    is 0. "count" is only sent by the sealed endpoints and is checked last.
    A bare JSON array is treated as the data with total = len(array).
    """
    if isinstance(body, list):
        rows = [r for r in body if isinstance(r, Mapping)]
        return ListPayload(data=[dict(r) for r in rows], total=len(rows), page=page, page_size=page_size)
    if not isinstance(body, Mapping):
        return ListPayload(page=page, page_size=page_size)

    raw = _first_present(body, DATA_ALIASES)
    rows = [dict(r) for r in raw if isinstance(r, Mapping)] if isinstance(raw, list) else []

    return ListPayload(
        data=rows,
        total=_first_positive(body, TOTAL_ALIASES),
        page=_as_int(body.get("page"), page),
        page_size=_as_int(_first_present(body, PAGE_SIZE_ALIASES), page_size),
    )


def unwrap_entity(body: Any, aliases: Sequence[str] = CARD_ALIASES) -> Optional[Dict[str, Any]]:
    """
    Return the entity object inside `body`, trying each wrapper key in order,
    else the body itself. Non-objects give None.
    """
    if not isinstance(body, Mapping):
        return None
    for key in aliases:
        inner = body.get(key)
        if isinstance(inner, Mapping):
            return dict(inner)
    return dict(body)


# --- client --------------------------------------------------------------------

class PricingApiClient:
    """
    Usage:
        client = PricingApiClient("https://api.example.com/v1", token, "pokemon")
        body = client.search_cards({"q": "pikachu", "page": 1, "page_size": 30})
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str],
        game_id: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 20.0,
    ):
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url.rstrip("/")
        self.game_id = game_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def url(self, path: str) -> str:
        return f"{self.base_url}/{self.game_id}/{path.lstrip('/')}"

    def _get(self, path: str, params: Optional[Mapping[str, Any]] = None, *, allow_404: bool = False) -> Any:
        url = self.url(path)
        clean = {k: v for k, v in (params or {}).items() if v is not None and v != ""}
        try:
            resp = self.session.get(url, params=clean, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(f"GET {url} failed: {e}", url=url) from e

        if allow_404 and resp.status_code == 404:
            log.debug("GET %s -> 404", url)
            return None
        if resp.status_code >= 400:
            raise ApiError(f"GET {url} -> HTTP {resp.status_code}", status=resp.status_code, url=url)

        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"GET {url} returned a non-JSON body", status=resp.status_code, url=url) from e

    # --- endpoints ----------------------------------------------------------

    def search_cards(self, params: Mapping[str, Any]) -> Any:
        return self._get("search/cards", params)

    def list_expansions(self, params: Mapping[str, Any]) -> Any:
        return self._get("expansions", params)

    def get_card(self, card_id: str) -> Any:
        return self._get(f"cards/{card_id}", allow_404=True)

    def get_card_pricing(self, card_id: str) -> Any:
        return self._get(f"cards/{card_id}/pricing", allow_404=True)

    def search_sealed(self, params: Mapping[str, Any]) -> Any:
        return self._get("sealed", params)

    def list_expansion_sealed(self, expansion_id: str, params: Mapping[str, Any]) -> Any:
        return self._get(f"expansions/{expansion_id}/sealed", params)


__all__ = [
    "PricingApiClient",
    "ApiError",
    "ListPayload",
    "normalize_list_response",
    "unwrap_entity",
    "CARD_ALIASES",
    "PRICING_ALIASES",
]
