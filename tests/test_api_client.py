# tests/test_api_client.py
from __future__ import annotations

import pytest
import requests
import responses

from tcgvault.api_client import (
    CARD_ALIASES,
    PRICING_ALIASES,
    ApiError,
    PricingApiClient,
    normalize_list_response,
    unwrap_entity,
)

BASE = "https://api.example.test/v1"


# ---------- list normalization ----------

ROWS = [{"id": "a"}, {"id": "b"}]


@pytest.mark.parametrize("body,expected_total", [
    ({"data": ROWS, "total_count": 40}, 40),
    ({"data": ROWS, "totalCount": 41}, 41),
    ({"data": ROWS, "total": 42}, 42),
    ({"data": ROWS, "count": 43}, 43),
    ({"products": ROWS, "total": 44}, 44),
    ({"products": ROWS, "count": 45}, 45),
])
def test_each_alias_variant(body, expected_total):
    payload = normalize_list_response(body, page=1, page_size=2)
    assert [r["id"] for r in payload.data] == ["a", "b"]
    assert payload.total == expected_total


def test_aliases_are_checked_in_order():
    body = {"data": ROWS, "products": [{"id": "x"}], "total_count": 10, "totalCount": 20, "total": 30, "count": 40}
    payload = normalize_list_response(body)
    assert [r["id"] for r in payload.data] == ["a", "b"]
    assert payload.total == 10


def test_zero_total_under_earlier_alias_is_skipped():
    payload = normalize_list_response({"data": [{"id": 1}], "total_count": 0, "total": 9})
    assert payload.total == 9


def test_null_alias_is_skipped():
    payload = normalize_list_response({"data": ROWS, "total_count": None, "total": 9})
    assert payload.total == 9


def test_missing_total_is_zero():
    assert normalize_list_response({"data": [{}, {}]}).total == 0
    assert normalize_list_response({"data": ROWS, "total_count": 0, "totalCount": None}).total == 0


def test_page_and_page_size_aliases():
    payload = normalize_list_response({"data": ROWS, "page": 3, "pageSize": 2}, page=1, page_size=30)
    assert (payload.page, payload.page_size) == (3, 2)

    payload = normalize_list_response({"data": ROWS, "page_size": 5}, page=2, page_size=30)
    assert (payload.page, payload.page_size) == (2, 5)


def test_bare_array_and_garbage():
    payload = normalize_list_response(ROWS, page=1, page_size=10)
    assert payload.total == 2

    empty = normalize_list_response("oops", page=4, page_size=10)
    assert empty.data == []
    assert empty.total == 0
    assert empty.page == 4


# ---------- entity unwrapping ----------

def test_unwrap_entity_variants():
    assert unwrap_entity({"data": {"id": "a"}}, CARD_ALIASES) == {"id": "a"}
    assert unwrap_entity({"card": {"id": "b"}}, CARD_ALIASES) == {"id": "b"}
    assert unwrap_entity({"id": "c", "name": "bare"}, CARD_ALIASES) == {"id": "c", "name": "bare"}
    assert unwrap_entity({"pricing": {"raw": {}}}, PRICING_ALIASES) == {"raw": {}}
    assert unwrap_entity(None) is None
    assert unwrap_entity([1, 2]) is None


# ---------- HTTP client ----------

@pytest.fixture
def client():
    return PricingApiClient(BASE, "secret-token", "pokemon", timeout=5)


def test_base_url_required():
    with pytest.raises(ValueError):
        PricingApiClient("", "t", "pokemon")


@responses.activate
def test_search_sends_auth_and_params(client):
    responses.add(
        responses.GET,
        f"{BASE}/pokemon/search/cards",
        json={"data": ROWS, "total_count": 2},
        status=200,
    )

    body = client.search_cards({"q": "pikachu", "page": 1, "pageSize": 20, "rarity": None})

    assert body["total_count"] == 2
    call = responses.calls[0]
    assert call.request.headers["Authorization"] == "Bearer secret-token"
    assert "q=pikachu" in call.request.url
    assert "pageSize=20" in call.request.url
    assert "rarity" not in call.request.url


@responses.activate
def test_entity_paths(client):
    responses.add(responses.GET, f"{BASE}/pokemon/cards/sv1-1", json={"data": {"id": "sv1-1"}})
    responses.add(responses.GET, f"{BASE}/pokemon/cards/sv1-1/pricing", json={"pricing": {"raw": {"market": 1}}})
    responses.add(responses.GET, f"{BASE}/pokemon/expansions/sv1/sealed", json={"products": []})
    responses.add(responses.GET, f"{BASE}/pokemon/sealed", json={"data": []})
    responses.add(responses.GET, f"{BASE}/pokemon/expansions", json={"data": []})

    assert client.get_card("sv1-1") == {"data": {"id": "sv1-1"}}
    assert client.get_card_pricing("sv1-1") == {"pricing": {"raw": {"market": 1}}}
    assert client.list_expansion_sealed("sv1", {}) == {"products": []}
    assert client.search_sealed({"q": "box"}) == {"data": []}
    assert client.list_expansions({}) == {"data": []}


@responses.activate
def test_404_on_entity_is_none(client):
    responses.add(responses.GET, f"{BASE}/pokemon/cards/missing", json={"error": "not found"}, status=404)
    assert client.get_card("missing") is None


@responses.activate
def test_404_on_list_is_an_error(client):
    responses.add(responses.GET, f"{BASE}/pokemon/search/cards", status=404)
    with pytest.raises(ApiError) as exc:
        client.search_cards({})
    assert exc.value.status == 404


@responses.activate
def test_server_error_raises(client):
    responses.add(responses.GET, f"{BASE}/pokemon/expansions", status=500)
    with pytest.raises(ApiError) as exc:
        client.list_expansions({})
    assert exc.value.status == 500


@responses.activate
def test_non_json_body_raises(client):
    responses.add(responses.GET, f"{BASE}/pokemon/sealed", body="<html>maintenance</html>", status=200)
    with pytest.raises(ApiError):
        client.search_sealed({})


@responses.activate
def test_connection_error_raises(client):
    responses.add(responses.GET, f"{BASE}/pokemon/sealed", body=requests.ConnectionError("refused"))
    with pytest.raises(ApiError):
        client.search_sealed({})
