# tests/test_pokemon_service.py
from __future__ import annotations

from dataclasses import replace

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from tcgvault.cache import CacheNamespaces
from tcgvault.config import POKEMON
from tcgvault.db import make_engine
from tcgvault.dto import ITEM_SEALED, ITEM_SINGLE
from tcgvault.models import Base
from tcgvault.repos import CardFilters, CatalogRepository, Predicate, QueryOptions
from tcgvault.services.base import GameService
from tcgvault.services.pokemon import ENERGY_TYPES, PokemonGameService


# ---------- fixtures ----------

@pytest.fixture(scope="function")
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'catalog.db'}")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def repo(session_factory):
    return CatalogRepository(session_factory=session_factory)


@pytest.fixture
def service(repo):
    return PokemonGameService(POKEMON, repo, CacheNamespaces(300))


def seed_catalog(repo: CatalogRepository) -> None:
    repo.upsert_rows("pokemon_expansions", [
        {"id": "sv1", "name": "SV01: Scarlet & Violet", "series": "Scarlet & Violet",
         "release_date": "2023-03-31", "language_code": "en"},
        {"id": "sv2", "name": "SV02: Paldea Evolved", "series": "Scarlet & Violet",
         "release_date": "2023-06-09", "language_code": "en"},
        {"id": "sv3", "name": "SV03: Obsidian Flames", "series": "Scarlet & Violet",
         "release_date": "2023-08-11", "language_code": "en"},
        {"id": "sv1-ja", "name": "Scarlet ex", "release_date": "2023-01-20", "language_code": "ja"},
        {"id": "tcgl", "name": "TCG Live Promos", "release_date": "2024-01-01",
         "language_code": "en", "is_online_only": True},
    ])
    repo.upsert_rows("pokemon_cards", [
        {"id": "sv1-10", "name": "Pawmi - 010/198", "number": "10", "rarity": "Common",
         "supertype": "Pokémon", "types": ["Lightning"], "expansion_id": "sv1",
         "expansion_name": "SV01: Scarlet & Violet", "market_price": 0.15},
        {"id": "sv1-2", "name": "Pineco", "number": "2", "rarity": "Common",
         "supertype": "Pokémon", "types": ["Grass"], "expansion_id": "sv1",
         "expansion_name": "SV01: Scarlet & Violet", "raw_market": 0.1},
        {"id": "sv1-1", "name": "Pikachu ex", "number": "1", "rarity": "Double Rare",
         "supertype": "Pokémon", "types": ["Lightning"], "expansion_id": "sv1",
         "expansion_name": "SV01: Scarlet & Violet", "raw_market": 3.5, "graded_market": 45.0,
         "raw_trend_30d_percent": -4.0, "artist": "5ban Graphics"},
        {"id": "sv2-1", "name": "Pikachu", "number": "1", "rarity": "Common",
         "supertype": "Pokémon", "types": ["Lightning"], "expansion_id": "sv2",
         "expansion_name": "SV02: Paldea Evolved"},
        {"id": "sv3-125", "name": "Charizard ex - 125/197", "number": "125", "rarity": "Double Rare",
         "supertype": "Pokémon", "types": ["Darkness"], "expansion_id": "sv3",
         "expansion_name": "SV03: Obsidian Flames", "raw_market": 7.5},
        {"id": "sv1-bb", "name": "Scarlet & Violet Booster Box", "supertype": "Sealed Product",
         "expansion_id": "sv1", "expansion_name": "SV01: Scarlet & Violet",
         "flavor_text": "36 booster packs", "market_price": 129.99},
        {"id": "sv1-etb", "name": "Scarlet & Violet Elite Trainer Box", "supertype": "Sealed Product",
         "expansion_id": "sv1", "flavor_text": "9 booster packs", "market_price": 49.99},
        {"id": "sv1-code", "name": "Code Card - Scarlet & Violet Pikachu", "supertype": "Sealed Product",
         "expansion_id": "sv1"},
        {"id": "sv2-bb", "name": "Paldea Evolved Booster Box (Digital)", "supertype": "Sealed Product",
         "expansion_id": "sv2"},
    ])


class ExplodingRepository:
    """Fails the test if the service touches the backend."""

    def __getattr__(self, name):
        raise AssertionError(f"backend was called: {name}")


# ---------- contract ----------

def test_service_satisfies_contract(service):
    assert isinstance(service, GameService)
    assert service.game_id == "pokemon"
    assert service.has_feature("sealed")
    assert not service.has_feature("custom")


# ---------- cards ----------

def test_search_cards_excludes_sealed(service, repo):
    seed_catalog(repo)
    result = service.search_cards("Scarlet")

    assert result.total == 3
    assert {c.id for c in result.data} == {"sv1-10", "sv1-2", "sv1-1"}
    assert all(c.item_kind == ITEM_SINGLE for c in result.data)
    assert all(c.expansion_name == "Scarlet & Violet" for c in result.data)


def test_search_cards_by_name_with_filters(service, repo):
    seed_catalog(repo)

    result = service.search_cards("pika")
    assert {c.id for c in result.data} == {"sv1-1", "sv2-1"}

    opts = QueryOptions(filters=CardFilters(rarity="Double Rare"))
    result = service.search_cards("pika", opts)
    assert [c.id for c in result.data] == ["sv1-1"]

    opts = QueryOptions(filters=CardFilters(types="Grass"))
    result = service.search_cards("", opts)
    assert [c.id for c in result.data] == ["sv1-2"]


def test_search_cards_by_artist_and_number(service, repo):
    seed_catalog(repo)
    assert [c.id for c in service.search_cards("5ban").data] == ["sv1-1"]
    assert {c.id for c in service.search_cards("10").data} == {"sv1-10"}


def test_search_cards_pages(service, repo):
    seed_catalog(repo)
    first = service.search_cards("", QueryOptions(page=1, page_size=3))
    second = service.search_cards("", QueryOptions(page=2, page_size=3))
    assert first.total == second.total == 5
    assert first.has_more is True
    assert second.has_more is False
    assert len(first.data) + len(second.data) == 5


def test_get_card_by_id(service, repo):
    seed_catalog(repo)
    card = service.get_card_by_id("sv1-10")
    assert card.name == "Pawmi"
    assert card.market_value == 0.15
    assert card.market_value_cents == 15
    assert card.source == "pokemon_cards"
    assert service.get_card_by_id("nope") is None


def test_get_cards_by_expansion_uses_number_order(service, repo):
    seed_catalog(repo)
    result = service.get_cards_by_expansion("sv1")
    assert [c.number for c in result.data] == ["1", "2", "10"]
    assert result.total == 3


def test_get_cards_by_expansion_with_rarity(service, repo):
    seed_catalog(repo)
    opts = QueryOptions(sort_by="number", filters=CardFilters(rarity="Common"))
    result = service.get_cards_by_expansion("sv1", opts)
    assert [c.id for c in result.data] == ["sv1-2", "sv1-10"]


def test_get_pricing(service, repo):
    seed_catalog(repo)
    pricing = service.get_pricing("sv1-1")
    assert pricing.raw.market == 3.5
    assert pricing.raw.trends.days_30 == -4.0
    assert pricing.graded.market == 45.0
    assert service.get_pricing("nope") is None


def test_pricing_feature_off_returns_none(repo):
    config = replace(POKEMON, features={**POKEMON.features, "pricing": False})
    service = PokemonGameService(config, ExplodingRepository())
    assert service.get_pricing("sv1-1") is None


# ---------- expansions ----------

def test_get_expansions_defaults(service, repo):
    seed_catalog(repo)
    result = service.get_expansions()

    assert [e.id for e in result.data] == ["sv3", "sv2", "sv1", "sv1-ja"]
    assert result.total == 4
    by_id = {e.id: e for e in result.data}
    assert by_id["sv1"].name == "Scarlet & Violet"
    assert by_id["sv1"].total_cards == 3
    assert by_id["sv2"].total_cards == 1
    assert by_id["sv3"].total_cards == 1


def test_expansion_card_count_leaves_out_sealed_rows(service, repo):
    seed_catalog(repo)
    rows_for_sv1 = service.repository.count(service.cards_table, [Predicate("expansion_id", "eq", "sv1")])

    sv1 = next(e for e in service.get_expansions().data if e.id == "sv1")
    assert rows_for_sv1 == 6
    assert sv1.total_cards == 3


def test_get_expansions_language_filter(service, repo):
    seed_catalog(repo)
    ja = service.get_expansions(language="japanese")
    assert [e.id for e in ja.data] == ["sv1-ja"]

    en = service.get_expansions(language="English")
    assert {e.id for e in en.data} == {"sv1", "sv2", "sv3"}


def test_failed_count_degrades_only_its_expansion(service, repo, monkeypatch):
    seed_catalog(repo)
    real_count = repo.count

    def flaky_count(table, predicates=()):
        if any(p.value == "sv2" for p in predicates):
            raise OperationalError("SELECT count(*)", {}, Exception("connection reset"))
        return real_count(table, predicates)

    monkeypatch.setattr(repo, "count", flaky_count)

    opts = QueryOptions(page=1, page_size=3, sort_by="release_date", sort_order="asc")
    result = service.get_expansions(opts, language="english")

    assert [e.id for e in result.data] == ["sv1", "sv2", "sv3"]
    counts = {e.id: e.total_cards for e in result.data}
    assert counts == {"sv1": 3, "sv2": 0, "sv3": 1}


def test_get_expansions_paging(service, repo):
    seed_catalog(repo)
    opts = QueryOptions(page=2, page_size=2, sort_by="release_date", sort_order="desc")
    result = service.get_expansions(opts)
    assert [e.id for e in result.data] == ["sv1", "sv1-ja"]
    assert result.total == 4
    assert result.has_more is False


# ---------- sealed ----------

def test_search_sealed_products_excludes_digital(service, repo):
    seed_catalog(repo)
    result = service.search_sealed_products("")
    assert [p.id for p in result.data] == ["sv1-bb", "sv1-etb"]
    assert all(p.item_kind == ITEM_SEALED for p in result.data)
    assert result.data[0].rarity == "Sealed"
    assert result.data[0].market_value == 129.99


def test_search_sealed_products_matches_flavor_text(service, repo):
    seed_catalog(repo)
    result = service.search_sealed_products("36 booster")
    assert [p.id for p in result.data] == ["sv1-bb"]


def test_sealed_products_by_expansion(service, repo):
    seed_catalog(repo)
    assert [p.id for p in service.get_sealed_products_by_expansion("sv1").data] == ["sv1-bb", "sv1-etb"]
    assert service.get_sealed_products_by_expansion("sv2").data == []


def test_sealed_feature_off_never_touches_backend():
    config = replace(POKEMON, features={**POKEMON.features, "sealed": False})
    service = PokemonGameService(config, ExplodingRepository())

    result = service.search_sealed_products("box", QueryOptions(page=2, page_size=10))
    assert result.data == []
    assert result.total == 0
    assert (result.page, result.page_size) == (2, 10)

    assert service.get_sealed_products_by_expansion("sv1").total == 0


# ---------- caching ----------

def test_results_are_served_from_cache(service, repo, monkeypatch):
    seed_catalog(repo)
    first = service.search_cards("pika")
    card = service.get_card_by_id("sv1-1")

    def boom(*args, **kwargs):
        raise AssertionError("cache miss")

    monkeypatch.setattr(repo, "query_page", boom)
    monkeypatch.setattr(repo, "fetch_one", boom)

    assert service.search_cards("pika") == first
    assert service.get_card_by_id("sv1-1") == card


def test_empty_results_are_not_cached(service, repo):
    assert service.search_cards("pika").total == 0
    seed_catalog(repo)
    assert service.search_cards("pika").total == 2


def test_different_options_do_not_share_cache(service, repo):
    seed_catalog(repo)
    a = service.search_cards("", QueryOptions(page_size=1))
    b = service.search_cards("", QueryOptions(page_size=2))
    assert len(a.data) == 1
    assert len(b.data) == 2


def test_clear_cache(service, repo, monkeypatch):
    seed_catalog(repo)
    service.search_cards("pika")
    service.clear_cache()

    calls = []
    real = repo.query_page

    def counting(*args, **kwargs):
        calls.append(1)
        return real(*args, **kwargs)

    monkeypatch.setattr(repo, "query_page", counting)
    service.search_cards("pika")
    assert calls == [1]


# ---------- filter values ----------

def test_available_rarities_and_types(service, repo):
    seed_catalog(repo)
    assert service.get_available_rarities() == ["Common", "Double Rare"]
    assert service.get_available_types() == list(ENERGY_TYPES)
    assert "Fire" in service.get_available_types()
