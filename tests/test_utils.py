import pytest

from tcgvault.utils import (
    clean_card_name,
    clean_expansion_name,
    encode_json_list,
    json_list,
    parse_card_number,
)


@pytest.mark.parametrize("raw,expected", [
    ("Bulbasaur - 001/132", "Bulbasaur"),
    ("Charizard ex - 6/165", "Charizard ex"),
    ("Pikachu - 25/102 (Holo)", "Pikachu"),
    ("Professor's Research", "Professor's Research"),
    ("Porygon-Z", "Porygon-Z"),
    (None, None),
])
def test_clean_card_name(raw, expected):
    assert clean_card_name(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    ("ME01: Mega Evolution", "Mega Evolution"),
    ("SV: Scarlet & Violet", "Scarlet & Violet"),
    ("Base Set", "Base Set"),
    ("SWSH12: Silver Tempest: Trainer Gallery", "Silver Tempest: Trainer Gallery"),
    ("Silver Tempest: Trainer Gallery", "Silver Tempest: Trainer Gallery"),
    ("", ""),
    (None, None),
])
def test_clean_expansion_name(raw, expected):
    assert clean_expansion_name(raw) == expected


def test_clean_expansion_name_keeps_text_when_only_prefix():
    assert clean_expansion_name("SV:") == "SV:"


@pytest.mark.parametrize("raw,expected", [
    ("10", 10),
    ("2", 2),
    ("025a", 25),
    ("TG05", 0),
    ("SV-P", 0),
    ("", 0),
    (None, 0),
    (7, 7),
])
def test_parse_card_number(raw, expected):
    assert parse_card_number(raw) == expected


def test_json_list_variants():
    assert json_list('["Fire","Water"]') == ["Fire", "Water"]
    assert json_list(["Grass"]) == ["Grass"]
    assert json_list(None) == []
    assert json_list("") == []
    assert json_list("Fire") == ["Fire"]


def test_encode_json_list_variants():
    assert encode_json_list(["Fire", "Water"]) == '["Fire","Water"]'
    assert encode_json_list("Fire|Water") == '["Fire","Water"]'
    assert encode_json_list("Stage 1, Basic") == '["Stage 1","Basic"]'
    assert encode_json_list('["Fire"]') == '["Fire"]'
    assert encode_json_list("") is None
    assert encode_json_list([]) is None
