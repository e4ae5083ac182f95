import json

import pytest
from tcgvault.parsers import base
from tcgvault.parsers.csv_parser import CSVParser
from tcgvault.parsers.json_parser import JSONParser

def test_parsererror_is_exception():
    with pytest.raises(base.ParserError):
        raise base.ParserError("oops")

def test_choose_parser_csv():
    parser = base.choose_parser("cards.csv")
    assert isinstance(parser, CSVParser)

def test_choose_parser_json():
    parser = base.choose_parser("Cards.JSON")
    assert isinstance(parser, JSONParser)
    assert isinstance(parser, base.ParserStrategy)

def test_choose_parser_unsupported():
    with pytest.raises(base.ParserError):
        base.choose_parser("cards.txt")

@pytest.mark.parametrize("header,kind,expected", [
    ("Card Name", "cards", "name"),
    ("  SET   id ", "cards", "expansion_id"),
    ("group_id", "cards", "expansion_id"),
    ("Set ID", "expansions", "id"),
    ("Group ID", "expansions", "tcgcsv_group_id"),
    ("Hit Points", "cards", "hit_points"),
    (None, "cards", ""),
])
def test_normalize_header(header, kind, expected):
    assert base.normalize_header(header, kind) == expected

def test_check_kind():
    base.check_kind("sealed")
    with pytest.raises(base.ParserError):
        base.check_kind("decks")

# ---------- JSON ----------

def write_json(tmp_path, body, name="cards.json"):
    p = tmp_path / name
    p.write_text(json.dumps(body), encoding="utf-8")
    return p

def test_json_array(tmp_path):
    p = write_json(tmp_path, [
        {"id": "sv3-125", "name": "Charizard ex", "types": ["Darkness"], "hp": 330, "Set Name": "Obsidian Flames"},
    ])
    row = list(JSONParser().parse(p))[0]
    assert row["types"] == '["Darkness"]'
    assert row["hp"] == "330"
    assert row["expansion_name"] == "Obsidian Flames"

@pytest.mark.parametrize("wrapper", ["data", "results", "cards", "products"])
def test_json_wrapped_array(tmp_path, wrapper):
    p = write_json(tmp_path, {wrapper: [{"id": "a", "name": "A", "online_only": True}]})
    row = list(JSONParser().parse(p))[0]
    assert row["id"] == "a"
    assert row["online_only"] == "true"

def test_json_missing_required_field(tmp_path):
    p = write_json(tmp_path, [{"id": "a"}])
    with pytest.raises(base.ParserError):
        list(JSONParser().parse(p))

def test_json_not_an_array(tmp_path):
    p = write_json(tmp_path, {"id": "a", "name": "A"})
    with pytest.raises(base.ParserError):
        list(JSONParser().parse(p))

def test_json_invalid(tmp_path):
    p = tmp_path / "broken.json"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(base.ParserError):
        list(JSONParser().parse(p))
