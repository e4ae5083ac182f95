# tests/test_csv_parser.py
import pytest
from pathlib import Path
from tcgvault.parsers.csv_parser import CSVParser
from tcgvault.parsers.base import ParserError

def make_csv(tmp_path, content: str, name: str = "test.csv") -> Path:
    p = tmp_path / name
    p.write_text(content, encoding="utf-8")
    return p

def test_basic_parse(tmp_path):
    content = """id,name,number,rarity,expansion_id
sv3-125,Charizard ex,125,Double Rare,sv3
"""
    path = make_csv(tmp_path, content)
    rows = list(CSVParser().parse(path))
    assert len(rows) == 1
    row = rows[0]
    assert row["name"] == "Charizard ex"
    assert row["number"] == "125"
    assert row["expansion_id"] == "sv3"

def test_header_normalization(tmp_path):
    content = """Product ID,Card Name,Card Number,Set Name,Illustrator,Market Price
sv1-1,Pineco,001,Scarlet & Violet,Ryota Murayama,0.12
"""
    path = make_csv(tmp_path, content)
    row = list(CSVParser().parse(path))[0]
    assert row["id"] == "sv1-1"
    assert row["name"] == "Pineco"
    assert row["number"] == "001"
    assert row["expansion_name"] == "Scarlet & Violet"
    assert row["artist"] == "Ryota Murayama"
    assert row["market_price"] == "0.12"

def test_expansion_headers(tmp_path):
    content = """Set ID,Set Name,Printed Total,Release Date,Online Only
sv3,Obsidian Flames,197,2023/08/11,false
"""
    path = make_csv(tmp_path, content)
    row = list(CSVParser().parse(path, kind="expansions"))[0]
    assert row == {
        "id": "sv3",
        "name": "Obsidian Flames",
        "printed_total": "197",
        "release_date": "2023/08/11",
        "is_online_only": "false",
    }

def test_missing_required_header(tmp_path):
    content = "name,rarity\nPikachu,Common\n"
    path = make_csv(tmp_path, content)
    with pytest.raises(ParserError):
        list(CSVParser().parse(path))

def test_blank_and_comment_rows(tmp_path):
    content = """id,name,rarity,artist,number
#sv1-1,Comment,Common,x,1
,,,
sv1-2,Sprigatito,Common,Saki Hayashiro,13
"""
    path = make_csv(tmp_path, content)
    rows = list(CSVParser().parse(path))
    assert len(rows) == 1
    assert rows[0]["name"] == "Sprigatito"

def test_empty_cells_stay_empty(tmp_path):
    content = """id,name,rarity,artist
sv1-3,  Potion  ,,
"""
    path = make_csv(tmp_path, content)
    row = list(CSVParser().parse(path))[0]
    assert row["name"] == "Potion"
    assert row["rarity"] == ""
    assert row["artist"] == ""

def test_cp1252_fallback(tmp_path):
    p = tmp_path / "legacy.csv"
    p.write_bytes("id,name,supertype\nsv1-4,Energy Search,Pok\xe9mon\n".encode("cp1252"))
    rows = list(CSVParser().parse(p))
    assert rows[0]["supertype"] == "Pokémon"

def test_missing_file(tmp_path):
    with pytest.raises(ParserError):
        list(CSVParser().parse(tmp_path / "nope.csv"))

def test_unknown_kind(tmp_path):
    path = make_csv(tmp_path, "id,name\n1,x\n")
    with pytest.raises(ParserError):
        list(CSVParser().parse(path, kind="decks"))

def test_parse_with_count(tmp_path):
    path = make_csv(tmp_path, "id,name\n1,a\n2,b\n")
    rows, total = CSVParser().parse_with_count(path)
    assert total == 2
    assert [r["id"] for r in rows] == ["1", "2"]
