from __future__ import annotations

import json
import re
from typing import Any, List, Optional


# "Bulbasaur - 001/132" / "Pikachu - 25/102 (Holo)": number annotation and everything after it
_CARD_NUMBER_SUFFIX = re.compile(r"\s*-\s*\d+/\d+.*$")

# "ME01: Mega Evolution": a space-free code followed by a colon
_EXPANSION_CODE_PREFIX = re.compile(r"^[^:\s]+:\s*")

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def clean_card_name(raw: Optional[str]) -> Optional[str]:
    """
    Strip the trailing card-number annotation from a display name.

      'Bulbasaur - 001/132'   -> 'Bulbasaur'
      'Charizard ex - 6/165'  -> 'Charizard ex'
      'Professor's Research'  -> unchanged
    """
    if raw is None:
        return None
    return _CARD_NUMBER_SUFFIX.sub("", raw)


def clean_expansion_name(raw: Optional[str]) -> Optional[str]:
    """
    Strip the leading '<code>: ' group prefix.

      'ME01: Mega Evolution'  -> 'Mega Evolution'
      'SV: Scarlet & Violet'  -> 'Scarlet & Violet'
      'Base Set'              -> unchanged
      'Silver Tempest: TG'    -> unchanged (not a code)

    Only one prefix is removed, so cleaning a cleaned name is a no-op.
    An empty result falls back to the input text.
    """
    if not raw:
        return raw
    return _EXPANSION_CODE_PREFIX.sub("", raw, count=1) or raw


def parse_card_number(raw: Any) -> int:
    """
    Integer value of a collector number stored as text.
    Reads the leading digits like a lenient integer parse; anything
    without leading digits is 0.

      '10' -> 10, '025a' -> 25, 'TG05' -> 0, None -> 0
    """
    if raw is None:
        return 0
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw)
    m = _LEADING_INT.match(str(raw))
    return int(m.group(0)) if m else 0


def json_list(value: Any) -> List[str]:
    """
    Decode a JSON array column into a list of strings.
    Accepts an already-decoded list (idempotent) or a bare string.
    """
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return [value]
        if isinstance(decoded, list):
            return [str(v) for v in decoded if v is not None]
        return [str(decoded)]
    return [str(value)]


def encode_json_list(value: Any) -> Optional[str]:
    """
    Normalize a list-ish value into compact JSON array text, or None if empty.
    Accepts a list, a JSON array string, or a '|' / ',' separated string.
    """
    if value is None:
        return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.startswith("["):
            items = json_list(s)
        else:
            sep = "|" if "|" in s else ","
            items = [p.strip() for p in s.split(sep)]
    else:
        items = json_list(value)
    items = [i for i in items if i]
    if not items:
        return None
    return json.dumps(items, separators=(",", ":"))
