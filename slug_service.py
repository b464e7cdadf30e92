"""
Slug helpers for matching hangar export records to the vehicle catalog.

Hangar exports identify a vehicle three ways: an internal ship code
("ANVL_F7A_Hornet_Mk_I"), a display name ("F7A Hornet Mk I") and sometimes a
lookup alias. Each is turned into a catalog-style slug here.
"""

import re
from typing import List, Optional

_NAME_SEPARATOR_RE = re.compile(r"[ _]+")
_NAME_STRIP_RE = re.compile(r"[^a-z0-9-]+")
_DASH_RUN_RE = re.compile(r"-{2,}")
_COMPACT_STRIP_RE = re.compile(r"[^a-z0-9]+")


def slug_from_ship_code(code: str) -> str:
    """'MISC_Hull_D' -> 'hull-d', 'ANVL_F7A_Hornet_Mk_I' -> 'f7a-hornet-mk-i'.

    The first underscore-delimited token is the manufacturer code and is dropped.
    """
    parts = str(code or "").split("_")
    if len(parts) <= 1:
        return slug_from_name(code)
    return "-".join(s for s in (slug_from_name(p) for p in parts[1:]) if s)


def slug_from_name(name: str) -> str:
    """'Hull D' -> 'hull-d', 'A.T.L.S.' -> 'atls'.

    Dash runs collapse and edge dashes are trimmed: 'A - B' -> 'a-b', never
    'a--b', and '-Foo' -> 'foo'.
    """
    text = _NAME_SEPARATOR_RE.sub("-", str(name or "").lower())
    text = _NAME_STRIP_RE.sub("", text)
    text = _DASH_RUN_RE.sub("-", text)
    return text.lstrip("-").rstrip("-")


def compact_slug(value: str) -> str:
    """Strip everything but letters and digits: 'a-t-l-s' -> 'atls'."""
    return _COMPACT_STRIP_RE.sub("", str(value or "").lower())


def slug_candidates(ship_code: str, name: str, alias: Optional[str] = None) -> List[str]:
    """Ordered slug guesses for one record, most likely first.

    Order matters: the matcher stops at the first candidate that hits.
    """
    code_slug = slug_from_ship_code(ship_code)
    name_slug = slug_from_name(name)
    alias_slug = slug_from_name(alias) if alias else ""

    candidates: List[str] = []
    for candidate in (code_slug, name_slug, alias_slug, compact_slug(code_slug), compact_slug(name_slug)):
        if candidate and candidate not in candidates:
            candidates.append(candidate)
    return candidates
