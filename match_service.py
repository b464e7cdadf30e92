"""
Resolve hangar records to catalog slugs.

Matching runs against an immutable snapshot of the catalog taken once per
import. Strategies are tried in order and the first hit wins:

  1. exact slug, per candidate in order
  2. case-insensitive display name
  3. compact form (letters and digits only) against compacted catalog slugs
  4. slug prefix, per candidate of length >= PREFIX_MATCH_MIN_LENGTH

When several catalog slugs share a prefix the first one in catalog row order
wins.
"""

import sqlite3
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from catalog_repository import list_catalog_entries
from constants import PREFIX_MATCH_MIN_LENGTH
from slug_service import compact_slug


@dataclass(frozen=True)
class CatalogSnapshot:
    slugs: Tuple[str, ...]
    slug_set: FrozenSet[str] = frozenset()
    name_index: Dict[str, str] = field(default_factory=dict)
    compact_index: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_entries(cls, entries: Sequence[Tuple[str, str]]) -> "CatalogSnapshot":
        """Build from (slug, name) pairs given in catalog order."""
        slugs: List[str] = []
        name_index: Dict[str, str] = {}
        compact_index: Dict[str, str] = {}
        for slug, name in entries:
            slugs.append(slug)
            name_index.setdefault(str(name or "").lower(), slug)
            compact = compact_slug(slug)
            if compact:
                compact_index.setdefault(compact, slug)
        return cls(
            slugs=tuple(slugs),
            slug_set=frozenset(slugs),
            name_index=name_index,
            compact_index=compact_index,
        )

    @classmethod
    def load(cls, conn: sqlite3.Connection) -> "CatalogSnapshot":
        return cls.from_entries([(str(r["slug"]), str(r["name"])) for r in list_catalog_entries(conn)])


MatchStrategy = Callable[[Sequence[str], str, CatalogSnapshot], Optional[str]]


def match_exact_slug(candidates: Sequence[str], display_name: str, catalog: CatalogSnapshot) -> Optional[str]:
    for candidate in candidates:
        if candidate and candidate in catalog.slug_set:
            return candidate
    return None


def match_display_name(candidates: Sequence[str], display_name: str, catalog: CatalogSnapshot) -> Optional[str]:
    if not display_name:
        return None
    return catalog.name_index.get(display_name.lower())


def match_compact_slug(candidates: Sequence[str], display_name: str, catalog: CatalogSnapshot) -> Optional[str]:
    for candidate in candidates:
        compact = compact_slug(candidate)
        if compact and compact in catalog.compact_index:
            return catalog.compact_index[compact]
    return None


def match_slug_prefix(candidates: Sequence[str], display_name: str, catalog: CatalogSnapshot) -> Optional[str]:
    for candidate in candidates:
        if len(candidate) < PREFIX_MATCH_MIN_LENGTH:
            continue
        for slug in catalog.slugs:
            if slug.startswith(candidate):
                return slug
    return None


MATCH_STRATEGIES: Tuple[MatchStrategy, ...] = (
    match_exact_slug,
    match_display_name,
    match_compact_slug,
    match_slug_prefix,
)


def resolve_slug(
    candidates: Sequence[str],
    display_name: str,
    catalog: CatalogSnapshot,
    strategies: Sequence[MatchStrategy] = MATCH_STRATEGIES,
) -> Optional[str]:
    """Return the first catalog slug any strategy finds, or None."""
    for strategy in strategies:
        slug = strategy(candidates, display_name, catalog)
        if slug:
            return slug
    return None
