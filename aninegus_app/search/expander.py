"""Abbreviation-based query expansion."""

import logging
from typing import Dict, Optional, Iterator, Tuple

logger = logging.getLogger(__name__)


# Community shorthand -> canonical title
DEFAULT_ABBREVIATIONS: Dict[str, str] = {
    'jjk': 'jujutsu kaisen',
    'aot': 'attack on titan',
    'sao': 'sword art online',
    'bnha': 'my hero academia',
    'mha': 'my hero academia',
    'fmab': 'fullmetal alchemist brotherhood',
    'op': 'one piece',
    'db': 'dragon ball',
    'nge': 'neon genesis evangelion',
    'opm': 'one punch man',
    'naruto': 'naruto',
    'bleach': 'bleach',
    'ds': 'demon slayer',
    'kny': 'demon slayer',
    'hxh': 'hunter x hunter',
    'snk': 'attack on titan',
    'fate': 'fate/stay night',
    'fsn': 'fate/stay night',
    'code geass': 'code geass',
    'eva': 'neon genesis evangelion',
}


def normalize_query(raw: str) -> str:
    return raw.strip().lower()


class AbbreviationTable:
    """
    Mutable short-form -> full-title mapping.

    Keys and values are stored trimmed and lower-cased. The table lives in
    memory only; callers may add entries at runtime.
    """

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self._entries: Dict[str, str] = {}
        source = DEFAULT_ABBREVIATIONS if entries is None else entries
        for short, full in source.items():
            self.add(short, full)

    def add(self, short: str, full: str) -> None:
        """Add or replace an abbreviation mapping."""
        self._entries[normalize_query(short)] = normalize_query(full)

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def __contains__(self, key: str) -> bool:
        return normalize_query(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self._entries.items())

    def expand(self, raw: str) -> str:
        """
        Expand a raw query.

        Trims and lower-cases the input, then returns the mapped phrase if the
        table knows it, else the normalized input. Never fails; rejecting an
        empty query is the caller's job.
        """
        normalized = normalize_query(raw)
        expanded = self._entries.get(normalized, normalized)
        if expanded != normalized:
            logger.debug(f"Expanded query '{normalized}' -> '{expanded}'")
        return expanded
