"""
================================================================================
AniNegus v1.0 - Search Package
================================================================================
Query expansion, result normalization, dedup, ranking and orchestration.

Components:
  - expander.py     - abbreviation table ("jjk" -> "jujutsu kaisen")
  - normalizer.py   - provider payloads -> CanonicalResult
  - deduplicator.py - last-write-wins merge by id
  - ranker.py       - exact > prefix > substring > popularity
  - smart_search.py - primary-then-fallback protocol
================================================================================
"""

# Order matters: the stream layer imports deduplicator while smart_search
# is still loading.
from .expander import AbbreviationTable, DEFAULT_ABBREVIATIONS
from .deduplicator import merge
from .ranker import rank
from .normalizer import normalize_catalog_item, normalize_jikan_item, normalize_batch
from .smart_search import SearchContext, GenreCache, build_context, build_providers, search

__all__ = [
    'AbbreviationTable', 'DEFAULT_ABBREVIATIONS', 'merge', 'rank',
    'normalize_catalog_item', 'normalize_jikan_item', 'normalize_batch',
    'SearchContext', 'GenreCache', 'build_context', 'build_providers', 'search',
]
