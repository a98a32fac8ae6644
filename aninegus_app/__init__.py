"""
================================================================================
AniNegus v1.0 - Catalog Search Layer
================================================================================
Client-side search and aggregation for the anime browser.

Packages:
  - providers/ - first-party catalog API and Jikan clients (httpx)
  - search/    - query expansion, normalization, dedup, ranking, orchestration
  - streams/   - request lifecycle, debouncing, result accumulation, and the
                 search box / category loader controllers built on them
================================================================================
"""

__version__ = "1.0.0"
