"""
================================================================================
AniNegus - Result Normalizer
================================================================================
Maps heterogeneous provider payloads into CanonicalResult.

Two item shapes are understood:
  - First-party catalog API items (id, title, image, releaseDate, url,
    genres, popularity)
  - Jikan v4 anime objects (mal_id, title, images.jpg.*, aired.from, url,
    genres[].name, members)

An item that cannot be mapped raises MalformedResponse; batch helpers drop
that item, log it, and keep going.
================================================================================
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..errors import MalformedResponse
from .deduplicator import merge
from ..models import CanonicalResult, SearchPage, PLACEHOLDER_IMAGE

logger = logging.getLogger(__name__)

ItemMapper = Callable[[Dict[str, Any]], CanonicalResult]


# =============================================================================
# FIELD HELPERS
# =============================================================================

def _coerce_popularity(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        popularity = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(popularity, 0)


def _coerce_title(value: Any) -> Optional[str]:
    """Titles are plain strings, or dicts of variants on some catalog routes."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        for key in ('english', 'romaji', 'userPreferred', 'native'):
            candidate = value.get(key)
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
    return None


def _coerce_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, str)):
        text = str(value).strip()
        return text or None
    return None


def _genre_names(values: Any) -> frozenset:
    if values is None:
        return frozenset()
    if not isinstance(values, (list, tuple)):
        raise MalformedResponse(f"genres is not a list: {type(values).__name__}")
    names = set()
    for value in values:
        if isinstance(value, str):
            name = value
        elif isinstance(value, dict):
            name = value.get('name')
        else:
            continue
        if isinstance(name, str) and name:
            names.add(name)
    return frozenset(names)


def _nested(item: Dict[str, Any], key: str) -> Dict[str, Any]:
    """A nested object field; missing means empty, any other type is malformed."""
    value = item.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedResponse(f"'{key}' is not an object: {type(value).__name__}")
    return value


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    return None


def _release_year(value: Any) -> Optional[str]:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    text = str(value).strip()
    return text or None


def _year_from_iso(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return str(datetime.fromisoformat(value.replace('Z', '+00:00')).year)
    except ValueError:
        return None


# =============================================================================
# ITEM MAPPERS
# =============================================================================

def normalize_catalog_item(item: Dict[str, Any]) -> CanonicalResult:
    """Map a first-party catalog API item."""
    if not isinstance(item, dict):
        raise MalformedResponse(f"Catalog item is not an object: {type(item).__name__}")

    item_id = _coerce_id(item.get('id'))
    title = _coerce_title(item.get('title'))
    if not item_id or not title:
        raise MalformedResponse(f"Catalog item missing id or title: {item!r:.120}")

    return CanonicalResult(
        id=item_id,
        title=title,
        image_url=_optional_str(item.get('image')) or PLACEHOLDER_IMAGE,
        release_year=_release_year(item.get('releaseDate')),
        source_url=_optional_str(item.get('url')),
        genres=_genre_names(item.get('genres')),
        popularity=_coerce_popularity(item.get('popularity')),
    )


def normalize_jikan_item(item: Dict[str, Any]) -> CanonicalResult:
    """Map a Jikan v4 anime object."""
    if not isinstance(item, dict):
        raise MalformedResponse(f"Jikan item is not an object: {type(item).__name__}")

    item_id = _coerce_id(item.get('mal_id'))
    title = _coerce_title(item.get('title'))
    if not item_id or not title:
        raise MalformedResponse(f"Jikan item missing mal_id or title: {item!r:.120}")

    images = _nested(_nested(item, 'images'), 'jpg')
    image_url = (
        _optional_str(images.get('large_image_url'))
        or _optional_str(images.get('image_url'))
        or PLACEHOLDER_IMAGE
    )

    release_year = _year_from_iso(_nested(item, 'aired').get('from'))
    if release_year is None and isinstance(item.get('year'), int) and item['year']:
        release_year = str(item['year'])

    return CanonicalResult(
        id=item_id,
        title=title,
        image_url=image_url,
        release_year=release_year,
        source_url=_optional_str(item.get('url')),
        genres=_genre_names(item.get('genres')),
        popularity=_coerce_popularity(item.get('members')),
    )


# =============================================================================
# BATCH HELPERS
# =============================================================================

def payload_items(payload: Dict[str, Any], key: str) -> List[Any]:
    """The item list under `key`; anything but a list counts as no items."""
    items = payload.get(key)
    if isinstance(items, list):
        return items
    if items is not None:
        logger.warning(f"Ignoring '{key}' of type {type(items).__name__}, expected a list")
    return []


def normalize_batch(items: Iterable[Any], mapper: ItemMapper) -> List[CanonicalResult]:
    """Map every item, dropping the ones that are malformed."""
    results: List[CanonicalResult] = []
    dropped = 0
    for item in items or []:
        try:
            results.append(mapper(item))
        except MalformedResponse as e:
            dropped += 1
            logger.warning(f"Dropping malformed item: {e}")
    if dropped:
        logger.info(f"Normalized {len(results)} items ({dropped} dropped)")
    return results


def _pagination_block(payload: Dict[str, Any]) -> Dict[str, Any]:
    block = payload.get('pagination')
    return block if isinstance(block, dict) else {}


def read_pagination(payload: Dict[str, Any], requested_page: int) -> tuple:
    """
    Extract (page_number, has_more) from either pagination style.

    Jikan and the search route nest a `pagination` block with snake_case
    keys; listing routes put camelCase keys at the top level.
    """
    block = _pagination_block(payload)
    has_more = block.get('has_next_page', payload.get('hasNextPage', False))
    current = block.get('current_page', payload.get('currentPage', requested_page))
    try:
        page_number = int(current)
    except (TypeError, ValueError):
        page_number = requested_page
    return max(page_number, 1), bool(has_more)


def normalize_catalog_page(payload: Dict[str, Any], requested_page: int) -> SearchPage:
    """Build an unranked SearchPage from a first-party search or listing payload."""
    items = normalize_batch(payload_items(payload, 'results'), normalize_catalog_item)
    page_number, has_more = read_pagination(payload, requested_page)
    return SearchPage(items=tuple(merge([items])), page_number=page_number, has_more=has_more)
