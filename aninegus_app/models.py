"""
================================================================================
AniNegus - Catalog Models
================================================================================
Source-agnostic shapes shared by the search engine and the stream layer.

No matter if an item came from the first-party catalog API or from Jikan,
the UI always receives a CanonicalResult.
================================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, FrozenSet, Tuple, Dict, Any


# Placeholder identifier that the image pre-processing service skips
PLACEHOLDER_IMAGE = "/api/placeholder/250/375"


@dataclass(frozen=True)
class CanonicalResult:
    """
    Normalized catalog item. Identity is `id` alone, regardless of source.
    """
    id: str
    title: str
    image_url: str = PLACEHOLDER_IMAGE
    release_year: Optional[str] = None
    source_url: Optional[str] = None
    genres: FrozenSet[str] = field(default_factory=frozenset)
    popularity: int = 0

    def __post_init__(self):
        if self.popularity < 0:
            object.__setattr__(self, 'popularity', 0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "image": self.image_url,
            "releaseDate": self.release_year,
            "url": self.source_url,
            "genres": sorted(self.genres),
            "popularity": self.popularity,
        }


@dataclass(frozen=True)
class SearchPage:
    """One page of ranked, de-duplicated results."""
    items: Tuple[CanonicalResult, ...] = ()
    page_number: int = 1
    has_more: bool = False

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(item.id for item in self.items)


@dataclass(frozen=True)
class Genre:
    """Catalog genre as published by the fallback provider."""
    id: int
    name: str
