"""
================================================================================
AniNegus - Result Deduplicator
================================================================================
Merges result sets from several sources or pages into one entry per id.

Merge order matters and is part of the contract:
  1. Concatenate all lists in argument order
  2. For each id, keep the LAST occurrence (later sources overwrite earlier
     ones, so the most recently merged metadata wins)
  3. Emit survivors in the order their id was FIRST seen

Example:
  merge([[a1, b1], [b2, c1]]) -> [a1, b2, c1]
================================================================================
"""

import logging
from typing import Dict, List, Sequence

from ..models import CanonicalResult

logger = logging.getLogger(__name__)


def merge(lists: Sequence[Sequence[CanonicalResult]]) -> List[CanonicalResult]:
    """
    Merge result lists, last occurrence wins, first-seen order kept.

    Args:
        lists: Result lists, earliest source first

    Returns:
        De-duplicated results
    """
    order: List[str] = []
    latest: Dict[str, CanonicalResult] = {}
    total = 0

    for results in lists:
        for result in results:
            total += 1
            if result.id not in latest:
                order.append(result.id)
            latest[result.id] = result

    if total != len(order):
        logger.debug(f"Merged {total} results into {len(order)} unique ids")

    return [latest[result_id] for result_id in order]
