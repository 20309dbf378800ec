"""
Position tracking for normalized postings.

Postings that share a normalized title, area and schedule would produce
identical searches, so they are grouped and searched once. The single
result list is then fanned back out to every member of the group.
"""

import time
from typing import Any, Callable, Dict, List, Tuple

from .board import SEARCH_WINDOW, BoardError
from .logger import get_logger
from .models import Position, Posting

logger = get_logger()

GROUP_PAUSE = 0.5

SearchKey = Tuple[str, int, Any]


def group_postings(postings: List[Posting]) -> Dict[SearchKey, List[Posting]]:
    """
    Bucket postings by (normalized title, area, schedule).

    Postings without a normalized title are left out. Buckets, and the
    members inside each bucket, follow first-seen input order; the first
    member of each bucket is its representative.
    """
    groups: Dict[SearchKey, List[Posting]] = {}
    for posting in postings:
        if not posting.normalized_title:
            continue
        groups.setdefault(posting.search_key, []).append(posting)
    return groups


def rank_map(items: List[Dict[str, Any]]) -> Dict[int, int]:
    """Map posting id -> 1-based rank over the visible search window."""
    ranks: Dict[int, int] = {}
    for index, item in enumerate(items[:SEARCH_WINDOW]):
        try:
            posting_id = int(item["id"])
        except (KeyError, TypeError, ValueError):
            continue
        ranks.setdefault(posting_id, index + 1)
    return ranks


def _apply_results(group: List[Posting], payload: Dict[str, Any]) -> None:
    found = int(payload["found"])
    if found < 0:
        raise ValueError(f"Negative match count in search response: {found}")
    ranks = rank_map(payload.get("items") or [])
    for posting in group:
        rank = ranks.get(posting.id)
        posting.position = Position.ranked(rank) if rank else Position.outside_window()
        posting.competitors_count = found


def _mark_failed(group: List[Posting]) -> None:
    for posting in group:
        posting.position = Position.search_failed()
        posting.competitors_count = 0


def track_positions(
    postings: List[Posting],
    board,
    pause: float = GROUP_PAUSE,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Posting]:
    """
    Annotate postings with their search position and competitor count.

    Groups are searched one at a time with ``pause`` seconds between
    queries. A failed group gets the search-failed position and zero
    competitors; the remaining groups are still processed.

    Args:
        postings: Postings to annotate in place
        board: Object with a ``search(text, area_id, schedule_id)`` method
        pause: Seconds to wait between consecutive group searches
        sleep: Function used to wait

    Returns:
        The same ``postings`` list
    """
    groups = group_postings(postings)
    total = len(groups)
    logger.info(f"Grouped postings into {total} search groups", postings=len(postings))

    for index, group in enumerate(groups.values(), start=1):
        representative = group[0]
        logger.info(
            f"Searching group {index}/{total}",
            title=representative.normalized_title,
            area_id=representative.area_id,
            schedule_id=representative.schedule_id,
            members=len(group),
        )
        try:
            payload = board.search(
                representative.normalized_title,
                representative.area_id,
                representative.schedule_id,
            )
            _apply_results(group, payload)
        except (BoardError, KeyError, TypeError, ValueError) as e:
            logger.error(
                "Search failed for group, skipping",
                title=representative.normalized_title,
                error=str(e),
            )
            logger.record_group_search(success=False)
            _mark_failed(group)
        else:
            logger.record_group_search(success=True)
            for posting in group:
                logger.debug(
                    "Posting ranked",
                    id=posting.id,
                    position=posting.position.rank,
                    status=posting.position.status.value,
                )

        if index < total:
            sleep(pause)

    return postings
