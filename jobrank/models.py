"""
Posting record and the tagged outcome of a position search.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class PositionStatus(str, Enum):
    RANKED = "ranked"
    OUTSIDE_WINDOW = "outside_window"  # not among the top results returned
    SEARCH_FAILED = "search_failed"


@dataclass(frozen=True)
class Position:
    """Where a posting landed in its group's search results."""

    status: PositionStatus
    rank: Optional[int] = None

    def __post_init__(self):
        if self.status is PositionStatus.RANKED:
            if self.rank is None or self.rank < 1:
                raise ValueError(f"Ranked position needs a rank >= 1, got {self.rank!r}")
        elif self.rank is not None:
            raise ValueError(f"{self.status.value} position cannot carry a rank")

    @classmethod
    def ranked(cls, rank: int) -> "Position":
        return cls(PositionStatus.RANKED, rank)

    @classmethod
    def outside_window(cls) -> "Position":
        return cls(PositionStatus.OUTSIDE_WINDOW)

    @classmethod
    def search_failed(cls) -> "Position":
        return cls(PositionStatus.SEARCH_FAILED)


@dataclass
class Posting:
    """One vacancy under analysis.

    ``normalized_title`` stays None until the title normalizer fills it in;
    ``position`` and ``competitors_count`` stay None until the position
    tracker has searched the posting's group.
    """

    id: int
    raw_title: str
    area_id: int
    schedule_id: Optional[str]
    url: Optional[str] = None
    area_name: Optional[str] = None
    published_at: Optional[str] = None
    normalized_title: Optional[str] = None
    position: Optional[Position] = None
    competitors_count: Optional[int] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Posting":
        """Build a posting from one ``items[]`` entry of the listing endpoint.

        Raises KeyError/TypeError/ValueError on a malformed item.
        """
        area = item["area"]
        schedule = item.get("schedule") or {}
        return cls(
            id=int(item["id"]),
            raw_title=item["name"],
            area_id=int(area["id"]),
            area_name=area.get("name"),
            schedule_id=schedule.get("id"),
            url=item.get("alternate_url"),
            published_at=item.get("published_at"),
        )

    @property
    def search_key(self):
        """Grouping key: postings sharing it are searched with one query."""
        return (self.normalized_title, self.area_id, self.schedule_id)

    def to_dict(self) -> Dict[str, Any]:
        position = self.position
        return {
            "id": self.id,
            "raw_title": self.raw_title,
            "normalized_title": self.normalized_title,
            "area_id": self.area_id,
            "area_name": self.area_name,
            "schedule_id": self.schedule_id,
            "url": self.url,
            "published_at": self.published_at,
            "position": position.rank if position else None,
            "position_status": position.status.value if position else None,
            "competitors_count": self.competitors_count,
        }
