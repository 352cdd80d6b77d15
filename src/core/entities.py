from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Tuple


class ItemType(str, Enum):
    JOB = "job"
    STORY = "story"
    COMMENT = "comment"
    POLL = "poll"
    POLLOPT = "pollopt"


@dataclass(frozen=True)
class Item:
    """
    One record fetched from the item graph.
    `display_url` is derived from `id` once, at fetch time.
    """
    id: int
    type: ItemType
    created_at: int
    score: int = 0
    title: str = ""
    text: str = ""
    url: str = ""
    by: str = ""
    child_ids: Tuple[int, ...] = ()
    parts: Tuple[int, ...] = ()
    parent: int = 0
    poll: int = 0
    descendants: int = 0
    deleted: bool = False
    dead: bool = False
    display_url: str = ""

    @property
    def published_at(self) -> datetime:
        return datetime.fromtimestamp(self.created_at, tz=timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["child_ids"] = list(self.child_ids)
        data["parts"] = list(self.parts)
        return data


@dataclass(frozen=True)
class Snapshot:
    """
    Ranked, filtered, size-bounded result of one pipeline run.
    Replaced as a whole, never mutated.
    """
    items: Tuple[Item, ...] = field(default_factory=tuple)
    version: int = 0
    generated_at: float = 0.0

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def is_initial(self) -> bool:
        return self.version == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generated_at": self.generated_at,
            "items": [item.to_dict() for item in self.items],
        }


EMPTY_SNAPSHOT = Snapshot()


def snapshot_from_items(items: List[Item], *, version: int, generated_at: float) -> Snapshot:
    return Snapshot(items=tuple(items), version=version, generated_at=generated_at)
