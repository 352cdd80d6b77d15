"""
Recency filtering and score ranking for snapshot items
"""
from datetime import timedelta
from typing import Iterable, List, Optional

from core.entities import Item


def is_recent(item: Item, *, now: float, window: timedelta) -> bool:
    """
    True when the item was created within [now - window, now].
    """
    return now - window.total_seconds() <= item.created_at <= now


def filter_recent(
    items: Iterable[Item],
    *,
    now: float,
    window: Optional[timedelta],
) -> List[Item]:
    """Drop items outside the recency window. A window of None keeps everything."""
    if window is None:
        return list(items)
    return [item for item in items if is_recent(item, now=now, window=window)]


def rank_items(items: Iterable[Item]) -> List[Item]:
    """
    Order by score descending. Equal scores fall back to ascending id
    so the result does not depend on fan-in order.
    """
    return sorted(items, key=lambda item: (-item.score, item.id))


def top_n(items: List[Item], n: int) -> List[Item]:
    if n <= 0:
        return []
    return items[:n]
