# goal_scout/crawler/frontier.py
"""
Frontier: max-priority queue of URLs waiting to be visited.
"""
from __future__ import annotations

import heapq
import itertools
from collections import Counter
from typing import Iterator, List, Optional, Tuple

from goal_scout.crawler.models import FrontierEntry
from goal_scout.logger import logger

__all__ = ("Frontier",)

_HeapItem = Tuple[float, int, FrontierEntry]


class Frontier:
    """
    Highest priority first; equal priorities come out in enqueue order.

    Every entry is returned at most once. With *max_depth* set, entries deeper
    than the limit are refused by :meth:`enqueue`.
    """

    def __init__(self, max_depth: Optional[int] = None) -> None:
        self.max_depth = max_depth
        self._heap: List[_HeapItem] = []
        self._counter = itertools.count()
        self._queued: Counter[str] = Counter()

    def enqueue(self, entry: FrontierEntry, priority: Optional[float] = None) -> bool:
        """Queue *entry*; *priority* defaults to ``entry.expected_value``."""
        if self.max_depth is not None and entry.depth > self.max_depth:
            logger.debug("Frontier: %s refused, depth %d > %d", entry.url, entry.depth, self.max_depth)
            return False
        rank = entry.expected_value if priority is None else priority
        heapq.heappush(self._heap, (-rank, next(self._counter), entry))
        self._queued[entry.url] += 1
        return True

    def dequeue(self) -> Optional[FrontierEntry]:
        if not self._heap:
            return None
        _, _, entry = heapq.heappop(self._heap)
        self._queued[entry.url] -= 1
        if self._queued[entry.url] <= 0:
            del self._queued[entry.url]
        return entry

    def peek(self) -> Optional[FrontierEntry]:
        return self._heap[0][2] if self._heap else None

    def is_empty(self) -> bool:
        return not self._heap

    def size(self) -> int:
        return len(self._heap)

    def items(self) -> List[FrontierEntry]:
        """Snapshot of queued entries in dequeue order."""
        return [entry for _, _, entry in sorted(self._heap)]

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, url: object) -> bool:
        return url in self._queued

    def __iter__(self) -> Iterator[FrontierEntry]:
        return iter(self.items())
