"""Depth-keyed work queue used by demand propagation.

Items are popped smallest depth first. Re-pushing an item can only raise
its depth, never lower it, so an item reachable through several recipe
paths is handled after every consumer the queue has seen so far. Items
sharing a depth come out in the order they were first pushed.
"""
from __future__ import annotations

import heapq
from typing import Dict, List, Optional, Tuple

from .errors import CountOverflowError
from .stack import MAX_COUNT


class DepthQueue:
    """
    Min-priority queue of item names keyed by a bounded integer depth.

    Entries are ``[depth, sequence, item, live]`` lists on a heap. Raising an
    item's depth marks its old entry dead and pushes a new one carrying the
    same sequence number, which keeps first-discovered ordering among equal
    depths.

    Parameters
    ----------
    max_priority : int
        Largest depth the queue accepts. ``compact`` frees headroom when the
        caller is about to exceed it.
    """

    def __init__(self, max_priority: int = MAX_COUNT):
        if max_priority < 0:
            raise ValueError(f"max_priority must be >= 0, got {max_priority}")
        self.max_priority = max_priority
        self._heap: List[list] = []
        self._entries: Dict[str, list] = {}
        self._counter = 0

    def __len__(self) -> int:
        return len(self._entries)

    def push_increase(self, item: str, priority: int) -> bool:
        """
        Queue ``item`` at ``priority`` or raise its existing priority.

        Returns
        -------
        bool
            True if the queue changed. Pushing a priority that is not higher
            than the queued one is a no-op.
        """
        if priority < 0 or priority > self.max_priority:
            raise CountOverflowError(
                f"Depth {priority} for {item!r} is outside 0..{self.max_priority}"
            )
        entry = self._entries.get(item)
        if entry is not None:
            if priority <= entry[0]:
                return False
            entry[3] = False
            sequence = entry[1]
        else:
            sequence = self._counter
            self._counter += 1
        new_entry = [priority, sequence, item, True]
        self._entries[item] = new_entry
        heapq.heappush(self._heap, new_entry)
        return True

    def pop_min(self) -> Optional[Tuple[str, int]]:
        """Remove and return ``(item, depth)`` with the smallest depth."""
        while self._heap:
            priority, _, item, live = heapq.heappop(self._heap)
            if live:
                del self._entries[item]
                return item, priority
        return None

    def compact(self, current: Optional[int] = None) -> Optional[int]:
        """
        Replace every queued depth by its rank among the distinct depths.

        Relative order (including ties and first-discovered ordering) is
        preserved. ``current`` is a depth held by the caller outside the
        queue, typically the depth of the item just popped; it takes part in
        the ranking and its new value is returned.
        """
        depths = {entry[0] for entry in self._entries.values()}
        if current is not None:
            depths.add(current)
        ranks = {depth: rank for rank, depth in enumerate(sorted(depths))}

        self._heap = []
        for entry in self._entries.values():
            entry[0] = ranks[entry[0]]
            self._heap.append(entry)
        heapq.heapify(self._heap)

        return ranks[current] if current is not None else None
