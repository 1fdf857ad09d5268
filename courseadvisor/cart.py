"""
The user's schedule cart with bounded undo history.

Every mutating operation snapshots the current entries before it changes
anything. Snapshots are copies, so later mutations can never reach back into
the history. Once the history holds UNDO_CAPACITY snapshots, the oldest one
is dropped.
"""

from __future__ import annotations

import copy
import logging
from collections import deque
from typing import Iterator, Optional

from courseadvisor.config import UNDO_CAPACITY
from courseadvisor.model import CourseRecord, ScheduledCourse

logger = logging.getLogger(__name__)


class UndoStack:
    def __init__(self, capacity: int = UNDO_CAPACITY) -> None:
        self.capacity = capacity
        self._snapshots: deque[list[ScheduledCourse]] = deque(maxlen=capacity)

    def push(self, entries: list[ScheduledCourse]) -> None:
        self._snapshots.append(copy.deepcopy(entries))

    def pop(self) -> Optional[list[ScheduledCourse]]:
        if not self._snapshots:
            return None
        return self._snapshots.pop()

    def __len__(self) -> int:
        return len(self._snapshots)


class Cart:
    """
    Ordered collection of ScheduledCourse, unique by course code.
    """

    def __init__(self, entries: Optional[list[ScheduledCourse]] = None, undo_capacity: int = UNDO_CAPACITY) -> None:
        self._entries: list[ScheduledCourse] = []
        for entry in entries or []:
            if not self.contains(entry.code):
                self._entries.append(entry)
        self._history = UndoStack(undo_capacity)

    # -- read side ---------------------------------------------------------

    @property
    def entries(self) -> tuple[ScheduledCourse, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ScheduledCourse]:
        return iter(tuple(self._entries))

    def contains(self, code: str) -> bool:
        return any(e.code == code for e in self._entries)

    def get(self, code: str) -> Optional[ScheduledCourse]:
        for e in self._entries:
            if e.code == code:
                return e
        return None

    def find(self, text: str) -> Optional[ScheduledCourse]:
        """
        Find an entry whose code or name equals `text`, ignoring case.
        """
        wanted = (text or "").strip().lower()
        if not wanted:
            return None
        for e in self._entries:
            if e.code.lower() == wanted or e.name.lower() == wanted:
                return e
        return None

    def count_in_period(self, period: str) -> int:
        return sum(1 for e in self._entries if e.period.lower() == period.lower())

    @property
    def can_undo(self) -> bool:
        return len(self._history) > 0

    # -- mutations ---------------------------------------------------------

    def _snapshot(self) -> None:
        self._history.push(self._entries)

    def add(self, record: CourseRecord, period: Optional[str] = None) -> bool:
        """
        Append a snapshot of `record`. Returns False (and changes nothing) if
        the code is already in the cart.
        """
        if self.contains(record.code):
            logger.info("Already in cart: %s", record.code)
            return False
        self._snapshot()
        self._entries.append(ScheduledCourse.from_record(record, period or record.target_period))
        return True

    def remove(self, course: ScheduledCourse) -> bool:
        if not self.contains(course.code):
            return False
        self._snapshot()
        self._entries = [e for e in self._entries if e.code != course.code]
        return True

    def clear_period(self, period: str) -> int:
        """
        Remove every entry scheduled in `period`; returns how many went.
        """
        self._snapshot()
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.period.lower() != period.lower()]
        return before - len(self._entries)

    def clear_all(self) -> int:
        self._snapshot()
        removed = len(self._entries)
        self._entries = []
        return removed

    def undo(self) -> bool:
        """
        Restore the most recent snapshot. False means there was nothing to undo.
        """
        previous = self._history.pop()
        if previous is None:
            return False
        self._entries = previous
        return True
