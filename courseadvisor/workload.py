"""
Workload check.

Before a course is added we look at the period it would be scheduled in.
Overload rule:
    credits already in that period + course credits > OVERLOAD_THRESHOLD

Other periods, prerequisites and time clashes are not considered.
"""

from __future__ import annotations

from typing import Iterable

from courseadvisor.config import OVERLOAD_THRESHOLD
from courseadvisor.model import CourseRecord, ScheduledCourse


def period_load(entries: Iterable[ScheduledCourse], period: str) -> float:
    return sum(e.credits for e in entries if e.period == period)


def load_after_add(entries: Iterable[ScheduledCourse], record: CourseRecord) -> float:
    """
    Credits the record's target period would hold once the record is added.
    """
    return period_load(entries, record.target_period) + record.credits


def would_overload(
    entries: Iterable[ScheduledCourse],
    record: CourseRecord,
    threshold: float = OVERLOAD_THRESHOLD,
) -> bool:
    return load_after_add(entries, record) > threshold
