"""
Central data model definitions used across the project.

This module defines the canonical structure of catalog courses, scheduled
cart entries and display filters so that:
- the catalog, resolver, cart and dialogue share the same field names
- the JSON files written for the GUI keep a stable schema
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Tuple


@dataclass(frozen=True)
class CourseRecord:
    """
    One course from the catalog. Built once at load time, never mutated.
    """

    code: str
    name: str
    credits: float
    available_periods: Tuple[str, ...]

    @property
    def target_period(self) -> str:
        """
        Period the course is scheduled in when added: the first sorted tag.
        """
        return self.available_periods[0]


@dataclass(frozen=True)
class ScheduledCourse:
    """
    Snapshot of a CourseRecord taken when it was added to the cart.
    """

    code: str
    name: str
    credits: float
    period: str

    @classmethod
    def from_record(cls, record: CourseRecord, period: str) -> "ScheduledCourse":
        return cls(code=record.code, name=record.name, credits=record.credits, period=period)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FilterState:
    """
    Display filters chosen during the guided walkthrough.

    An empty string means "any". The resolver never looks at these; they are
    only forwarded to the display sink.
    """

    period: str = ""
    credits: str = ""
    programme: str = ""

    def reset(self) -> None:
        self.period = ""
        self.credits = ""
        self.programme = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)
