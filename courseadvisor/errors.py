"""
Error types.

None of these ever end a dialogue session: loaders degrade to empty data,
sinks log and report False.
"""

from __future__ import annotations


class CourseAdvisorError(Exception):
    """Base class for all courseadvisor errors."""


class LoadError(CourseAdvisorError):
    """The catalog source is missing or malformed."""


class PersistenceFailure(CourseAdvisorError):
    """Writing cart or filter state to disk failed."""
