"""
Course catalog (raw course JSON -> immutable in-memory index).

The source file is a list of course descriptors in the shape delivered by
the course API:

    [{"detailedInformation": {
        "course": {"courseCode": "DD2424", "title": "...", "credits": 7.5},
        "roundInfos": [{"round": {"courseRoundTerms": [{"creditsP3": 7.5}]}}]
    }}, ...]

Important rules:
- a period tag is included iff some term of some round has credits > 0 for it
- no tag at all -> the course defaults to P1
- entries without code or title are skipped, never fatal
- a missing/broken file gives an empty catalog plus a LoadError
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from courseadvisor.config import DEFAULT_PERIOD, PERIODS
from courseadvisor.errors import LoadError
from courseadvisor.model import CourseRecord

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def normalize_code(text: str) -> str:
    """
    Strip every character that is not a letter or digit, then lowercase.

    "DD 2424" -> "dd2424", "d-d.2 4 2 4" -> "dd2424"
    """
    return _NON_ALNUM.sub("", text or "").lower()


# ---------------------------------------------------------------------------
# Descriptor mapping
# ---------------------------------------------------------------------------


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _periods_from_rounds(rounds: Any) -> tuple[str, ...]:
    found: set[str] = set()
    if not isinstance(rounds, list):
        rounds = []
    for round_info in rounds:
        if not isinstance(round_info, dict):
            continue
        rnd = round_info.get("round") or {}
        terms = rnd.get("courseRoundTerms") if isinstance(rnd, dict) else None
        if not isinstance(terms, list):
            continue
        for term in terms:
            if not isinstance(term, dict):
                continue
            for period in PERIODS:
                if _as_float(term.get(f"credits{period}")) > 0:
                    found.add(period)
    if not found:
        return (DEFAULT_PERIOD,)
    return tuple(sorted(found))


def record_from_descriptor(raw: Any) -> Optional[CourseRecord]:
    """
    Map one raw descriptor to a CourseRecord, or None if it is unusable.
    """
    if not isinstance(raw, dict):
        return None
    info = raw.get("detailedInformation")
    if not isinstance(info, dict):
        return None
    course = info.get("course")
    if not isinstance(course, dict):
        return None

    code = str(course.get("courseCode") or "").strip()
    name = str(course.get("title") or "").strip()
    if not code or not name:
        return None

    credits = max(_as_float(course.get("credits")), 0.0)
    return CourseRecord(
        code=code,
        name=name,
        credits=credits,
        available_periods=_periods_from_rounds(info.get("roundInfos")),
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class CourseCatalog:
    """
    Read-only course index. Construct once at startup and pass it around.
    """

    def __init__(self, records: Iterable[CourseRecord] = (), load_error: Optional[LoadError] = None) -> None:
        self._records: list[CourseRecord] = []
        self._by_code: dict[str, CourseRecord] = {}
        for record in records:
            key = normalize_code(record.code)
            if not key:
                continue
            if key in self._by_code:
                logger.debug("Duplicate course code %s skipped", record.code)
                continue
            self._by_code[key] = record
            self._records.append(record)
        self.load_error = load_error

    @classmethod
    def from_descriptors(cls, raw_list: Any) -> "CourseCatalog":
        if not isinstance(raw_list, list):
            return cls(load_error=LoadError("catalog source is not a list"))

        records: list[CourseRecord] = []
        skipped = 0
        for raw in raw_list:
            record = record_from_descriptor(raw)
            if record is None:
                skipped += 1
                continue
            records.append(record)

        if skipped:
            logger.info("Skipped %d catalog entries without code or title", skipped)
        return cls(records)

    @classmethod
    def load(cls, path: str | Path) -> "CourseCatalog":
        """
        Load the catalog from a JSON file.

        Never raises: on failure an empty catalog is returned and the error is
        kept in `load_error` (and logged).
        """
        source = Path(path)
        try:
            raw = json.loads(source.read_text(encoding="utf-8"))
        except FileNotFoundError:
            error = LoadError(f"catalog file not found: {source}")
            logger.error("%s", error)
            return cls(load_error=error)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            error = LoadError(f"catalog file unreadable: {source}: {exc}")
            logger.error("%s", error)
            return cls(load_error=error)

        catalog = cls.from_descriptors(raw)
        if catalog.load_error is not None:
            logger.error("%s (%s)", catalog.load_error, source)
        else:
            logger.info("Catalog loaded: %d courses from %s", len(catalog), source)
        return catalog

    def by_code(self, code: str) -> Optional[CourseRecord]:
        return self._by_code.get(normalize_code(code))

    def all(self) -> tuple[CourseRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CourseRecord]:
        return iter(self._records)
