"""
Persistent storage for the user's schedule and display filters.

This module manages the files (inside the state directory):

    my_schedule.json       list of {code, name, credits, period}
    filter_criteria.json   {period, credits, programme}

Both are read by the course GUI. The in-memory cart is always the
authority: a failed write is logged and reported, never raised into the
dialogue.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from courseadvisor import config
from courseadvisor.errors import PersistenceFailure
from courseadvisor.model import FilterState, ScheduledCourse

logger = logging.getLogger(__name__)

SCHEDULE_FILE = "my_schedule.json"
FILTERS_FILE = "filter_criteria.json"


def _write_json(path: Path, payload: object) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        raise PersistenceFailure(f"could not write {path}: {exc}") from exc


def save_schedule(entries: Iterable[ScheduledCourse], path: str | Path) -> None:
    _write_json(Path(path), [e.to_dict() for e in entries])


def load_schedule(path: str | Path) -> list[ScheduledCourse]:
    """
    Load a saved schedule.

    Returns an empty list if the file does not exist or is invalid; broken
    entries are skipped.
    """
    schedule_path = Path(path)
    if not schedule_path.exists():
        return []

    try:
        data = json.loads(schedule_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return []
    if not isinstance(data, list):
        return []

    out: list[ScheduledCourse] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        code = str(item.get("code") or "").strip()
        name = str(item.get("name") or "").strip()
        period = str(item.get("period") or "").strip().upper()
        if not code or not name or period not in config.PERIODS:
            continue
        try:
            credits = float(item.get("credits") or 0.0)
        except (TypeError, ValueError):
            continue
        out.append(ScheduledCourse(code=code, name=name, credits=credits, period=period))
    return out


def save_filters(filters: FilterState, path: str | Path) -> None:
    _write_json(Path(path), filters.to_dict())


def load_filters(path: str | Path) -> FilterState:
    filters_path = Path(path)
    try:
        data = json.loads(filters_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return FilterState()
    if not isinstance(data, dict):
        return FilterState()
    return FilterState(
        period=str(data.get("period") or ""),
        credits=str(data.get("credits") or ""),
        programme=str(data.get("programme") or ""),
    )


class JsonStateSink:
    """
    Best-effort writer used by the dialogue engine after every mutation.
    """

    def __init__(self, directory: Optional[str | Path] = None) -> None:
        self.directory = Path(directory) if directory is not None else config.state_dir()

    @property
    def schedule_path(self) -> Path:
        return self.directory / SCHEDULE_FILE

    @property
    def filters_path(self) -> Path:
        return self.directory / FILTERS_FILE

    def persist_cart(self, entries: Iterable[ScheduledCourse]) -> bool:
        try:
            save_schedule(entries, self.schedule_path)
        except PersistenceFailure as exc:
            logger.error("Failed to save schedule: %s", exc)
            return False
        logger.debug("Schedule saved to %s", self.schedule_path)
        return True

    def persist_filters(self, filters: FilterState) -> bool:
        try:
            save_filters(filters, self.filters_path)
        except PersistenceFailure as exc:
            logger.error("Failed to save filters: %s", exc)
            return False
        logger.debug("Filters saved: %s", filters.to_dict())
        return True
