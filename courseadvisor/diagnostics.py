"""
Dialogue diagnostics: turn and failure counters plus an append-only log file.

Line format:

    [2026-02-19 10:15:00] [OK] Turn: 3 | User: add deep learning
    [2026-02-19 10:15:09] [FAIL] Count: 1 | Reason: Unrecognized Intent | User said: 'blah'
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class DialogueLog:
    def __init__(self, path: Optional[str | Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self.turns = 0
        self.failures = 0

    def _append(self, line: str) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except OSError as exc:
            logger.warning("Could not write dialogue log %s: %s", self.path, exc)

    @staticmethod
    def _stamp() -> str:
        return datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    def start_session(self) -> None:
        self._append("\n--- New Session ---")

    def record_turn(self, text: str) -> None:
        self.turns += 1
        self._append(f"[{self._stamp()}] [OK] Turn: {self.turns} | User: {text}")
        logger.debug("Logged turn %d", self.turns)

    def record_failure(self, reason: str, text: str = "") -> None:
        self.failures += 1
        said = f"User said: '{text}'" if text else "Silence/No Response"
        self._append(f"[{self._stamp()}] [FAIL] Count: {self.failures} | Reason: {reason} | {said}")
        logger.warning("Failure #%d: %s", self.failures, reason)
