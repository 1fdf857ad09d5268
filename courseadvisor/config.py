"""
Central configuration: file locations and tunable constants.

Every path has a package-relative default and can be redirected through an
environment variable, so tests and deployments never have to touch the
package data folder.
"""

from __future__ import annotations

import os
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_DIR / "data"


def catalog_path() -> Path:
    """
    Return the course catalog JSON file (COURSEADVISOR_CATALOG overrides).
    """
    override = os.environ.get("COURSEADVISOR_CATALOG")
    return Path(override) if override else DATA_DIR / "course_all.json"


def state_dir() -> Path:
    """
    Return the directory holding my_schedule.json and filter_criteria.json.
    """
    override = os.environ.get("COURSEADVISOR_STATE_DIR")
    return Path(override) if override else DATA_DIR / "state"


def dialogue_log_path() -> Path:
    override = os.environ.get("COURSEADVISOR_LOG_FILE")
    return Path(override) if override else state_dir() / "dialogue_logs.txt"


# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

# Max credits a single period may hold before the overload warning kicks in.
OVERLOAD_THRESHOLD = 15.0

UNDO_CAPACITY = 10

# Waiting state inactivity timer.
WAITING_TIMEOUT_SECONDS = 120.0

# Shorter normalized codes never take part in substring code matching,
# otherwise "I am 20" would match a course coded "20".
MIN_CODE_LENGTH = 4

# Name scoring: a candidate must score strictly above this to be accepted.
NAME_SCORE_THRESHOLD = 0.6
FULL_STRING_BONUS = 0.5
# Per token of length difference between name and query. At 0.1 a lone
# generic word ("advanced") still clears the threshold against a four-word
# name (1.45); at 0.4 it scores 0.55.
LENGTH_PENALTY_PER_TOKEN = 0.4

PERIODS = ("P1", "P2", "P3", "P4")
DEFAULT_PERIOD = "P1"
