"""
Course resolution: free-form utterance -> at most one catalog course.

Two phases, the first short-circuits the second:

1. Code match. The query is normalized like catalog codes (letters and
   digits only, lowercase). A course matches if the normalized query
   contains its normalized code and that code is at least MIN_CODE_LENGTH
   long. "DD 2 4 2 4" and "I want dd2424" both hit DD2424.

2. Name scoring. Query and course name are tokenized; a query token counts
   as matched if a name token equals it or starts with it ("acoustic" hits
   "acoustics"). With m matched tokens:

       precision + recall + full_string_bonus - length_penalty

   The best candidate is accepted only above NAME_SCORE_THRESHOLD.

   The length penalty (LENGTH_PENALTY_PER_TOKEN per token of difference)
   keeps a lone generic word like "advanced" from matching a long name, at
   a price: short queries against long names miss ("philosophy of science"
   finds nothing), and a query can land on a shorter name sharing one word
   ("music communication" -> "Music Acoustics", not "Musical Communication
   and Music Technology"). Saying the name's own words ("musical
   communication") picks the long one.

Ties in both phases go to the first course in catalog order.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from courseadvisor import config
from courseadvisor.catalog import CourseCatalog, normalize_code
from courseadvisor.model import CourseRecord

logger = logging.getLogger(__name__)

_PUNCT = re.compile(r"[^\w\s]")


def tokenize(text: str) -> list[str]:
    """
    Lowercase, drop punctuation, split on whitespace; order kept, duplicates removed.
    """
    cleaned = _PUNCT.sub("", (text or "").lower())
    out: list[str] = []
    for tok in cleaned.split():
        if tok and tok not in out:
            out.append(tok)
    return out


def name_score(query: str, name: str) -> float:
    """
    Score how well `query` describes the course called `name`.
    """
    q_tokens = tokenize(query)
    c_tokens = tokenize(name)
    if not q_tokens or not c_tokens:
        return 0.0

    matched = 0
    for q in q_tokens:
        if any(c == q or c.startswith(q) for c in c_tokens):
            matched += 1
    if matched == 0:
        return 0.0

    precision = matched / len(q_tokens)
    recall = matched / len(c_tokens)
    length_penalty = config.LENGTH_PENALTY_PER_TOKEN * abs(len(c_tokens) - len(q_tokens))

    raw = query.strip().lower()
    bonus = config.FULL_STRING_BONUS if raw and raw in name.lower() else 0.0

    return precision + recall + bonus - length_penalty


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of one resolution attempt, kept for diagnostics.

    phase is "code", "name" or "none"; score is only meaningful for "name".
    """

    query: str
    record: Optional[CourseRecord]
    phase: str
    score: float = 0.0

    @property
    def found(self) -> bool:
        return self.record is not None


class CourseResolver:
    """
    Pure lookups over a CourseCatalog. Safe to share between sessions.
    """

    def __init__(
        self,
        catalog: CourseCatalog,
        min_code_length: int = config.MIN_CODE_LENGTH,
        threshold: float = config.NAME_SCORE_THRESHOLD,
    ) -> None:
        self.catalog = catalog
        self.min_code_length = min_code_length
        self.threshold = threshold

    def _match_code(self, query: str) -> Optional[CourseRecord]:
        needle = normalize_code(query)
        if not needle:
            return None
        for record in self.catalog:
            code = normalize_code(record.code)
            if len(code) >= self.min_code_length and code in needle:
                return record
        return None

    def _best_name(self, query: str) -> tuple[Optional[CourseRecord], float]:
        best: Optional[CourseRecord] = None
        best_score = 0.0
        for record in self.catalog:
            score = name_score(query, record.name)
            # strict ">" keeps the first candidate on ties
            if best is None or score > best_score:
                best, best_score = record, score
        return best, best_score

    def explain(self, query: str) -> Resolution:
        """
        Resolve `query` and report which phase decided and with what score.
        """
        query = query or ""

        record = self._match_code(query)
        if record is not None:
            logger.info("Code match: %r -> %s", query, record.code)
            return Resolution(query=query, record=record, phase="code")

        if not tokenize(query):
            logger.debug("Empty query %r, nothing to resolve", query)
            return Resolution(query=query, record=None, phase="none")

        best, score = self._best_name(query)
        if best is not None and score > self.threshold:
            logger.info("Name match: %r -> %r (score %.2f)", query, best.name, score)
            return Resolution(query=query, record=best, phase="name", score=score)

        logger.info(
            "No match for %r (best %r, score %.2f)",
            query,
            best.name if best is not None else None,
            score,
        )
        return Resolution(query=query, record=None, phase="none", score=score)

    def resolve(self, query: str) -> Optional[CourseRecord]:
        return self.explain(query).record
