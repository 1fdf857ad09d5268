"""
Intents, events and a small rule-based classifier.

The dialogue engine only consumes `Event` objects. A speech front end with
its own NLU can build them directly; for the terminal runtime `classify()`
maps a typed line to an Event using keyword phrases.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from courseadvisor.resolver import CourseResolver


class Intent(Enum):
    # utterances
    YES = "yes"
    NO = "no"
    START_PLANNING = "start_planning"
    DONE = "done"
    ADD_COURSE = "add_course"
    REMOVE_COURSE = "remove_course"
    CHECK_CART = "check_cart"
    CLEAR_PERIOD = "clear_period"
    CLEAR_ALL = "clear_all"
    UNDO = "undo"
    FINISH = "finish"
    TELL_PERIOD = "tell_period"
    TELL_CREDITS = "tell_credits"
    TELL_PROGRAMME = "tell_programme"
    ANY_OPTION = "any_option"
    UNKNOWN = "unknown"
    # non-utterance events
    USER_ENTER = "user_enter"
    NO_RESPONSE = "no_response"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Event:
    """
    One inbound dialogue event: an intent, the raw text and optional slots.
    """

    intent: Intent
    text: str = ""
    course: Optional[str] = None
    period: Optional[str] = None
    credits: Optional[str] = None
    programme: Optional[str] = None


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

_STRIP = re.compile(r"[^\w\s.]")


def normalize_utterance(text: str) -> str:
    """
    Lowercase, drop apostrophes and punctuation (dots kept for "7.5"),
    collapse whitespace.
    """
    t = (text or "").lower().replace("’", "").replace("'", "")
    t = _STRIP.sub(" ", t)
    t = re.sub(r"\.(?!\d)", " ", t)
    return " ".join(t.split())


def _has_phrase(norm: str, phrases: tuple[str, ...]) -> bool:
    padded = f" {norm} "
    return any(f" {p} " in padded for p in phrases)


def _norm_all(*phrases: str) -> tuple[str, ...]:
    return tuple(normalize_utterance(p) for p in phrases)


_PERIOD_WORDS = {
    "1": "P1", "one": "P1", "first": "P1", "p1": "P1",
    "2": "P2", "two": "P2", "second": "P2", "p2": "P2",
    "3": "P3", "three": "P3", "third": "P3", "p3": "P3",
    "4": "P4", "four": "P4", "fourth": "P4", "p4": "P4",
}

_CREDIT_WORDS = {
    "six": "6.0",
    "seven": "7.5",
    "nine": "9.0",
    "fifteen": "15.0",
    "thirty": "30.0",
}

_NUMBER = re.compile(r"\d+(?:[.,]\d+)?")


def parse_period(text: str) -> Optional[str]:
    """
    "period 2" / "P2" / "the second one" -> "P2"; None if no period is named.
    """
    for token in normalize_utterance(text).split():
        if token in _PERIOD_WORDS:
            return _PERIOD_WORDS[token]
    return None


def parse_credits(text: str) -> Optional[str]:
    """
    "7.5 credits" / "seven and a half" -> "7.5"; "six" -> "6.0".
    """
    m = _NUMBER.search(text or "")
    if m:
        try:
            return f"{float(m.group(0).replace(',', '.')):.1f}"
        except ValueError:
            return None
    for token in normalize_utterance(text).split():
        if token in _CREDIT_WORDS:
            return _CREDIT_WORDS[token]
    return None


def is_any_option(text: str) -> bool:
    return _has_phrase(normalize_utterance(text), _ANY)


# ---------------------------------------------------------------------------
# Phrase tables
# ---------------------------------------------------------------------------

_FINISH = _norm_all(
    "i am finished", "i'm finished", "i finished planning", "i'm done planning",
    "that's all", "that is all", "that is it", "that's it", "stop", "goodbye", "bye",
    "end session", "i don't want to add anything else", "no more courses", "quit",
)
_UNDO = _norm_all("undo", "undo last action", "go back", "i made a mistake", "cancel that")
_CLEAR_WORDS = _norm_all("clear", "reset", "empty", "remove everything", "delete everything")
_CLEAR_ALL = _norm_all(
    "clear all", "clear all courses", "clear everything", "remove everything", "delete everything",
    "reset my schedule", "empty cart", "empty my cart",
)
_CHECK = _norm_all(
    "check my schedule", "what courses do i have", "show my schedule", "show my cart",
    "what do i have", "check cart", "my schedule",
)
_REMOVE_PREFIXES = _norm_all("remove course", "remove code", "delete course", "delete code", "remove", "delete", "drop")
_ADD_PREFIXES = _norm_all(
    "i want to take", "i want to add", "sign me up for", "add course", "add code",
    "i would like", "i want", "i'd like", "course", "code", "add", "take",
)
_ADD_SUFFIXES = _norm_all("to my schedule", "to my cart", "please")
_START = _norm_all(
    "i want to plan my courses", "plan my courses", "plan my schedule", "let's plan",
    "start planning", "lets start",
)
_DONE = _norm_all("i'm done", "i am done", "done", "i have selected it", "i found it", "ready", "next")
_YES = _norm_all(
    "yes", "yeah", "yep", "yup", "sure", "ok", "okay", "alright", "of course",
    "please do", "go ahead", "correct", "absolutely", "let's go",
)
# Answers to "Do you want to add/remove it?" that would otherwise parse as a
# request for a course called "it".
_CONFIRM = _norm_all(
    "add it", "please add it", "yes add it", "take it", "i'll take it", "remove it",
    "yes remove it", "do it", "drop it", "delete it",
)
_NO = _norm_all("no", "nope", "nah", "not really", "no thanks", "don't", "do not")
_ANY = _norm_all("any", "anything", "all", "whatever", "doesn't matter", "no preference", "all of them")


def _strip_prefix(norm: str, prefixes: tuple[str, ...]) -> Optional[str]:
    for p in prefixes:
        if norm == p:
            return ""
        if norm.startswith(p + " "):
            return norm[len(p) + 1:].strip()
    return None


def _strip_suffix(norm: str, suffixes: tuple[str, ...]) -> str:
    for s in suffixes:
        if norm.endswith(" " + s):
            return norm[: -len(s) - 1].strip()
    return norm


def _starts_with_any(norm: str, words: tuple[str, ...]) -> bool:
    first = norm.split()[0] if norm else ""
    return first in words or any(norm.startswith(w + " ") or norm == w for w in words if " " in w)


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------


def classify(text: Optional[str], filter_step: Optional[str] = None, resolver: Optional[CourseResolver] = None) -> Event:
    """
    Map a typed utterance to an Event.

    filter_step is "period", "credits" or "programme" while the engine is
    collecting filters; answers are then read as slot values first. With a
    resolver, a bare course name or code is read as an add request.
    """
    raw = (text or "").strip()
    if not raw:
        return Event(Intent.NO_RESPONSE)

    norm = normalize_utterance(raw)

    if _has_phrase(norm, _FINISH):
        return Event(Intent.FINISH, raw)

    if filter_step is not None:
        if _has_phrase(norm, _ANY):
            return Event(Intent.ANY_OPTION, raw)
        if filter_step == "period":
            period = parse_period(norm)
            if period:
                return Event(Intent.TELL_PERIOD, raw, period=period)
        elif filter_step == "credits":
            credits = parse_credits(raw)
            if credits:
                return Event(Intent.TELL_CREDITS, raw, credits=credits)
        return Event(Intent.UNKNOWN, raw)

    if _has_phrase(norm, _UNDO):
        return Event(Intent.UNDO, raw)

    if _starts_with_any(norm, _CLEAR_WORDS):
        period = parse_period(norm)
        if period:
            return Event(Intent.CLEAR_PERIOD, raw, period=period)
        if _has_phrase(norm, _CLEAR_ALL):
            return Event(Intent.CLEAR_ALL, raw)

    if _strip_suffix(norm, _ADD_SUFFIXES) in _CONFIRM:
        return Event(Intent.YES, raw)

    rest = _strip_prefix(norm, _REMOVE_PREFIXES)
    if rest is not None:
        return Event(Intent.REMOVE_COURSE, raw, course=_strip_suffix(rest, _ADD_SUFFIXES) or None)

    if _has_phrase(norm, _START):
        return Event(Intent.START_PLANNING, raw)

    rest = _strip_prefix(norm, _ADD_PREFIXES)
    if rest is not None:
        return Event(Intent.ADD_COURSE, raw, course=_strip_suffix(rest, _ADD_SUFFIXES) or None)

    if _has_phrase(norm, _CHECK):
        return Event(Intent.CHECK_CART, raw)

    if _has_phrase(norm, _DONE):
        return Event(Intent.DONE, raw)
    if _starts_with_any(norm, _YES):
        return Event(Intent.YES, raw)
    if _starts_with_any(norm, _NO):
        return Event(Intent.NO, raw)

    if resolver is not None and resolver.resolve(raw) is not None:
        return Event(Intent.ADD_COURSE, raw, course=raw)

    return Event(Intent.UNKNOWN, raw)
