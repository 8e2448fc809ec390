"""Coerce todo candidates produced by the language model into valid creation payloads."""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Sequence

from smart_todo.api.schemas.ai import NormalizedTodo
from smart_todo.core.clock import local_tz, to_local

PRIORITIES = ("high", "medium", "low")
CATEGORIES = ("업무", "개인", "건강", "학습", "기타")
DEFAULT_PRIORITY = "medium"
DEFAULT_CATEGORY = "기타"
DEFAULT_DUE_TIME = "09:00"

TITLE_MIN_LENGTH = 2
TITLE_MAX_LENGTH = 100
TITLE_FALLBACK_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 1000
ELLIPSIS = "..."

DUE_TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
PAST_TOLERANCE = timedelta(hours=1)

LEGACY_FIELDS = ("title", "description", "due_date", "due_time", "priority", "category")


def extract_candidates(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Pull the candidate records out of a parsed model reply.

    Accepts ``{"todos": [...]}`` and the older single-record shape with a
    top-level ``title``.
    """
    todos = payload.get("todos")
    if isinstance(todos, list):
        return [item for item in todos if isinstance(item, dict)]
    if payload.get("title"):
        return [{field: payload.get(field) for field in LEGACY_FIELDS}]
    return []


def _text(value: Any, default: str = "") -> str:
    if value is None or value is False or value == "":
        return default
    return value if isinstance(value, str) else str(value)


def _truncate(value: str, limit: int) -> str:
    if len(value) > limit:
        return value[: limit - len(ELLIPSIS)] + ELLIPSIS
    return value


def normalize_title(raw: Any, source_text: str) -> str:
    title = _text(raw, source_text).strip()
    if len(title) < TITLE_MIN_LENGTH:
        title = source_text[:TITLE_FALLBACK_LENGTH]
    return _truncate(title, TITLE_MAX_LENGTH)


def normalize_description(raw: Any) -> str:
    return _truncate(_text(raw).strip(), DESCRIPTION_MAX_LENGTH)


def normalize_priority(raw: Any) -> str:
    return raw if raw in PRIORITIES else DEFAULT_PRIORITY


def normalize_category(raw: Any) -> str:
    category = _text(raw, DEFAULT_CATEGORY).strip()
    return category if category in CATEGORIES else DEFAULT_CATEGORY


def normalize_due_time(raw: Any) -> time:
    value = _text(raw, DEFAULT_DUE_TIME).strip()
    if not DUE_TIME_PATTERN.match(value):
        value = DEFAULT_DUE_TIME
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def _parse_due_day(raw: Any) -> Optional[date]:
    """Local calendar day of an ISO date, ISO timestamp or epoch-milliseconds number."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        try:
            return datetime.fromtimestamp(raw / 1000, tz=local_tz()).date()
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(raw, str) or not raw.strip():
        return None
    value = raw.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return to_local(datetime.fromisoformat(value)).date()
    except ValueError:
        return None


def _at(day: date, at: time) -> datetime:
    return datetime.combine(day, at, tzinfo=local_tz())


def resolve_due_date(raw: Any, at: time, index: int, batch_size: int, now: datetime) -> Optional[datetime]:
    """Combine a candidate date with its time, moving stale dates forward.

    A date more than an hour in the past is moved to today at the same time,
    or, inside a multi-step batch, to ``index`` days from today.
    """
    day = _parse_due_day(raw)
    if day is None:
        return None
    due = _at(day, at)
    now = to_local(now)
    if due >= now - PAST_TOLERANCE:
        return due
    offset = index if batch_size > 1 else 0
    return _at(now.date() + timedelta(days=offset), at)


def normalize_candidates(
    candidates: Sequence[Dict[str, Any]],
    source_text: str,
    now: datetime,
) -> List[NormalizedTodo]:
    batch_size = len(candidates)
    normalized: List[NormalizedTodo] = []
    for index, candidate in enumerate(candidates):
        due_time = normalize_due_time(candidate.get("due_time"))
        normalized.append(
            NormalizedTodo(
                title=normalize_title(candidate.get("title"), source_text),
                description=normalize_description(candidate.get("description")),
                due_date=resolve_due_date(candidate.get("due_date"), due_time, index, batch_size, now),
                priority=normalize_priority(candidate.get("priority")),
                category=normalize_category(candidate.get("category")),
                completed=False,
            )
        )
    return normalized
