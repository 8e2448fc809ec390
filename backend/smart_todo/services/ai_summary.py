"""Productivity summary over a todo collection."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple, TypeVar

from smart_todo.api.schemas.ai import SummaryResponse
from smart_todo.core.clock import now_local, start_of_day, start_of_week, to_local
from smart_todo.core.config import settings
from smart_todo.core.errors import InputValidationError
from smart_todo.services.llm_client import complete_json, get_llm_client
from smart_todo.services.summary_prompt import SUMMARY_SYSTEM_PROMPT, build_summary_prompt
from smart_todo.services.summary_response import empty_summary, repair_summary_response
from smart_todo.services.todo_analytics import PERIODS, SummaryTodo, compute_statistics

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=SummaryTodo)


def period_window(period: str, now: datetime) -> Tuple[datetime, datetime]:
    """Local [start, end) window for ``today`` or the Monday-start ``week``."""
    if period == "today":
        start = start_of_day(now)
        return start, start + timedelta(days=1)
    start = start_of_week(now)
    return start, start + timedelta(days=7)


def select_period_todos(todos: Sequence[T], period: str, now: datetime) -> List[T]:
    """Keep the todos created or due inside the period window."""
    start, end = period_window(period, now)

    def _inside(value: Optional[datetime]) -> bool:
        return value is not None and start <= to_local(value) < end

    return [
        todo
        for todo in todos
        if _inside(getattr(todo, "created_date", None)) or _inside(todo.due_date)
    ]


def generate_todo_summary(
    todos: Optional[Sequence[SummaryTodo]],
    period: Optional[str],
    now: Optional[datetime] = None,
) -> SummaryResponse:
    """Summarize ``todos`` for ``period``; the model is only called for a non-empty list."""
    if todos is None:
        raise InputValidationError("할 일 목록이 필요합니다.")
    if not todos:
        return empty_summary(period)
    if period not in PERIODS:
        raise InputValidationError("분석 기간은 'today' 또는 'week'여야 합니다.")

    now = to_local(now) if now is not None else now_local()
    stats = compute_statistics(todos, period, now)
    prompt = build_summary_prompt(todos, stats, period, now)
    client = get_llm_client()

    raw_reply = complete_json(
        client,
        SUMMARY_SYSTEM_PROMPT,
        prompt,
        temperature=settings.summary_temperature,
        trace_name="llm.summary",
        action="summary",
        metadata={"period": period, "todo_count": stats.total_count},
    )
    summary = repair_summary_response(raw_reply, stats, period)
    logger.info(
        "Summary generated (period=%s, todos=%s, completion=%s%%)",
        period,
        stats.total_count,
        stats.completion_rate,
    )
    return summary
