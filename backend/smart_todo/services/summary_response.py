"""Validate the model's summary reply and repair it from local statistics when unusable."""
from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from smart_todo.api.schemas.ai import SummaryResponse
from smart_todo.services.llm_client import strip_code_fence
from smart_todo.services.todo_analytics import TodoStatistics

logger = logging.getLogger(__name__)

MAX_LIST_ITEMS = 5
DEFAULT_INSIGHTS = ["할 일 분석을 완료했습니다."]
DEFAULT_RECOMMENDATIONS = ["할 일을 관리하고 진행 상황을 확인하세요."]


def empty_summary(period: Optional[str]) -> SummaryResponse:
    """Canned reply for an empty todo list; no model call is made for it."""
    return SummaryResponse(
        summary="오늘 등록된 할 일이 없습니다." if period == "today" else "이번 주 등록된 할 일이 없습니다.",
        urgent_tasks=[],
        insights=["할 일을 추가하면 분석 결과를 확인할 수 있습니다."],
        recommendations=["새로운 할 일을 추가해보세요!"],
    )


def fallback_headline(stats: TodoStatistics) -> str:
    return f"총 {stats.total_count}개의 할 일 중 {stats.completed_count}개 완료({stats.completion_rate}%)"


def build_fallback_summary(stats: TodoStatistics, period: str) -> SummaryResponse:
    """Deterministic summary built only from locally computed numbers."""
    insights = [
        "오늘 할 일을 확인하고 우선순위에 따라 정리하세요."
        if period == "today"
        else "이번 주 할 일 분포를 확인하고 계획을 세워보세요.",
        f"긴급 작업 {stats.high_priority_count}개가 완료를 기다리고 있습니다."
        if stats.high_priority_count > 0
        else "우선순위가 높은 작업이 없습니다.",
    ]
    recommendations = [
        "긴급한 작업부터 우선 처리하세요." if stats.urgent_tasks else "여유 시간을 활용해 미완료 작업을 정리하세요.",
        "완료된 할 일을 체크하고 다음 단계를 계획하세요.",
    ]
    return SummaryResponse(
        summary=fallback_headline(stats),
        urgent_tasks=list(stats.urgent_tasks),
        insights=insights,
        recommendations=recommendations,
    )


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def _text_list(value: Any, default: List[str]) -> List[str]:
    if not isinstance(value, list):
        return list(default)
    return [_as_text(item) for item in value[:MAX_LIST_ITEMS]]


def _load_reply(raw_text: str) -> dict:
    body = strip_code_fence(raw_text or "")
    if not body:
        raise ValueError("empty reply")
    try:
        payload = json.loads(body)
    except RecursionError as exc:
        raise ValueError("reply is nested too deeply") from exc
    if not isinstance(payload, dict):
        raise ValueError("reply is not a JSON object")
    # Any falsy JSON value (0, false, "", [], {}) counts as a missing summary.
    if not payload.get("summary"):
        raise ValueError("reply has no summary")
    return payload


def repair_summary_response(raw_text: str, stats: TodoStatistics, period: str) -> SummaryResponse:
    """Turn the raw model reply into a well-formed summary; never raises."""
    try:
        payload = _load_reply(raw_text)
    except ValueError as exc:
        # json.JSONDecodeError is a ValueError subclass.
        logger.warning("Summary reply unusable, using fallback: %s", exc)
        return build_fallback_summary(stats, period)

    return SummaryResponse(
        summary=_as_text(payload["summary"]),
        urgent_tasks=_text_list(payload.get("urgentTasks"), stats.urgent_tasks),
        insights=_text_list(payload.get("insights"), DEFAULT_INSIGHTS),
        recommendations=_text_list(payload.get("recommendations"), DEFAULT_RECOMMENDATIONS),
    )
