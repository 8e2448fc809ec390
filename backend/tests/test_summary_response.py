from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from smart_todo.services.summary_response import (
    DEFAULT_INSIGHTS,
    DEFAULT_RECOMMENDATIONS,
    build_fallback_summary,
    empty_summary,
    repair_summary_response,
)
from smart_todo.services.todo_analytics import compute_statistics

KST = ZoneInfo("Asia/Seoul")
NOW = datetime(2025, 1, 15, 10, 0, tzinfo=KST)


@dataclass
class Item:
    title: str
    priority: str = "medium"
    category: Optional[str] = None
    completed: bool = False
    due_date: Optional[datetime] = None


def _stats():
    todos = [
        Item("보고서 제출", priority="high", due_date=NOW + timedelta(hours=5)),
        Item("장보기", completed=True),
        Item("책 읽기", priority="low"),
    ]
    return compute_statistics(todos, "today", NOW)


def test_fenced_reply_is_unwrapped():
    raw = "```json\n" + json.dumps(
        {
            "summary": "오늘은 보고서에 집중하세요.",
            "urgentTasks": ["보고서 제출"],
            "insights": ["완료율이 낮습니다."],
            "recommendations": ["오전에 보고서를 끝내세요."],
        },
        ensure_ascii=False,
    ) + "\n```"

    summary = repair_summary_response(raw, _stats(), "today")

    assert summary.summary == "오늘은 보고서에 집중하세요."
    assert summary.urgent_tasks == ["보고서 제출"]
    assert summary.insights == ["완료율이 낮습니다."]
    assert summary.recommendations == ["오전에 보고서를 끝내세요."]


def test_truncated_reply_falls_back_to_local_numbers():
    summary = repair_summary_response('{"summary": "오늘은', _stats(), "today")

    assert summary.summary == "총 3개의 할 일 중 1개 완료(33%)"
    assert summary.urgent_tasks == ["보고서 제출"]
    assert summary.insights[0] == "오늘 할 일을 확인하고 우선순위에 따라 정리하세요."
    assert summary.insights[1] == "긴급 작업 1개가 완료를 기다리고 있습니다."
    assert summary.recommendations[0] == "긴급한 작업부터 우선 처리하세요."


def test_reply_without_summary_falls_back():
    raw = json.dumps({"summary": "", "insights": ["x"]})

    assert repair_summary_response(raw, _stats(), "today").summary.startswith("총 3개의 할 일")


def test_array_reply_falls_back():
    assert repair_summary_response('["a", "b"]', _stats(), "week").insights[0] == (
        "이번 주 할 일 분포를 확인하고 계획을 세워보세요."
    )


def test_empty_reply_falls_back():
    assert repair_summary_response("", _stats(), "today").summary == "총 3개의 할 일 중 1개 완료(33%)"


def test_missing_lists_get_defaults_and_local_urgent_tasks():
    raw = json.dumps({"summary": "요약", "insights": "not a list"})

    summary = repair_summary_response(raw, _stats(), "today")

    assert summary.urgent_tasks == ["보고서 제출"]
    assert summary.insights == DEFAULT_INSIGHTS
    assert summary.recommendations == DEFAULT_RECOMMENDATIONS


def test_non_string_entries_are_stringified_and_lists_capped():
    raw = json.dumps(
        {
            "summary": 42,
            "urgentTasks": [],
            "insights": [1, 2.5, {"k": "값"}, "네 번째", "다섯", "여섯"],
            "recommendations": ["하나"],
        }
    )

    summary = repair_summary_response(raw, _stats(), "today")

    assert summary.summary == "42"
    assert summary.urgent_tasks == []
    assert summary.insights == ["1", "2.5", '{"k": "값"}', "네 번째", "다섯"]


def test_fallback_without_high_priority_or_urgent_work():
    stats = compute_statistics([Item("산책", priority="low")], "week", NOW)

    summary = build_fallback_summary(stats, "week")

    assert summary.urgent_tasks == []
    assert summary.insights[1] == "우선순위가 높은 작업이 없습니다."
    assert summary.recommendations[0] == "여유 시간을 활용해 미완료 작업을 정리하세요."


def test_empty_summary_wording_depends_on_period():
    today = empty_summary("today")
    week = empty_summary("week")

    assert today.summary == "오늘 등록된 할 일이 없습니다."
    assert week.summary == "이번 주 등록된 할 일이 없습니다."
    assert today.urgent_tasks == []
    assert today.model_dump(by_alias=True)["urgentTasks"] == []


def test_deeply_nested_reply_falls_back_instead_of_raising():
    raw = '{"summary": "x", "insights": ' + "[" * 200000 + "]" * 200000 + "}"

    summary = repair_summary_response(raw, _stats(), "today")

    assert summary.summary == "총 3개의 할 일 중 1개 완료(33%)"


@pytest.mark.parametrize("value", [0, 0.0, False, [], {}, None])
def test_falsy_summary_values_fall_back(value):
    raw = json.dumps({"summary": value, "insights": ["x"]})

    assert repair_summary_response(raw, _stats(), "today").summary == "총 3개의 할 일 중 1개 완료(33%)"
