from __future__ import annotations

from datetime import datetime, timedelta
from uuid import uuid4
from zoneinfo import ZoneInfo

from smart_todo.api.schemas.todo import TodoOut
from smart_todo.services.todo_query import apply_list_view, derive_status, filter_todos, sort_todos

KST = ZoneInfo("Asia/Seoul")
NOW = datetime(2025, 1, 15, 10, 0, tzinfo=KST)
USER_ID = uuid4()


def _todo(title: str, **overrides) -> TodoOut:
    fields = dict(
        id=uuid4(),
        user_id=USER_ID,
        title=title,
        description="",
        priority="medium",
        category=None,
        completed=False,
        due_date=None,
        created_date=NOW - timedelta(days=1),
        updated_at=NOW - timedelta(days=1),
        position=None,
        repeat_type="none",
        repeat_interval=1,
        repeat_days_of_week=None,
        repeat_end_date=None,
        parent_todo_id=None,
        status="in_progress",
    )
    fields.update(overrides)
    return TodoOut(**fields)


def test_derive_status():
    assert derive_status(True, NOW - timedelta(days=1), NOW) == "completed"
    assert derive_status(False, NOW - timedelta(minutes=1), NOW) == "overdue"
    assert derive_status(False, NOW + timedelta(minutes=1), NOW) == "in_progress"
    assert derive_status(False, None, NOW) == "in_progress"


def test_search_is_case_insensitive_on_title():
    todos = [_todo("Weekly Report"), _todo("장보기"), _todo("report review")]

    found = filter_todos(todos, NOW, q="REPORT")

    assert [todo.title for todo in found] == ["Weekly Report", "report review"]


def test_priority_and_status_filters():
    todos = [
        _todo("done", priority="high", completed=True),
        _todo("late", priority="high", due_date=NOW - timedelta(hours=2)),
        _todo("open", priority="low", due_date=NOW + timedelta(days=1)),
    ]

    assert [t.title for t in filter_todos(todos, NOW, priority="high")] == ["done", "late"]
    assert [t.title for t in filter_todos(todos, NOW, status="completed")] == ["done"]
    assert [t.title for t in filter_todos(todos, NOW, status="incomplete")] == ["late", "open"]
    assert [t.title for t in filter_todos(todos, NOW, status="overdue")] == ["late"]
    assert [t.title for t in filter_todos(todos, NOW, status="in_progress")] == ["open"]


def test_due_date_sort_puts_undated_last():
    todos = [
        _todo("undated"),
        _todo("later", due_date=NOW + timedelta(days=2)),
        _todo("sooner", due_date=NOW + timedelta(hours=1)),
    ]

    assert [t.title for t in sort_todos(todos, "due_date")] == ["sooner", "later", "undated"]


def test_created_date_sort_is_newest_first_and_title_sort_is_alphabetical():
    todos = [
        _todo("b", created_date=NOW - timedelta(days=3)),
        _todo("C", created_date=NOW),
        _todo("a", created_date=NOW - timedelta(days=1)),
    ]

    assert [t.title for t in sort_todos(todos, "created_date")] == ["C", "a", "b"]
    assert [t.title for t in sort_todos(todos, "title")] == ["a", "b", "C"]


def test_priority_sort_uses_position_inside_each_tier():
    todos = [
        _todo("low", priority="low", position=1),
        _todo("medium 2", priority="medium", position=2),
        _todo("high", priority="high", position=1),
        _todo("medium 1", priority="medium", position=1),
    ]

    assert [t.title for t in sort_todos(todos)] == ["high", "medium 1", "medium 2", "low"]


def test_apply_list_view_filters_then_sorts():
    todos = [
        _todo("운동 B", priority="low"),
        _todo("운동 A", priority="high"),
        _todo("독서", priority="high"),
    ]

    visible = apply_list_view(todos, NOW, q="운동", sort="priority")

    assert [t.title for t in visible] == ["운동 A", "운동 B"]
