from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from smart_todo.services.todo_analytics import compute_statistics, percentage, time_slot_for_hour

KST = ZoneInfo("Asia/Seoul")
NOW = datetime(2025, 1, 15, 10, 0, tzinfo=KST)  # Wednesday


@dataclass
class Item:
    title: str
    priority: str = "medium"
    category: Optional[str] = None
    completed: bool = False
    due_date: Optional[datetime] = None


def test_empty_collection_has_neutral_statistics():
    stats = compute_statistics([], "today", NOW)

    assert stats.total_count == 0
    assert stats.completion_rate == 0
    assert stats.on_time_rate == 100
    assert stats.most_completed_category == "없음"
    assert stats.most_delayed_category == "없음"
    assert stats.urgent_tasks == []


def test_completion_rate_rounds_half_up():
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(1, 8) == 13
    assert percentage(5, 0) == 0

    todos = [Item("a", completed=True), Item("b"), Item("c")]
    assert compute_statistics(todos, "today", NOW).completion_rate == 33


def test_priority_breakdown_and_pending_high_priority():
    todos = [
        Item("a", priority="high", completed=True),
        Item("b", priority="high"),
        Item("c", priority="low"),
    ]

    stats = compute_statistics(todos, "today", NOW)

    assert stats.priority_stats["high"].total == 2
    assert stats.priority_stats["high"].completed == 1
    assert stats.priority_stats["high"].rate == 50
    assert stats.priority_stats["medium"].total == 0
    assert stats.priority_stats["low"].rate == 0
    assert stats.high_priority_count == 1
    assert stats.pending_count == 2


def test_overdue_ignores_completed_and_undated_todos():
    yesterday = NOW - timedelta(days=1)
    todos = [
        Item("late", due_date=yesterday),
        Item("late but done", due_date=yesterday, completed=True),
        Item("no deadline"),
        Item("upcoming", due_date=NOW + timedelta(days=2)),
    ]

    assert compute_statistics(todos, "today", NOW).overdue_count == 1


def test_every_completed_todo_with_deadline_counts_as_on_time():
    todos = [
        Item("a", completed=True, due_date=NOW - timedelta(days=3)),
        Item("b", completed=True),
        Item("c", due_date=NOW),
    ]

    assert compute_statistics(todos, "today", NOW).on_time_rate == 100


def test_categories_default_and_keep_insertion_order():
    todos = [
        Item("a", category="업무", completed=True),
        Item("b"),
        Item("c", category="업무"),
    ]

    stats = compute_statistics(todos, "today", NOW)

    assert list(stats.category_stats) == ["업무", "기타"]
    assert stats.category_stats["업무"].total == 2
    assert stats.category_stats["업무"].rate == 50
    assert stats.category_stats["기타"].total == 1


def test_time_slots_bucket_uncompleted_due_hours():
    day = datetime(2025, 1, 16, tzinfo=KST)
    todos = [
        Item("early", due_date=day.replace(hour=7)),
        Item("morning", due_date=day.replace(hour=10)),
        Item("afternoon", due_date=day.replace(hour=13)),
        Item("evening", due_date=day.replace(hour=19)),
        Item("late", due_date=day.replace(hour=23)),
        Item("small hours", due_date=day.replace(hour=3)),
        Item("done", due_date=day.replace(hour=10), completed=True),
    ]

    stats = compute_statistics(todos, "week", NOW)

    assert stats.time_slots == {"아침": 1, "오전": 1, "오후": 1, "저녁": 1, "밤": 2}
    assert time_slot_for_hour(22) == "밤"
    assert time_slot_for_hour(6) == "아침"


def test_due_hours_are_read_in_local_time():
    # 01:00 UTC is 10:00 in Seoul.
    utc_due = datetime(2025, 1, 16, 1, 0, tzinfo=ZoneInfo("UTC"))

    stats = compute_statistics([Item("a", due_date=utc_due)], "today", NOW)

    assert stats.time_slots["오전"] == 1


def test_day_of_week_only_for_week_period():
    todos = [
        Item("fri", due_date=datetime(2025, 1, 17, 9, tzinfo=KST), completed=True),
        Item("fri 2", due_date=datetime(2025, 1, 17, 15, tzinfo=KST)),
        Item("sun", due_date=datetime(2025, 1, 19, 9, tzinfo=KST)),
        Item("undated"),
    ]

    week = compute_statistics(todos, "week", NOW)
    today = compute_statistics(todos, "today", NOW)

    assert week.day_of_week_stats["금요일"].total == 2
    assert week.day_of_week_stats["금요일"].completed == 1
    assert week.day_of_week_stats["일요일"].total == 1
    assert len(week.day_of_week_stats) == 2
    assert today.day_of_week_stats == {}


def test_most_completed_category_ties_go_to_first_seen():
    todos = [
        Item("a", category="학습", completed=True),
        Item("b", category="업무", completed=True),
        Item("c", category="업무", completed=True),
        Item("d", category="학습", completed=True),
    ]

    assert compute_statistics(todos, "today", NOW).most_completed_category == "학습"


def test_most_delayed_category_uses_overdue_todos():
    past = NOW - timedelta(hours=3)
    todos = [
        Item("a", category="개인", due_date=past),
        Item("b", category="건강", due_date=past),
        Item("c", category="건강", due_date=past),
        Item("d", category="업무", due_date=NOW + timedelta(days=1)),
    ]

    assert compute_statistics(todos, "today", NOW).most_delayed_category == "건강"


def test_urgent_tasks_follow_input_order_and_cap_at_five():
    todos = [
        Item("due in 20h", due_date=NOW + timedelta(hours=20)),
        Item("due in 30h", due_date=NOW + timedelta(hours=30)),
        Item("high 1", priority="high"),
        Item("overdue", due_date=NOW - timedelta(days=2)),
        Item("done high", priority="high", completed=True),
        Item("high 2", priority="high"),
        Item("high 3", priority="high"),
        Item("high 4", priority="high"),
    ]

    stats = compute_statistics(todos, "today", NOW)

    assert stats.urgent_tasks == ["due in 20h", "high 1", "overdue", "high 2", "high 3"]
