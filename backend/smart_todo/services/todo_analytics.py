"""Aggregate statistics over a todo collection for the productivity summary."""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from smart_todo.core.clock import sunday_first_weekday, to_local

DEFAULT_CATEGORY = "기타"
NO_CATEGORY = "없음"
PERIODS = ("today", "week")
MAX_URGENT_TASKS = 5

TIME_SLOTS = ("아침", "오전", "오후", "저녁", "밤")
TIME_SLOT_RANGES = {
    "아침": "6-9시",
    "오전": "9-12시",
    "오후": "12-18시",
    "저녁": "18-22시",
    "밤": "22시 이후",
}
WEEKDAY_NAMES = ("일요일", "월요일", "화요일", "수요일", "목요일", "금요일", "토요일")


class SummaryTodo(Protocol):
    title: str
    priority: str
    category: Optional[str]
    completed: bool
    due_date: Optional[datetime]


@dataclass
class CompletionStat:
    total: int = 0
    completed: int = 0
    rate: int = 0


@dataclass
class TodoStatistics:
    period: str
    total_count: int
    completed_count: int
    completion_rate: int
    priority_stats: Dict[str, CompletionStat]
    high_priority_count: int
    overdue_count: int
    on_time_rate: int
    category_stats: Dict[str, CompletionStat]
    time_slots: Dict[str, int]
    day_of_week_stats: Dict[str, CompletionStat] = field(default_factory=dict)
    most_completed_category: str = NO_CATEGORY
    most_delayed_category: str = NO_CATEGORY
    urgent_tasks: List[str] = field(default_factory=list)

    @property
    def pending_count(self) -> int:
        return self.total_count - self.completed_count


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage rounded half up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)


def time_slot_for_hour(hour: int) -> str:
    if 6 <= hour < 9:
        return "아침"
    if 9 <= hour < 12:
        return "오전"
    if 12 <= hour < 18:
        return "오후"
    if 18 <= hour < 22:
        return "저녁"
    return "밤"


def _category_of(todo: SummaryTodo) -> str:
    return todo.category or DEFAULT_CATEGORY


def _most_common(values: Sequence[str]) -> str:
    if not values:
        return NO_CATEGORY
    # Counter keeps first-seen order, so ties go to the earliest category.
    counts = Counter(values)
    best = max(counts.values())
    return next(value for value, count in counts.items() if count == best)


def _is_urgent(todo: SummaryTodo, now: datetime) -> bool:
    if todo.completed:
        return False
    if todo.priority == "high":
        return True
    if todo.due_date is None:
        return False
    days_until_due = math.ceil((to_local(todo.due_date) - now).total_seconds() / 86400)
    return days_until_due <= 1


def _fill_rates(stats: Dict[str, CompletionStat]) -> None:
    for stat in stats.values():
        stat.rate = percentage(stat.completed, stat.total)


def compute_statistics(todos: Sequence[SummaryTodo], period: str, now: datetime) -> TodoStatistics:
    """Reduce ``todos`` (already limited to the period window) into summary statistics."""
    now = to_local(now)
    total = len(todos)
    completed_todos = [todo for todo in todos if todo.completed]
    completed = len(completed_todos)

    priority_stats = {priority: CompletionStat() for priority in ("high", "medium", "low")}
    category_stats: Dict[str, CompletionStat] = {}
    for todo in todos:
        priority_stat = priority_stats.setdefault(todo.priority, CompletionStat())
        category_stat = category_stats.setdefault(_category_of(todo), CompletionStat())
        priority_stat.total += 1
        category_stat.total += 1
        if todo.completed:
            priority_stat.completed += 1
            category_stat.completed += 1
    _fill_rates(priority_stats)
    _fill_rates(category_stats)

    delayed = [
        todo
        for todo in todos
        if not todo.completed and todo.due_date is not None and to_local(todo.due_date) < now
    ]

    # Completion timestamps are not tracked, so every completed todo with a
    # deadline counts as finished on time.
    completed_with_due = [todo for todo in completed_todos if todo.due_date is not None]
    on_time_rate = percentage(len(completed_with_due), len(completed_with_due)) if completed_with_due else 100

    time_slots = {slot: 0 for slot in TIME_SLOTS}
    for todo in todos:
        if todo.due_date is not None and not todo.completed:
            time_slots[time_slot_for_hour(to_local(todo.due_date).hour)] += 1

    day_of_week_stats: Dict[str, CompletionStat] = {}
    if period == "week":
        for todo in todos:
            if todo.due_date is None:
                continue
            day_name = WEEKDAY_NAMES[sunday_first_weekday(to_local(todo.due_date))]
            day_stat = day_of_week_stats.setdefault(day_name, CompletionStat())
            day_stat.total += 1
            if todo.completed:
                day_stat.completed += 1
        _fill_rates(day_of_week_stats)

    urgent_tasks = [todo.title for todo in todos if _is_urgent(todo, now)][:MAX_URGENT_TASKS]

    return TodoStatistics(
        period=period,
        total_count=total,
        completed_count=completed,
        completion_rate=percentage(completed, total),
        priority_stats=priority_stats,
        high_priority_count=sum(1 for todo in todos if todo.priority == "high" and not todo.completed),
        overdue_count=len(delayed),
        on_time_rate=on_time_rate,
        category_stats=category_stats,
        time_slots=time_slots,
        day_of_week_stats=day_of_week_stats,
        most_completed_category=_most_common([_category_of(todo) for todo in completed_todos]),
        most_delayed_category=_most_common([_category_of(todo) for todo in delayed]),
        urgent_tasks=urgent_tasks,
    )
