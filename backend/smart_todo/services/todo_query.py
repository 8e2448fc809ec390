"""Search, filter and sort helpers for the todo list view."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from smart_todo.api.schemas.todo import TodoOut
from smart_todo.core.clock import to_local

PRIORITY_FILTERS = ("all", "high", "medium", "low")
STATUS_FILTERS = ("all", "completed", "incomplete", "in_progress", "overdue")
SORT_OPTIONS = ("priority", "due_date", "created_date", "title")

PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}


def derive_status(completed: bool, due_date: Optional[datetime], now: datetime) -> str:
    if completed:
        return "completed"
    if due_date is not None and to_local(due_date) < to_local(now):
        return "overdue"
    return "in_progress"


def _matches_status(todo: TodoOut, status: str, now: datetime) -> bool:
    if status == "completed":
        return todo.completed
    if status == "incomplete":
        return not todo.completed
    if status in ("in_progress", "overdue"):
        return derive_status(todo.completed, todo.due_date, now) == status
    return True


def filter_todos(
    todos: Sequence[TodoOut],
    now: datetime,
    q: Optional[str] = None,
    priority: str = "all",
    status: str = "all",
) -> List[TodoOut]:
    filtered = list(todos)
    if q:
        needle = q.lower()
        filtered = [todo for todo in filtered if needle in todo.title.lower()]
    if priority != "all":
        filtered = [todo for todo in filtered if todo.priority == priority]
    if status != "all":
        filtered = [todo for todo in filtered if _matches_status(todo, status, now)]
    return filtered


def sort_todos(todos: Sequence[TodoOut], sort: str = "priority") -> List[TodoOut]:
    """Order for display; every sort is stable with respect to the input order."""
    if sort == "due_date":
        dated = sorted((todo for todo in todos if todo.due_date is not None), key=lambda todo: todo.due_date)
        return dated + [todo for todo in todos if todo.due_date is None]
    if sort == "created_date":
        return sorted(todos, key=lambda todo: todo.created_date, reverse=True)
    if sort == "title":
        return sorted(todos, key=lambda todo: todo.title.casefold())
    return sorted(todos, key=lambda todo: (-PRIORITY_RANK.get(todo.priority, 0), todo.position or 0))


def apply_list_view(
    todos: Sequence[TodoOut],
    now: datetime,
    q: Optional[str] = None,
    priority: str = "all",
    status: str = "all",
    sort: str = "priority",
) -> List[TodoOut]:
    return sort_todos(filter_todos(todos, now, q=q, priority=priority, status=status), sort)
