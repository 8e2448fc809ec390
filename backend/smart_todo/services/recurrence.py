"""Expansion of recurring todo templates into concrete future instances."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from smart_todo.core.clock import now_local, sunday_first_weekday, to_local
from smart_todo.db.capabilities import StoreCapabilities
from smart_todo.db.models.todo import Todo
from smart_todo.observability.metrics import log_metric

logger = logging.getLogger(__name__)

INSTANCE_CAPS = {
    "hourly": 100,
    "daily": 365,
    "weekly": 52,
    "monthly": 12,
}


@dataclass
class RecurrenceRule:
    repeat_type: str = "none"
    repeat_interval: int = 1
    repeat_days_of_week: List[int] = field(default_factory=list)

    @classmethod
    def from_todo(cls, todo: Todo) -> "RecurrenceRule":
        return cls(
            repeat_type=todo.repeat_type or "none",
            repeat_interval=todo.repeat_interval or 1,
            repeat_days_of_week=list(todo.repeat_days_of_week or []),
        )


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole months, letting a day past the month end spill into the next month.

    2025-01-31 + 1 month is 2025-03-03, the same normalization a calendar
    library applies when the month field is incremented in place.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    return value.replace(year=year, month=month, day=1) + timedelta(days=value.day - 1)


def default_repeat_end(now: datetime) -> datetime:
    """Generation horizon used when a recurring todo has no explicit end."""
    return add_months(now, 12)


def expand_recurrence(
    rule: RecurrenceRule,
    base: Optional[datetime],
    now: datetime,
    end: Optional[datetime] = None,
) -> List[datetime]:
    """Return the future occurrences of ``rule`` after ``now`` and up to ``end``.

    Steps are taken on local wall-clock time. Weekly rules walk one day at a
    time and keep every selected weekday; ``repeat_interval`` does not apply
    to them.
    """
    repeat_type = rule.repeat_type or "none"
    cap = INSTANCE_CAPS.get(repeat_type)
    if cap is None:
        return []

    now = to_local(now)
    current = to_local(base) if base is not None else now
    end = to_local(end) if end is not None else default_repeat_end(now)
    interval = rule.repeat_interval if rule.repeat_interval and rule.repeat_interval > 0 else 1

    if repeat_type == "weekly":
        selected = set(rule.repeat_days_of_week or []) or {sunday_first_weekday(current)}
    else:
        selected = set()

    occurrences: List[datetime] = []
    while current <= end and len(occurrences) < cap:
        if repeat_type == "weekly":
            if sunday_first_weekday(current) in selected and current > now:
                occurrences.append(current)
            current = current + timedelta(days=1)
            continue

        if current > now:
            occurrences.append(current)
        if repeat_type == "hourly":
            current = current + timedelta(hours=interval)
        elif repeat_type == "daily":
            current = current + timedelta(days=interval)
        else:
            current = add_months(current, interval)

    return occurrences


def build_recurring_instances(
    parent: Todo,
    capabilities: StoreCapabilities,
    now: Optional[datetime] = None,
) -> List[Todo]:
    """Materialize one child todo per occurrence of the parent's rule."""
    if not parent.is_recurring:
        return []

    occurrences = expand_recurrence(
        RecurrenceRule.from_todo(parent),
        parent.due_date,
        now or now_local(),
        parent.repeat_end_date,
    )
    instances: List[Todo] = []
    for due in occurrences:
        child = Todo(
            user_id=parent.user_id,
            title=parent.title,
            description=parent.description or "",
            priority=parent.priority,
            category=parent.category,
            completed=False,
            due_date=due,
            parent_todo_id=parent.id,
            repeat_type="none",
            repeat_interval=1,
        )
        if capabilities.supports_position:
            child.position = 0
        instances.append(child)
    return instances


def generate_recurring_todos(
    db: Session,
    parents: Sequence[Todo],
    capabilities: StoreCapabilities,
    now: Optional[datetime] = None,
) -> int:
    """Insert the instances of every recurring parent; returns how many were written.

    Best effort: the parents are already committed, so a failure here is
    logged and reported as zero generated instances.
    """
    recurring = [parent for parent in parents if parent.is_recurring]
    if not recurring:
        return 0

    try:
        instances: List[Todo] = []
        for parent in recurring:
            instances.extend(build_recurring_instances(parent, capabilities, now))
        if not instances:
            logger.info("Recurrence rules produced no future instances (parents=%s)", len(recurring))
            return 0
        db.add_all(instances)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Recurring todo generation failed for %s parent(s)", len(recurring))
        log_metric("todo.recurrence.failed", 1)
        return 0

    logger.info("Generated %s recurring instances from %s parent(s)", len(instances), len(recurring))
    log_metric("todo.recurrence.generated", len(instances))
    return len(instances)
