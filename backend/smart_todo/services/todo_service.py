"""Owner-scoped persistence operations for todos."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, undefer

from smart_todo.api.schemas.todo import TodoCreateFields, TodoOut, TodoUpdateRequest
from smart_todo.core.clock import now_local, to_local
from smart_todo.core.errors import NotFoundError, OwnershipError
from smart_todo.db.capabilities import StoreCapabilities
from smart_todo.db.models.todo import PRIORITIES, Todo
from smart_todo.services.ai_summary import select_period_todos
from smart_todo.services.recurrence import default_repeat_end, generate_recurring_todos
from smart_todo.services.todo_query import derive_status
from smart_todo.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)

NULLABLE_UPDATE_FIELDS = ("category", "due_date", "repeat_days_of_week", "repeat_end_date")
REQUIRED_UPDATE_FIELDS = ("title", "description", "priority", "completed", "repeat_type", "repeat_interval")


@dataclass
class ReorderResult:
    persisted: bool
    updated_count: int = 0
    skipped_reason: Optional[str] = None


def _priority_rank():
    return case((Todo.priority == "high", 0), (Todo.priority == "medium", 1), else_=2)


def list_todos(db: Session, user_id: UUID, capabilities: StoreCapabilities) -> List[Todo]:
    """Owner's todos by priority tier, then manual position when stored, then newest first."""
    query = db.query(Todo).filter(Todo.user_id == user_id)
    order_by = [_priority_rank()]
    if capabilities.supports_position:
        query = query.options(undefer(Todo.position))
        order_by.append(func.coalesce(Todo.position, 0))
    order_by.append(Todo.created_date.desc())
    return query.order_by(*order_by).all()


def serialize_todo(
    todo: Todo,
    capabilities: StoreCapabilities,
    now: datetime,
    fallback_position: Optional[int] = None,
) -> TodoOut:
    position = todo.position if capabilities.supports_position else fallback_position
    return TodoOut(
        id=todo.id,
        user_id=todo.user_id,
        title=todo.title,
        description=todo.description or "",
        priority=todo.priority,
        category=todo.category,
        completed=bool(todo.completed),
        due_date=todo.due_date,
        created_date=todo.created_date,
        updated_at=todo.updated_at,
        position=position,
        repeat_type=todo.repeat_type or "none",
        repeat_interval=todo.repeat_interval or 1,
        repeat_days_of_week=todo.repeat_days_of_week,
        repeat_end_date=todo.repeat_end_date,
        parent_todo_id=todo.parent_todo_id,
        status=derive_status(bool(todo.completed), todo.due_date, now),
    )


def serialize_todos(todos: Sequence[Todo], capabilities: StoreCapabilities, now: datetime) -> List[TodoOut]:
    """Serialize in store order; without a position column the index stands in for it."""
    return [
        serialize_todo(todo, capabilities, now, fallback_position=index + 1)
        for index, todo in enumerate(todos)
    ]


def _next_positions(db: Session, user_id: UUID) -> Dict[str, int]:
    rows = db.execute(
        select(Todo.priority, func.max(Todo.position))
        .where(Todo.user_id == user_id)
        .group_by(Todo.priority)
    ).all()
    highest = {priority: (value or 0) for priority, value in rows}
    return {priority: highest.get(priority, 0) + 1 for priority in PRIORITIES}


def _build_todo(user_id: UUID, payload: TodoCreateFields, now: datetime) -> Todo:
    todo = Todo(
        user_id=user_id,
        title=payload.title,
        description=payload.description or "",
        priority=payload.priority,
        category=payload.category,
        completed=payload.completed,
        due_date=payload.due_date,
        repeat_type=payload.repeat_type,
        repeat_interval=payload.repeat_interval,
        repeat_days_of_week=payload.repeat_days_of_week,
        repeat_end_date=payload.repeat_end_date,
    )
    _apply_repeat_defaults(todo, now)
    return todo


def _apply_repeat_defaults(todo: Todo, now: datetime) -> None:
    if not todo.is_recurring:
        return
    if todo.repeat_end_date is None:
        todo.repeat_end_date = default_repeat_end(now)
    if todo.repeat_type != "weekly":
        todo.repeat_days_of_week = None


def create_todos(
    db: Session,
    user_id: UUID,
    payloads: Sequence[TodoCreateFields],
    capabilities: StoreCapabilities,
    now: Optional[datetime] = None,
) -> Tuple[List[Todo], int]:
    """Insert ``payloads`` in one transaction and expand any recurrence rules.

    Returns the created todos and the number of generated recurrence instances.
    """
    now = to_local(now) if now is not None else now_local()
    get_or_create_user(db, user_id)

    todos = [_build_todo(user_id, payload, now) for payload in payloads]
    if capabilities.supports_position:
        next_positions = _next_positions(db, user_id)
        for todo in todos:
            todo.position = next_positions[todo.priority]
            next_positions[todo.priority] += 1

    db.add_all(todos)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    generated = generate_recurring_todos(db, todos, capabilities, now)
    logger.info("Created %s todo(s) for user (recurrence instances=%s)", len(todos), generated)
    return todos, generated


def create_todo(
    db: Session,
    user_id: UUID,
    payload: TodoCreateFields,
    capabilities: StoreCapabilities,
    now: Optional[datetime] = None,
) -> Tuple[Todo, int]:
    todos, generated = create_todos(db, user_id, [payload], capabilities, now)
    return todos[0], generated


def get_owned_todo(db: Session, todo_id: UUID, user_id: UUID) -> Todo:
    todo = db.get(Todo, todo_id)
    if not todo:
        raise NotFoundError("할 일을 찾을 수 없습니다.")
    if todo.user_id != user_id:
        raise OwnershipError("다른 사용자의 할 일에는 접근할 수 없습니다.")
    return todo


def update_todo(
    db: Session,
    todo_id: UUID,
    payload: TodoUpdateRequest,
    now: Optional[datetime] = None,
) -> Todo:
    """Apply the fields present in ``payload``; recurrence is not re-expanded."""
    todo = get_owned_todo(db, todo_id, payload.user_id)
    sent = payload.model_fields_set

    for field in REQUIRED_UPDATE_FIELDS:
        value = getattr(payload, field)
        if field in sent and value is not None:
            setattr(todo, field, value)
    for field in NULLABLE_UPDATE_FIELDS:
        if field in sent:
            setattr(todo, field, getattr(payload, field))

    _apply_repeat_defaults(todo, to_local(now) if now is not None else now_local())
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return todo


def delete_todo(db: Session, todo_id: UUID, user_id: UUID) -> None:
    """Delete one todo; generated instances keep existing with their parent link cleared."""
    todo = get_owned_todo(db, todo_id, user_id)
    # SQLite does not enforce ON DELETE SET NULL without the foreign_keys pragma.
    db.query(Todo).filter(Todo.parent_todo_id == todo.id).update(
        {Todo.parent_todo_id: None}, synchronize_session=False
    )
    db.delete(todo)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def reorder_todos(
    db: Session,
    user_id: UUID,
    ordered_ids: Sequence[UUID],
    capabilities: StoreCapabilities,
) -> ReorderResult:
    """Rewrite positions 1..n inside each priority tier following ``ordered_ids``.

    Never raises: an unsupported store or a failed write is logged and reported
    in the result.
    """
    if not capabilities.supports_position:
        logger.warning("Reorder skipped: todos.position is not available.")
        return ReorderResult(persisted=False, skipped_reason="position_unsupported")

    try:
        owned = {
            todo.id: todo
            for todo in db.query(Todo).filter(Todo.user_id == user_id, Todo.id.in_(list(ordered_ids))).all()
        }
        ignored = len(set(ordered_ids) - set(owned))
        if ignored:
            logger.warning("Reorder ignored %s id(s) not owned by the user", ignored)

        groups: Dict[str, List[Todo]] = {priority: [] for priority in PRIORITIES}
        seen = set()
        for todo_id in ordered_ids:
            todo = owned.get(todo_id)
            if todo is None or todo_id in seen:
                continue
            seen.add(todo_id)
            groups.setdefault(todo.priority, []).append(todo)

        updated = 0
        for group in groups.values():
            for index, todo in enumerate(group):
                todo.position = index + 1
                updated += 1
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to persist todo order")
        return ReorderResult(persisted=False, skipped_reason=f"store_error: {type(exc).__name__}")

    return ReorderResult(persisted=True, updated_count=updated)


def todos_for_period(
    db: Session,
    user_id: UUID,
    period: str,
    capabilities: StoreCapabilities,
    now: datetime,
) -> List[Todo]:
    return select_period_todos(list_todos(db, user_id, capabilities), period, now)
