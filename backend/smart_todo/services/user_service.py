"""Helpers for working with users."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from smart_todo.api.schemas.user import UserActivityStats
from smart_todo.core.clock import now_local, to_local
from smart_todo.core.errors import NotFoundError, OwnershipError
from smart_todo.db.models.todo import Todo
from smart_todo.db.models.user import User
from smart_todo.services.todo_analytics import percentage

logger = logging.getLogger(__name__)


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """Fetch an existing user or create a new row safely."""
    user = db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    return user


def update_user_name(db: Session, user_id: UUID, acting_user_id: UUID, name: Optional[str]) -> User:
    """Rename a profile; only its owner may do so."""
    user = get_user(db, user_id)
    if user_id != acting_user_id:
        raise OwnershipError("다른 사용자의 정보는 수정할 수 없습니다.")

    user.name = name
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Updated profile name")
    return user


def get_activity_stats(db: Session, user_id: UUID, now: Optional[datetime] = None) -> UserActivityStats:
    """Counts shown on the profile page.

    ``in_progress`` only covers open todos whose deadline has not passed;
    open todos without a deadline are counted in ``total`` alone.
    """
    get_user(db, user_id)
    now = to_local(now) if now is not None else now_local()
    rows = db.query(Todo.completed, Todo.due_date).filter(Todo.user_id == user_id).all()

    total = len(rows)
    completed = sum(1 for done, _ in rows if done)
    in_progress = sum(1 for done, due in rows if not done and due is not None and to_local(due) >= now)
    return UserActivityStats(
        total=total,
        completed=completed,
        in_progress=in_progress,
        completion_rate=percentage(completed, total),
    )
