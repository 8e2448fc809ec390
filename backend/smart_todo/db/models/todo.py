"""Todo ORM model."""
from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, Column, FetchedValue, ForeignKey, Index, Integer, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import deferred

from smart_todo.db.base import Base
from smart_todo.db.types import JSONBCompat, UTCDateTime

PRIORITIES = ("high", "medium", "low")
REPEAT_TYPES = ("none", "hourly", "daily", "weekly", "monthly")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Todo(Base):
    __tablename__ = "todos"
    __table_args__ = (
        Index("ix_todos_user_id", "user_id"),
        Index("ix_todos_user_priority", "user_id", "priority"),
        Index("ix_todos_parent_todo_id", "parent_todo_id"),
    )
    __mapper_args__ = {"eager_defaults": False}

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="", server_default=sa_text("''"))
    priority = Column(String(length=10), nullable=False, default="medium", server_default=sa_text("'medium'"))
    category = Column(Text, nullable=True)
    completed = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    due_date = Column(UTCDateTime, nullable=True)
    created_date = Column(UTCDateTime, nullable=False, default=_utcnow, server_default=func.now())
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )
    # Older databases predate this column. It is loaded only when the store
    # supports it and left out of INSERTs unless explicitly assigned.
    position = deferred(Column(Integer, nullable=True, server_default=FetchedValue()))
    repeat_type = Column(String(length=10), nullable=False, default="none", server_default=sa_text("'none'"))
    repeat_interval = Column(Integer, nullable=False, default=1, server_default=sa_text("1"))
    repeat_days_of_week = Column(JSONBCompat, nullable=True)
    repeat_end_date = Column(UTCDateTime, nullable=True)
    parent_todo_id = Column(
        UUID(as_uuid=True),
        ForeignKey("todos.id", ondelete="SET NULL"),
        nullable=True,
    )

    @property
    def is_recurring(self) -> bool:
        return bool(self.repeat_type) and self.repeat_type != "none"
