"""Schemas for todo CRUD and ordering."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from smart_todo.core.clock import to_local

Priority = Literal["high", "medium", "low"]
RepeatType = Literal["none", "hourly", "daily", "weekly", "monthly"]
TodoStatus = Literal["completed", "overdue", "in_progress"]


def _localize(value: Optional[datetime]) -> Optional[datetime]:
    return to_local(value) if value is not None else None


def _check_weekdays(value: Optional[List[int]]) -> Optional[List[int]]:
    if value is None:
        return None
    if any(day < 0 or day > 6 for day in value):
        raise ValueError("repeat_days_of_week entries must be between 0 (Sunday) and 6 (Saturday)")
    return sorted(set(value))


def _strip_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        raise ValueError("title must not be blank")
    return stripped


class TodoCreateFields(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)
    priority: Priority = "medium"
    category: Optional[str] = None
    completed: bool = False
    due_date: Optional[datetime] = None
    repeat_type: RepeatType = "none"
    repeat_interval: int = Field(default=1, ge=1)
    repeat_days_of_week: Optional[List[int]] = None
    repeat_end_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: Optional[str]) -> Optional[str]:
        return _strip_title(value)

    @field_validator("due_date", "repeat_end_date")
    @classmethod
    def localize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _localize(value)

    @field_validator("repeat_days_of_week")
    @classmethod
    def check_weekdays(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        return _check_weekdays(value)


class TodoCreateRequest(TodoCreateFields):
    user_id: UUID


class TodoBatchRequest(BaseModel):
    user_id: UUID
    todos: List[TodoCreateFields] = Field(min_length=1)


class TodoUpdateRequest(BaseModel):
    """Partial update; a field sent as ``null`` clears it where the column allows."""

    user_id: UUID
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    priority: Optional[Priority] = None
    category: Optional[str] = None
    completed: Optional[bool] = None
    due_date: Optional[datetime] = None
    repeat_type: Optional[RepeatType] = None
    repeat_interval: Optional[int] = Field(default=None, ge=1)
    repeat_days_of_week: Optional[List[int]] = None
    repeat_end_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: Optional[str]) -> Optional[str]:
        return _strip_title(value)

    @field_validator("due_date", "repeat_end_date")
    @classmethod
    def localize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _localize(value)

    @field_validator("repeat_days_of_week")
    @classmethod
    def check_weekdays(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        return _check_weekdays(value)


class TodoOut(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    description: str
    priority: Priority
    category: Optional[str]
    completed: bool
    due_date: Optional[datetime]
    created_date: datetime
    updated_at: datetime
    position: Optional[int]
    repeat_type: RepeatType
    repeat_interval: int
    repeat_days_of_week: Optional[List[int]]
    repeat_end_date: Optional[datetime]
    parent_todo_id: Optional[UUID]
    status: TodoStatus


class TodoCreateResponse(BaseModel):
    todo: TodoOut
    generated_count: int


class TodoBatchResponse(BaseModel):
    todos: List[TodoOut]
    generated_count: int


class ReorderRequest(BaseModel):
    user_id: UUID
    ordered_ids: List[UUID]


class ReorderResponse(BaseModel):
    persisted: bool
    updated_count: int
    skipped_reason: Optional[str] = None
