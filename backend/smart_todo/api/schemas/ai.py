"""Schemas for the AI-assisted endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from smart_todo.core.clock import to_local

Priority = Literal["high", "medium", "low"]


class TodoSummaryInput(BaseModel):
    title: str
    priority: Priority = "medium"
    category: Optional[str] = None
    completed: bool = False
    due_date: Optional[datetime] = None
    created_date: Optional[datetime] = None

    @field_validator("due_date", "created_date")
    @classmethod
    def localize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local(value) if value is not None else None


class AnalyticsSummaryRequest(BaseModel):
    # Presence of todos and the period value are checked in the summary service.
    todos: Optional[List[TodoSummaryInput]] = None
    period: Optional[str] = None


class SummaryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    urgent_tasks: List[str] = Field(default_factory=list, alias="urgentTasks")
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class ParseTodoRequest(BaseModel):
    text: Optional[Any] = None


class NormalizedTodo(BaseModel):
    title: str
    description: str = ""
    due_date: Optional[datetime] = None
    priority: Priority = "medium"
    category: str = "기타"
    completed: bool = False


class ParseTodoResponse(BaseModel):
    todos: List[NormalizedTodo]
