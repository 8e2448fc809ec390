"""Schemas for user profile reads and edits."""
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class UserProfile(BaseModel):
    id: UUID
    email: Optional[str]
    name: Optional[str]
    created_at: Optional[datetime]


class UserUpdateRequest(BaseModel):
    """Profile edit; ``user_id`` is the acting user and must own the profile."""

    user_id: UUID
    name: Optional[str] = Field(default=None, max_length=100)

    @field_validator("name")
    @classmethod
    def blank_name_clears(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class UserActivityStats(BaseModel):
    total: int
    completed: int
    in_progress: int
    completion_rate: int
