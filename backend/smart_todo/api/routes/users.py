"""User profile routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from smart_todo.api.schemas.user import UserActivityStats, UserProfile, UserUpdateRequest
from smart_todo.core.context import bind_user_id
from smart_todo.db.deps import get_db
from smart_todo.observability.metrics import log_metric
from smart_todo.observability.tracing import trace
from smart_todo.services.user_service import get_activity_stats, get_user, update_user_name

router = APIRouter(prefix="/users", tags=["users"])


def _profile(user) -> UserProfile:
    return UserProfile(id=user.id, email=user.email, name=user.name, created_at=user.created_at)


@router.get("/{user_id}", response_model=UserProfile)
def read_user(user_id: UUID, http_request: Request, db: Session = Depends(get_db)) -> UserProfile:
    """Return the stored profile of a user."""
    bind_user_id(user_id)
    with trace("user.read", metadata={"route": "/users/{user_id}"}, request_id=getattr(http_request.state, "request_id", None)):
        user = get_user(db, user_id)
    return _profile(user)


@router.patch("/{user_id}", response_model=UserProfile)
def update_user(
    user_id: UUID,
    payload: UserUpdateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> UserProfile:
    """Change the display name of the caller's own profile."""
    bind_user_id(payload.user_id)
    with trace(
        "user.update",
        metadata={"route": "/users/{user_id}", "clears_name": payload.name is None},
        request_id=getattr(http_request.state, "request_id", None),
    ):
        user = update_user_name(db, user_id, payload.user_id, payload.name)
    log_metric("user.update.success", 1)
    return _profile(user)


@router.get("/{user_id}/stats", response_model=UserActivityStats)
def read_user_stats(user_id: UUID, http_request: Request, db: Session = Depends(get_db)) -> UserActivityStats:
    """Activity counts over all of a user's todos."""
    bind_user_id(user_id)
    with trace(
        "user.stats",
        metadata={"route": "/users/{user_id}/stats"},
        request_id=getattr(http_request.state, "request_id", None),
    ):
        stats = get_activity_stats(db, user_id)
    log_metric("user.stats.total", stats.total)
    return stats
