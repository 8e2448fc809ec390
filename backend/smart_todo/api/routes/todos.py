"""Todo CRUD, ordering and stored-period summary routes."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from smart_todo.api.schemas.ai import SummaryResponse
from smart_todo.api.schemas.todo import (
    ReorderRequest,
    ReorderResponse,
    TodoBatchRequest,
    TodoBatchResponse,
    TodoCreateRequest,
    TodoCreateResponse,
    TodoOut,
    TodoUpdateRequest,
)
from smart_todo.core.clock import now_local
from smart_todo.core.context import bind_user_id
from smart_todo.db.capabilities import StoreCapabilities
from smart_todo.db.deps import get_capabilities, get_db
from smart_todo.observability.metrics import log_metric, timed
from smart_todo.observability.tracing import trace
from smart_todo.services import todo_service
from smart_todo.services.ai_summary import generate_todo_summary
from smart_todo.services.todo_query import apply_list_view

router = APIRouter(prefix="/todos", tags=["todos"])


@router.get("", response_model=List[TodoOut])
def list_todos(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the todos"),
    q: Optional[str] = Query(default=None, max_length=100),
    priority: str = Query("all", pattern="^(all|high|medium|low)$"),
    status_filter: str = Query(
        "all",
        alias="status",
        pattern="^(all|completed|incomplete|in_progress|overdue)$",
    ),
    sort: str = Query("priority", pattern="^(priority|due_date|created_date|title)$"),
    db: Session = Depends(get_db),
    capabilities: StoreCapabilities = Depends(get_capabilities),
) -> List[TodoOut]:
    """List a user's todos with search, filters and sorting."""
    bind_user_id(user_id)
    request_id = getattr(http_request.state, "request_id", None)
    now = now_local()

    with trace(
        "todo.list",
        metadata={"route": "/todos", "priority": priority, "status": status_filter, "sort": sort},
        user_id=str(user_id),
        request_id=request_id,
    ):
        stored = todo_service.list_todos(db, user_id, capabilities)
        todos = todo_service.serialize_todos(stored, capabilities, now)
        visible = apply_list_view(todos, now, q=q, priority=priority, status=status_filter, sort=sort)

    log_metric("todo.list.success", 1, metadata={"user_id": str(user_id)})
    log_metric("todo.list.count", len(visible), metadata={"user_id": str(user_id)})
    return visible


@router.post("", response_model=TodoCreateResponse, status_code=status.HTTP_201_CREATED)
def create_todo(
    payload: TodoCreateRequest,
    db: Session = Depends(get_db),
    capabilities: StoreCapabilities = Depends(get_capabilities),
) -> TodoCreateResponse:
    """Create one todo and expand its recurrence rule if it has one."""
    bind_user_id(payload.user_id)
    now = now_local()
    with timed("todo.create", metadata={"user_id": str(payload.user_id)}):
        todo, generated = todo_service.create_todo(db, payload.user_id, payload, capabilities, now)
        result = TodoCreateResponse(
            todo=todo_service.serialize_todo(todo, capabilities, now),
            generated_count=generated,
        )
    return result


@router.post("/batch", response_model=TodoBatchResponse, status_code=status.HTTP_201_CREATED)
def create_todos(
    payload: TodoBatchRequest,
    db: Session = Depends(get_db),
    capabilities: StoreCapabilities = Depends(get_capabilities),
) -> TodoBatchResponse:
    """Create several todos at once, as produced by the multi-step parser."""
    bind_user_id(payload.user_id)
    now = now_local()
    with timed("todo.create_batch", metadata={"user_id": str(payload.user_id), "size": len(payload.todos)}):
        todos, generated = todo_service.create_todos(db, payload.user_id, payload.todos, capabilities, now)
        result = TodoBatchResponse(
            todos=[todo_service.serialize_todo(todo, capabilities, now) for todo in todos],
            generated_count=generated,
        )
    return result


@router.put("/order", response_model=ReorderResponse)
def reorder_todos(
    payload: ReorderRequest,
    db: Session = Depends(get_db),
    capabilities: StoreCapabilities = Depends(get_capabilities),
) -> ReorderResponse:
    """Persist a drag-and-drop order; positions restart at 1 inside each priority."""
    bind_user_id(payload.user_id)
    result = todo_service.reorder_todos(db, payload.user_id, payload.ordered_ids, capabilities)
    log_metric("todo.reorder.persisted", 1 if result.persisted else 0, metadata={"user_id": str(payload.user_id)})
    return ReorderResponse(
        persisted=result.persisted,
        updated_count=result.updated_count,
        skipped_reason=result.skipped_reason,
    )


@router.get("/summary", response_model=SummaryResponse)
def stored_summary(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the todos"),
    period: str = Query("today", pattern="^(today|week)$"),
    db: Session = Depends(get_db),
    capabilities: StoreCapabilities = Depends(get_capabilities),
) -> SummaryResponse:
    """Summarize the stored todos created or due in the requested period."""
    bind_user_id(user_id)
    request_id = getattr(http_request.state, "request_id", None)
    now = now_local()

    with trace(
        "todo.summary",
        metadata={"route": "/todos/summary", "period": period},
        user_id=str(user_id),
        request_id=request_id,
    ):
        todos = todo_service.todos_for_period(db, user_id, period, capabilities, now)
        summary = generate_todo_summary(todos, period, now)

    log_metric("todo.summary.count", len(todos), metadata={"period": period})
    return summary


@router.patch("/{todo_id}", response_model=TodoOut)
def update_todo(
    todo_id: UUID,
    payload: TodoUpdateRequest,
    db: Session = Depends(get_db),
    capabilities: StoreCapabilities = Depends(get_capabilities),
) -> TodoOut:
    """Edit a todo owned by the caller."""
    bind_user_id(payload.user_id)
    now = now_local()
    with timed("todo.update", metadata={"todo_id": str(todo_id)}):
        todo = todo_service.update_todo(db, todo_id, payload, now)
        result = todo_service.serialize_todo(todo, capabilities, now)
    return result


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_todo(
    todo_id: UUID,
    user_id: UUID = Query(..., description="User ID owning the todo"),
    db: Session = Depends(get_db),
) -> Response:
    """Delete a todo; instances generated from it are kept."""
    bind_user_id(user_id)
    todo_service.delete_todo(db, todo_id, user_id)
    log_metric("todo.delete.success", 1, metadata={"todo_id": str(todo_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
