"""AI-assisted analytics and parsing routes."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

from smart_todo.api.schemas.ai import (
    AnalyticsSummaryRequest,
    ParseTodoRequest,
    ParseTodoResponse,
    SummaryResponse,
)
from smart_todo.observability.metrics import log_metric
from smart_todo.observability.tracing import trace
from smart_todo.services.ai_summary import generate_todo_summary
from smart_todo.services.todo_parser import parse_todos_from_text

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/analytics-summary", response_model=SummaryResponse)
def analytics_summary(payload: AnalyticsSummaryRequest, http_request: Request) -> SummaryResponse:
    """Summarize a client-supplied todo set for today or this week."""
    request_id = getattr(http_request.state, "request_id", None)
    todo_count = len(payload.todos) if payload.todos is not None else None
    metadata: Dict[str, Any] = {
        "route": "/ai/analytics-summary",
        "period": payload.period,
        "todo_count": todo_count,
    }

    start_time = datetime.now(timezone.utc)
    with trace("ai.analytics_summary", metadata=metadata, request_id=request_id):
        summary = generate_todo_summary(payload.todos, payload.period)

    latency_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
    log_metric("ai.summary.success", 1, metadata={"period": payload.period})
    log_metric("ai.summary.count", todo_count or 0, metadata={"period": payload.period})
    log_metric("ai.summary.latency_ms", latency_ms, metadata={"period": payload.period})
    return summary


@router.post("/parse-todo", response_model=ParseTodoResponse)
def parse_todo(payload: ParseTodoRequest, http_request: Request) -> ParseTodoResponse:
    """Convert free-form text into one or more normalized todos."""
    request_id = getattr(http_request.state, "request_id", None)
    text_length = len(payload.text) if isinstance(payload.text, str) else 0

    start_time = datetime.now(timezone.utc)
    with trace(
        "ai.parse_todo",
        metadata={"route": "/ai/parse-todo", "text_length": text_length},
        request_id=request_id,
    ):
        todos = parse_todos_from_text(payload.text)

    latency_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
    log_metric("ai.parse_todo.success", 1)
    log_metric("ai.parse_todo.count", len(todos))
    log_metric("ai.parse_todo.latency_ms", latency_ms)
    return ParseTodoResponse(todos=todos)
