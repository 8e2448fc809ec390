"""Thin wrapper around the OpenAI chat completion API used by the AI endpoints."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional

import openai
from fastapi import status

from smart_todo.core.config import settings
from smart_todo.core.errors import LLMConfigurationError, ServiceError
from smart_todo.observability.tracing import trace

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "OPENAI_API_KEY 환경변수가 설정되지 않았습니다."
UNKNOWN_ERROR_DETAIL = "알 수 없는 오류"


class LLMErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    MODEL_NOT_FOUND = "model_not_found"
    BAD_REQUEST = "bad_request"
    UNKNOWN = "unknown"


KIND_STATUS = {
    LLMErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    LLMErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    LLMErrorKind.MODEL_NOT_FOUND: status.HTTP_400_BAD_REQUEST,
    LLMErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    LLMErrorKind.UNKNOWN: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Bad-request wording depends on which endpoint made the call.
BAD_REQUEST_MESSAGES = {
    "summary": "AI 분석 중 오류가 발생했습니다: {detail}",
    "parse": "AI가 입력을 처리할 수 없습니다: {detail}",
}


class LLMServiceError(ServiceError):
    """The model provider rejected or failed the request."""

    def __init__(self, kind: LLMErrorKind, message: str) -> None:
        super().__init__(message, status_code=KIND_STATUS[kind])
        self.kind = kind


def get_llm_client() -> "openai.OpenAI":
    """Build an OpenAI client from settings or fail with a configuration error."""
    api_key = settings.openai_api_key
    if not api_key:
        raise LLMConfigurationError(MISSING_KEY_MESSAGE)
    return openai.OpenAI(api_key=api_key)


def _error_kind(exc: Exception) -> LLMErrorKind:
    status_code = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    code = getattr(exc, "code", None)
    message = str(exc).lower()

    if status_code == 401 or "api key" in message or "authentication" in message:
        return LLMErrorKind.UNAUTHORIZED
    if status_code == 429 or any(token in message for token in ("429", "quota", "rate limit")):
        return LLMErrorKind.RATE_LIMITED
    if code == "model_not_found" or ("model" in message and "not found" in message):
        return LLMErrorKind.MODEL_NOT_FOUND
    if status_code == 400 or any(token in message for token in ("400", "invalid", "bad request")):
        return LLMErrorKind.BAD_REQUEST
    return LLMErrorKind.UNKNOWN


def classify_llm_error(exc: Exception, action: str) -> LLMServiceError:
    """Translate a provider failure into a user-facing ``LLMServiceError``."""
    kind = _error_kind(exc)
    detail = str(exc) or UNKNOWN_ERROR_DETAIL
    if kind is LLMErrorKind.UNAUTHORIZED:
        message = "AI API 키가 유효하지 않습니다. 환경변수를 확인해주세요."
    elif kind is LLMErrorKind.RATE_LIMITED:
        message = "AI 서비스 사용 한도가 초과되었습니다. 잠시 후 다시 시도해주세요."
    elif kind is LLMErrorKind.MODEL_NOT_FOUND:
        message = "AI 모델을 찾을 수 없습니다. 모델명을 확인해주세요."
    elif kind is LLMErrorKind.BAD_REQUEST:
        template = BAD_REQUEST_MESSAGES.get(action, "AI 요청이 거부되었습니다: {detail}")
        message = template.format(detail=detail)
    else:
        message = f"AI 처리 중 오류가 발생했습니다: {detail}"
    return LLMServiceError(kind, message)


def strip_code_fence(text: str) -> str:
    """Return the body of a ```json (or bare ```) fenced block, or the trimmed text."""
    if not text:
        return ""
    if "```json" in text:
        return text.split("```json", 1)[1].split("```", 1)[0].strip()
    if "```" in text:
        return text.split("```", 1)[1].split("```", 1)[0].strip()
    return text.strip()


def complete_json(
    client: Any,
    system_prompt: str,
    user_prompt: str,
    *,
    temperature: float,
    trace_name: str,
    action: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> str:
    """Run one JSON-mode chat completion and return the reply text (possibly empty).

    Provider failures are logged and re-raised as ``LLMServiceError``.
    """
    trace_metadata: Dict[str, Any] = {
        "model": settings.openai_model,
        "temperature": temperature,
        "prompt_chars": len(user_prompt),
    }
    trace_metadata.update(metadata or {})

    with trace(trace_name, metadata=trace_metadata) as llm_trace:
        try:
            response = client.chat.completions.create(
                model=settings.openai_model,
                response_format={"type": "json_object"},
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except Exception as exc:
            logger.exception("LLM call %s failed", trace_name)
            raise classify_llm_error(exc, action) from exc

        choices = getattr(response, "choices", None) or []
        content = (choices[0].message.content if choices else None) or ""
        if llm_trace:
            llm_trace.update(output={"chars": len(content)})
        return content.strip()
