from __future__ import annotations

import pytest

from smart_todo.core.errors import LLMConfigurationError
from smart_todo.services import llm_client
from smart_todo.services.llm_client import LLMErrorKind, classify_llm_error, complete_json, strip_code_fence


class _ProviderError(Exception):
    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


def test_strip_code_fence_variants():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'
    assert strip_code_fence("") == ""


@pytest.mark.parametrize(
    "error, kind, status_code",
    [
        (_ProviderError("Incorrect API key provided", status_code=401), LLMErrorKind.UNAUTHORIZED, 401),
        (_ProviderError("You exceeded your current quota"), LLMErrorKind.RATE_LIMITED, 429),
        (_ProviderError("slow down", status_code=429), LLMErrorKind.RATE_LIMITED, 429),
        (_ProviderError("gone", code="model_not_found"), LLMErrorKind.MODEL_NOT_FOUND, 400),
        (_ProviderError("The model `gpt-x` does not exist or was not found"), LLMErrorKind.MODEL_NOT_FOUND, 400),
        (_ProviderError("Invalid parameter", status_code=400), LLMErrorKind.BAD_REQUEST, 400),
        (_ProviderError("connection reset"), LLMErrorKind.UNKNOWN, 500),
    ],
)
def test_classify_llm_error(error, kind, status_code):
    classified = classify_llm_error(error, "summary")

    assert classified.kind is kind
    assert classified.status_code == status_code


def test_bad_request_wording_depends_on_action():
    error = _ProviderError("invalid prompt", status_code=400)

    assert classify_llm_error(error, "summary").message == "AI 분석 중 오류가 발생했습니다: invalid prompt"
    assert classify_llm_error(error, "parse").message == "AI가 입력을 처리할 수 없습니다: invalid prompt"


def test_unknown_error_without_message_uses_placeholder():
    assert classify_llm_error(_ProviderError(""), "parse").message == "AI 처리 중 오류가 발생했습니다: 알 수 없는 오류"


def test_missing_api_key_raises_configuration_error(monkeypatch):
    monkeypatch.setattr(llm_client.settings, "openai_api_key", None)

    with pytest.raises(LLMConfigurationError) as excinfo:
        llm_client.get_llm_client()

    assert excinfo.value.status_code == 500
    assert "OPENAI_API_KEY" in excinfo.value.message


class _Message:
    def __init__(self, content):
        self.content = content


class _Choice:
    def __init__(self, content):
        self.message = _Message(content)


class _Completion:
    def __init__(self, content):
        self.choices = [_Choice(content)]


class _Completions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return _Completion(self.content)


class _Client:
    def __init__(self, completions):
        self.chat = type("Chat", (), {"completions": completions})()


def test_complete_json_requests_json_mode_and_strips_reply():
    completions = _Completions(content='  {"summary": "ok"}\n')

    reply = complete_json(
        _Client(completions),
        "system",
        "user prompt",
        temperature=0.3,
        trace_name="llm.test",
        action="parse",
    )

    assert reply == '{"summary": "ok"}'
    call = completions.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    assert call["temperature"] == 0.3
    assert call["messages"][0] == {"role": "system", "content": "system"}
    assert call["messages"][1] == {"role": "user", "content": "user prompt"}


def test_complete_json_returns_empty_string_for_missing_content():
    reply = complete_json(
        _Client(_Completions(content=None)),
        "system",
        "user",
        temperature=0.7,
        trace_name="llm.test",
        action="summary",
    )

    assert reply == ""


def test_complete_json_classifies_provider_failures():
    completions = _Completions(error=_ProviderError("Rate limit reached", status_code=429))

    with pytest.raises(llm_client.LLMServiceError) as excinfo:
        complete_json(
            _Client(completions),
            "system",
            "user",
            temperature=0.7,
            trace_name="llm.test",
            action="summary",
        )

    assert excinfo.value.status_code == 429
    assert excinfo.value.message == "AI 서비스 사용 한도가 초과되었습니다. 잠시 후 다시 시도해주세요."
