from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from smart_todo.core.clock import now_local
from smart_todo.main import app
from smart_todo.services import llm_client


class DummyMessage:
    def __init__(self, content):
        self.content = content


class DummyChoice:
    def __init__(self, content):
        self.message = DummyMessage(content)


class DummyCompletion:
    def __init__(self, content):
        self.choices = [DummyChoice(content)]


class ProviderError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def _install_model(monkeypatch, reply=None, error=None):
    """Replace the OpenAI client with one that returns ``reply`` or raises ``error``."""
    calls = []

    class DummyClient:
        def __init__(self, *args, **kwargs):
            pass

        class chat:  # type: ignore[valid-type]
            class completions:  # type: ignore[valid-type]
                @staticmethod
                def create(*args, **kwargs):
                    calls.append(kwargs)
                    if error is not None:
                        raise error
                    return DummyCompletion(reply)

    monkeypatch.setattr(llm_client.settings, "openai_api_key", "test-key")
    monkeypatch.setattr("openai.OpenAI", DummyClient)
    return calls


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.mark.parametrize(
    "body, message",
    [
        ({}, "입력 텍스트가 필요합니다."),
        ({"text": 123}, "입력 텍스트가 필요합니다."),
        ({"text": "   "}, "입력 텍스트가 비어있습니다."),
        ({"text": "a"}, "입력 텍스트는 최소 2자 이상이어야 합니다."),
        ({"text": "가" * 501}, "입력 텍스트는 500자 이하여야 합니다. (현재: 501자)"),
        ({"text": "파티 준비 " + "\U0001F600" * 11}, "이모지가 너무 많습니다. 텍스트를 중심으로 입력해주세요."),
    ],
)
def test_invalid_input_is_rejected_before_calling_the_model(client, monkeypatch, body, message):
    calls = _install_model(monkeypatch, reply="{}")

    response = client.post("/ai/parse-todo", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": message}
    assert calls == []


def test_missing_api_key_is_a_server_error(client, monkeypatch):
    monkeypatch.setattr(llm_client.settings, "openai_api_key", None)

    response = client.post("/ai/parse-todo", json={"text": "이메일 보내기"})

    assert response.status_code == 500
    assert "OPENAI_API_KEY" in response.json()["error"]


def test_simple_task_becomes_single_todo(client, monkeypatch):
    tomorrow = (now_local() + timedelta(days=1)).date()
    reply = json.dumps(
        {
            "todos": [
                {
                    "title": "이메일 보내기",
                    "description": "",
                    "due_date": tomorrow.isoformat(),
                    "due_time": "09:00",
                    "priority": "medium",
                    "category": "기타",
                }
            ]
        },
        ensure_ascii=False,
    )
    calls = _install_model(monkeypatch, reply=reply)

    response = client.post("/ai/parse-todo", json={"text": "  이메일   보내기 "})

    assert response.status_code == 200
    todos = response.json()["todos"]
    assert len(todos) == 1
    assert todos[0]["title"] == "이메일 보내기"
    assert todos[0]["priority"] == "medium"
    assert todos[0]["category"] == "기타"
    assert todos[0]["completed"] is False
    due = datetime.fromisoformat(todos[0]["due_date"])
    assert due.date() == tomorrow
    assert (due.hour, due.minute) == (9, 0)

    call = calls[0]
    assert call["temperature"] == 0.3
    assert call["response_format"] == {"type": "json_object"}
    assert '입력 텍스트: "이메일 보내기"' in call["messages"][1]["content"]


def test_complex_task_is_split_and_fenced_reply_accepted(client, monkeypatch):
    steps = [
        {"title": f"{index}단계: 작업 {index}", "due_date": None, "priority": "high", "category": "업무"}
        for index in range(1, 4)
    ]
    reply = "```json\n" + json.dumps({"todos": steps}, ensure_ascii=False) + "\n```"
    _install_model(monkeypatch, reply=reply)

    response = client.post("/ai/parse-todo", json={"text": "내일까지 중요한 프로젝트 완료하기"})

    assert response.status_code == 200
    todos = response.json()["todos"]
    assert [todo["title"] for todo in todos] == ["1단계: 작업 1", "2단계: 작업 2", "3단계: 작업 3"]
    assert all(todo["due_date"] is None for todo in todos)


def test_unparseable_reply_is_a_bad_request(client, monkeypatch):
    _install_model(monkeypatch, reply="할 일을 만들 수 없습니다")

    response = client.post("/ai/parse-todo", json={"text": "이메일 보내기"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("AI 응답 형식이 올바르지 않습니다: ")


def test_empty_reply_is_a_bad_request(client, monkeypatch):
    _install_model(monkeypatch, reply="")

    response = client.post("/ai/parse-todo", json={"text": "이메일 보내기"})

    assert response.status_code == 400
    assert response.json() == {"error": "AI 응답 형식이 올바르지 않습니다: AI 응답이 비어있습니다."}


def test_reply_without_todos_is_a_bad_request(client, monkeypatch):
    _install_model(monkeypatch, reply=json.dumps({"todos": []}))

    response = client.post("/ai/parse-todo", json={"text": "이메일 보내기"})

    assert response.status_code == 400
    assert response.json() == {"error": "AI가 할 일을 생성하지 못했습니다. 다시 시도해주세요."}


def test_rate_limit_maps_to_429(client, monkeypatch):
    _install_model(monkeypatch, error=ProviderError("Rate limit reached", status_code=429))

    response = client.post("/ai/parse-todo", json={"text": "이메일 보내기"})

    assert response.status_code == 429
    assert response.json() == {"error": "AI 서비스 사용 한도가 초과되었습니다. 잠시 후 다시 시도해주세요."}


def test_legacy_single_object_reply_is_accepted(client, monkeypatch):
    _install_model(monkeypatch, reply=json.dumps({"title": "책 읽기", "priority": "low", "category": "학습"}))

    response = client.post("/ai/parse-todo", json={"text": "여유롭게 책 읽기"})

    assert response.status_code == 200
    todos = response.json()["todos"]
    assert todos == [
        {
            "title": "책 읽기",
            "description": "",
            "due_date": None,
            "priority": "low",
            "category": "학습",
            "completed": False,
        }
    ]


def test_deeply_nested_reply_is_a_bad_request(client, monkeypatch):
    _install_model(monkeypatch, reply='{"todos": ' + "[" * 200000 + "]" * 200000 + "}")

    response = client.post("/ai/parse-todo", json={"text": "이메일 보내기"})

    assert response.status_code == 400
    assert response.json() == {"error": "AI 응답 형식이 올바르지 않습니다: AI 응답의 중첩이 너무 깊습니다."}
