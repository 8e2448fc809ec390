"""Turn free-form Korean text into todo payloads with the help of the language model."""
from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, List, Optional

from smart_todo.api.schemas.ai import NormalizedTodo
from smart_todo.core.clock import now_local, sunday_first_weekday, to_local
from smart_todo.core.config import settings
from smart_todo.core.errors import InputValidationError, ModelResponseError
from smart_todo.services.llm_client import complete_json, get_llm_client, strip_code_fence
from smart_todo.services.todo_analytics import WEEKDAY_NAMES
from smart_todo.services.todo_normalizer import extract_candidates, normalize_candidates

logger = logging.getLogger(__name__)

MIN_INPUT_LENGTH = 2
MAX_INPUT_LENGTH = 500
MAX_EMOJI = 10
EMOJI_PATTERN = re.compile("[\U0001F300-\U0001F9FF]")
WHITESPACE_PATTERN = re.compile(r"\s+")

PARSE_SYSTEM_PROMPT = (
    "You are a helpful assistant that converts natural language input into structured JSON data "
    "for a todo management system. For complex tasks, automatically break them down into multiple "
    "step-by-step todos. Always respond with valid JSON only, no markdown or explanations. "
    "The response must be a JSON object with a 'todos' array containing one or more todo items."
)

# Sunday=0 order, matching WEEKDAY_NAMES.
WEEKDAY_PROMPT_ORDER = (1, 2, 3, 4, 5, 6, 0)


def preprocess_input(text: Any) -> str:
    """Trim and collapse whitespace, rejecting input the model should never see."""
    if not text or not isinstance(text, str):
        raise InputValidationError("입력 텍스트가 필요합니다.")
    processed = WHITESPACE_PATTERN.sub(" ", text.strip())
    if not processed:
        raise InputValidationError("입력 텍스트가 비어있습니다.")
    if len(processed) < MIN_INPUT_LENGTH:
        raise InputValidationError("입력 텍스트는 최소 2자 이상이어야 합니다.")
    if len(processed) > MAX_INPUT_LENGTH:
        raise InputValidationError(f"입력 텍스트는 500자 이하여야 합니다. (현재: {len(processed)}자)")
    if len(EMOJI_PATTERN.findall(processed)) > MAX_EMOJI:
        raise InputValidationError("이모지가 너무 많습니다. 텍스트를 중심으로 입력해주세요.")
    return processed


def this_week_day(today: date, target: int) -> date:
    """Next occurrence of ``target`` (Sunday=0); today's weekday means a week out."""
    days_until = (target - sunday_first_weekday(today) + 7) % 7
    return today + timedelta(days=days_until or 7)


def next_week_day(today: date, target: int) -> date:
    days_until = (target - sunday_first_weekday(today) + 7) % 7
    return today + timedelta(days=14 if days_until == 0 else 7 + days_until)


def _relative_date_rules(today: date) -> str:
    lines = [
        f'   - "오늘" → {today.isoformat()}',
        f'   - "내일" → {(today + timedelta(days=1)).isoformat()}',
        f'   - "모레" → {(today + timedelta(days=2)).isoformat()}',
    ]
    for target in WEEKDAY_PROMPT_ORDER:
        lines.append(f'   - "이번 주 {WEEKDAY_NAMES[target]}" → {this_week_day(today, target).isoformat()}')
    for target in WEEKDAY_PROMPT_ORDER:
        lines.append(f'   - "다음 주 {WEEKDAY_NAMES[target]}" → {next_week_day(today, target).isoformat()}')
    lines.append("   - 날짜가 명시되지 않으면 null")
    return "\n".join(lines)


def _todo_shape(title: str) -> str:
    return (
        "    {\n"
        f'      "title": "{title}",\n'
        '      "description": "상세 설명",\n'
        '      "due_date": "YYYY-MM-DD 또는 null",\n'
        '      "due_time": "HH:MM",\n'
        '      "priority": "high" | "medium" | "low",\n'
        '      "category": "업무" | "개인" | "건강" | "학습" | "기타"\n'
        "    }"
    )


def _split_example(tomorrow: str) -> str:
    steps = [
        ("1단계: 프로젝트 요구사항 분석", "프로젝트 목표와 요구사항을 정리하고 우선순위를 결정합니다.", "09:00"),
        ("2단계: 프로젝트 설계 및 계획 수립", "전체 구조를 설계하고 세부 일정을 계획합니다.", "12:00"),
        ("3단계: 프로젝트 구현", "설계한 계획에 따라 실제 작업을 수행합니다.", "15:00"),
        ("4단계: 프로젝트 검토 및 마무리", "완성된 프로젝트를 검토하고 최종 점검을 합니다.", "18:00"),
    ]
    example = {
        "todos": [
            {
                "title": title,
                "description": description,
                "due_date": tomorrow,
                "due_time": due_time,
                "priority": "high",
                "category": "업무",
            }
            for title, description, due_time in steps
        ]
    }
    single = {
        "todos": [
            {
                "title": "이메일 보내기",
                "description": "이메일을 작성하고 전송합니다.",
                "due_date": None,
                "due_time": "09:00",
                "priority": "medium",
                "category": "업무",
            }
        ]
    }
    return (
        '입력: "내일까지 중요한 프로젝트 완료하기"\n출력:\n'
        f"{json.dumps(example, ensure_ascii=False, indent=2)}\n\n"
        '입력: "이메일 보내기"\n출력:\n'
        f"{json.dumps(single, ensure_ascii=False, indent=2)}"
    )


def build_parse_prompt(text: str, now: datetime) -> str:
    """Compose the conversion request for ``text`` relative to the local date of ``now``."""
    local_now = to_local(now)
    today = local_now.date()
    weekday_name = WEEKDAY_NAMES[sunday_first_weekday(local_now)]
    tomorrow = (today + timedelta(days=1)).isoformat()

    return f"""다음 자연어 입력을 할 일 관리 시스템의 구조화된 데이터로 변환해주세요.

현재 날짜: {today.year}년 {today.month}월 {today.day}일 ({today.isoformat()}, {weekday_name})

입력 텍스트: "{text}"

=== 중요: 할 일 분할 규칙 ===
입력된 할 일이 복잡하거나 여러 단계가 필요한 경우, 자동으로 단계별로 나눠서 제공하세요.

**단일 할 일로 반환하는 경우:**
- 단순하고 즉시 실행 가능한 할 일
- 예: "이메일 보내기", "책 읽기", "친구에게 전화하기", "운동하기"

**여러 단계로 나눠서 반환하는 경우:**
- 복잡하고 여러 단계가 필요한 할 일
- 예: "프로젝트 완료하기" → ["1단계: 요구사항 분석", "2단계: 설계", "3단계: 구현", "4단계: 테스트"]
- 예: "회의 준비하기" → ["1단계: 자료 수집", "2단계: 발표 자료 작성", "3단계: 리허설"]
- 예: "보고서 작성하기" → ["1단계: 자료 조사", "2단계: 초안 작성", "3단계: 검토 및 수정"]
- 예: "웹사이트 만들기" → ["1단계: 기획 및 설계", "2단계: 디자인", "3단계: 개발", "4단계: 배포"]

**분할 기준:**
- 입력에 "준비", "완료", "작성", "만들기", "구현" 등의 복잡한 동사가 포함된 경우
- 입력에 여러 단계가 명시된 경우 (예: "1. ... 2. ... 3. ...")
- 입력이 추상적이고 구체적인 행동이 필요한 경우
- 각 단계는 독립적으로 실행 가능하고, 순서가 있는 경우 순서대로 배치

반드시 다음 JSON 형식으로만 응답하세요 (다른 설명이나 마크다운 없이 순수 JSON만):

단일 할 일인 경우:
{{
  "todos": [
{_todo_shape("할 일 제목")}
  ]
}}

여러 단계로 나눠야 하는 경우:
{{
  "todos": [
{_todo_shape("1단계: 첫 번째 단계 제목")},
{_todo_shape("2단계: 두 번째 단계 제목")}
  ]
}}

=== 필수 규칙 (반드시 준수) ===

1. 날짜 처리 규칙:
{_relative_date_rules(today)}

2. 시간 처리 규칙:
   - "아침" → "09:00"
   - "점심" → "12:00"
   - "오후" → "14:00"
   - "저녁" → "18:00"
   - "밤" → "21:00"
   - "오전 9시" → "09:00", "오전 10시" → "10:00"
   - "오후 3시" → "15:00", "오후 3시 30분" → "15:30"
   - 구체적인 시간이 없으면 "09:00" (기본값)

3. 우선순위 키워드 (정확히 매칭):
   - "high": "급하게", "중요한", "빨리", "꼭", "반드시" 키워드가 포함된 경우
   - "medium": "보통", "적당히" 키워드가 있거나 키워드가 없는 경우
   - "low": "여유롭게", "천천히", "언젠가" 키워드가 포함된 경우

4. 카테고리 분류 키워드 (정확히 매칭):
   - "업무": "회의", "보고서", "프로젝트", "업무" 키워드가 포함된 경우
   - "개인": "쇼핑", "친구", "가족", "개인" 키워드가 포함된 경우
   - "건강": "운동", "병원", "건강", "요가" 키워드가 포함된 경우
   - "학습": "공부", "책", "강의", "학습" 키워드가 포함된 경우
   - 위 키워드가 없으면 "기타"

5. 출력 양식:
   - 반드시 유효한 JSON 형식만 응답
   - 마크다운 코드 블록, 설명, 주석 등 없이 순수 JSON만
   - 모든 필드는 반드시 포함되어야 함

제목은 핵심 키워드만 추출하여 간결하게 작성하고, 설명은 원본 텍스트를 기반으로 작성하세요.

**할 일 분할 예시:**

{_split_example(tomorrow)}

반드시 todos 배열로 응답하고, 각 할 일은 독립적으로 실행 가능해야 합니다."""


def _load_reply(raw_text: str) -> dict:
    body = strip_code_fence(raw_text)
    if not body:
        raise ModelResponseError("AI 응답 형식이 올바르지 않습니다: AI 응답이 비어있습니다.")
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ModelResponseError(f"AI 응답 형식이 올바르지 않습니다: {exc.msg}") from exc
    except RecursionError as exc:
        raise ModelResponseError("AI 응답 형식이 올바르지 않습니다: AI 응답의 중첩이 너무 깊습니다.") from exc
    if not isinstance(payload, dict):
        raise ModelResponseError("AI 응답 형식이 올바르지 않습니다: AI 응답이 유효한 JSON 객체가 아닙니다.")
    return payload


def parse_todos_from_text(text: Any, now: Optional[datetime] = None) -> List[NormalizedTodo]:
    """Validate ``text``, ask the model for todo candidates and normalize them."""
    processed = preprocess_input(text)
    now = to_local(now) if now is not None else now_local()
    client = get_llm_client()

    raw_reply = complete_json(
        client,
        PARSE_SYSTEM_PROMPT,
        build_parse_prompt(processed, now),
        temperature=settings.parse_temperature,
        trace_name="llm.parse_todo",
        action="parse",
        metadata={"input_chars": len(processed)},
    )
    try:
        payload = _load_reply(raw_reply)
    except ModelResponseError:
        logger.warning("Unparseable parse-todo reply: %r", raw_reply[:500])
        raise

    candidates = extract_candidates(payload)
    if not candidates:
        raise ModelResponseError("AI가 할 일을 생성하지 못했습니다. 다시 시도해주세요.")

    todos = normalize_candidates(candidates, processed, now)
    logger.info("Parsed %s todo(s) from %s chars of input", len(todos), len(processed))
    return todos
