"""Render todo statistics into the analysis request sent to the language model."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from smart_todo.core.clock import to_local
from smart_todo.services.todo_analytics import (
    DEFAULT_CATEGORY,
    NO_CATEGORY,
    TIME_SLOT_RANGES,
    SummaryTodo,
    TodoStatistics,
)

SUMMARY_SYSTEM_PROMPT = (
    "You are a helpful assistant that analyzes todo data and provides insights in Korean. "
    "Always respond with valid JSON only, no markdown or explanations."
)

PRIORITY_LABELS = {"high": "높음", "medium": "중간", "low": "낮음"}


def _period_label(period: str) -> str:
    return "오늘" if period == "today" else "이번 주"


def _month_day_time(value: datetime) -> str:
    local = to_local(value)
    meridiem = "오전" if local.hour < 12 else "오후"
    hour = local.hour % 12 or 12
    return f"{local.month}월 {local.day}일 {meridiem} {hour}:{local.minute:02d}"


def _month_day(value: datetime) -> str:
    local = to_local(value)
    return f"{local.month}월 {local.day}일"


def _todo_line(index: int, todo: SummaryTodo) -> str:
    state = "✓ 완료" if todo.completed else "○ 미완료"
    details = [
        f"우선순위: {PRIORITY_LABELS.get(todo.priority, '중간')}",
        f"카테고리: {todo.category or DEFAULT_CATEGORY}",
    ]
    if todo.due_date is not None:
        details.append(f"마감: {_month_day_time(todo.due_date)}")
    created: Optional[datetime] = getattr(todo, "created_date", None)
    if created is not None:
        details.append(f"생성: {_month_day(created)}")
    return f'{index}. [{state}] "{todo.title}" ({", ".join(details)})'


def _statistics_sections(stats: TodoStatistics) -> List[str]:
    priority = stats.priority_stats
    sections = [
        "=== 기본 통계 ===\n"
        f"- 전체 할 일: {stats.total_count}개\n"
        f"- 완료된 할 일: {stats.completed_count}개\n"
        f"- 미완료 할 일: {stats.pending_count}개\n"
        f"- 전체 완료율: {stats.completion_rate}%\n"
        f"- 미완료 긴급 작업: {stats.high_priority_count}개\n"
        f"- 지연된 작업: {stats.overdue_count}개\n"
        f"- 마감일 준수율: {stats.on_time_rate}%",
        "=== 우선순위별 완료율 분석 ===\n"
        + "\n".join(
            f"- {PRIORITY_LABELS[key]}: {priority[key].completed}/{priority[key].total}개 완료 ({priority[key].rate}%)"
            for key in ("high", "medium", "low")
        ),
        "=== 카테고리별 통계 ===\n"
        + "\n".join(
            f"- {category}: {stat.completed}/{stat.total}개 완료 ({stat.rate}%)"
            for category, stat in stats.category_stats.items()
        ),
        "=== 시간대별 업무 집중도 (미완료 작업 기준) ===\n"
        + "\n".join(
            f"- {slot} ({TIME_SLOT_RANGES[slot]}): {count}개" for slot, count in stats.time_slots.items()
        ),
    ]
    if stats.period == "week" and stats.day_of_week_stats:
        sections.append(
            "=== 요일별 분석 ===\n"
            + "\n".join(
                f"- {day}: {stat.completed}/{stat.total}개 완료" for day, stat in stats.day_of_week_stats.items()
            )
        )

    delayed_note = " (지연된 작업 기준)" if stats.most_delayed_category != NO_CATEGORY else ""
    sections.append(
        "=== 생산성 패턴 분석 ===\n"
        f"- 가장 많이 완료한 카테고리: {stats.most_completed_category}\n"
        f"- 자주 미루는 카테고리: {stats.most_delayed_category}{delayed_note}"
    )
    urgent = (
        "\n".join(f"{index}. {title}" for index, title in enumerate(stats.urgent_tasks, start=1))
        if stats.urgent_tasks
        else NO_CATEGORY
    )
    sections.append(f"=== 긴급 작업 목록 ===\n{urgent}")
    return sections


def _response_contract(stats: TodoStatistics) -> str:
    week = stats.period == "week"
    focus = "이번 주 패턴" if week else "오늘의 집중도와 남은 할 일"
    return (
        "=== 분석 요청 사항 ===\n\n"
        "위 데이터를 심층 분석하여 다음 JSON 형식으로 응답해주세요:\n\n"
        "{\n"
        f'  "summary": "전체 요약 문장 (완료율, 주요 성과 포함, {focus})",\n'
        '  "urgentTasks": ["긴급 작업 제목 1", "긴급 작업 제목 2"],\n'
        '  "insights": [\n'
        '    "인사이트 1 (구체적이고 실행 가능한 분석)",\n'
        '    "인사이트 2",\n'
        '    "인사이트 3 (최대 5개)"\n'
        "  ],\n"
        '  "recommendations": [\n'
        '    "추천 1 (구체적이고 실행 가능한 조언)",\n'
        '    "추천 2 (최대 5개)"\n'
        "  ]\n"
        "}"
    )


def _guidelines(stats: TodoStatistics) -> str:
    week = stats.period == "week"
    delayed = stats.most_delayed_category
    return (
        "=== 분석 가이드라인 ===\n\n"
        "1. 완료율 분석:\n"
        "   - 우선순위별 완료 패턴을 분석 (높은 우선순위를 잘 처리하는지, 낮은 우선순위에 집중하는지)\n"
        "   - 카테고리별 완료 패턴 분석 (어떤 분야에서 생산성이 높은지)\n"
        f"   {'- 요일별 패턴을 분석하여 가장 생산적인 요일 도출' if week else '- 오늘의 집중도와 효율성 분석'}\n\n"
        "2. 시간 관리 분석:\n"
        f"   - 마감일 준수율({stats.on_time_rate}%)을 기반으로 시간 관리 능력 평가\n"
        "   - 시간대별 업무 집중도 분석 (어느 시간대에 할 일이 집중되어 있는지)\n"
        f"   - 지연된 작업({stats.overdue_count}개)의 패턴 분석\n"
        "   - 연기되는 작업의 공통 특징 파악\n\n"
        "3. 생산성 패턴:\n"
        f"   - 가장 많이 완료한 카테고리({stats.most_completed_category})의 특징 분석\n"
        f"   - 자주 미루는 카테고리({delayed})의 원인 추론\n"
        f"   {'- 요일별 패턴에서 가장 생산적인 요일과 시간대 도출' if week else '- 시간대별 집중도에서 가장 효율적인 시간대 분석'}\n"
        "   - 완료하기 쉬운 작업과 미루기 쉬운 작업의 차이점 분석\n\n"
        "4. 실행 가능한 추천:\n"
        '   - 구체적인 시간 관리 팁 제공 (예: "오후 시간대 할 일을 오전으로 2개씩 분산하기")\n'
        "   - 우선순위 조정 제안 (데이터 기반)\n"
        "   - 업무 과부하를 줄이는 분산 전략 (시간대별, 요일별 분산)\n"
        "   - 즉시 실행 가능한 액션 아이템\n\n"
        "5. 긍정적인 피드백:\n"
        f'   - 잘하고 있는 부분을 구체적으로 강조 (예: "높은 우선순위 작업을 {stats.priority_stats["high"].rate}% 완료하셨어요!")\n'
        "   - 개선점을 격려하는 긍정적인 톤으로 제시\n"
        "   - 동기부여가 되는 메시지 포함\n\n"
        "6. 기간별 차별화:\n"
        + (
            "   - 이번 주 요약: 주간 패턴 분석, 가장 생산적인 요일/시간대, 다음 주 계획 제안, 주간 완료율 평가\n\n"
            if week
            else "   - 오늘의 요약: 당일 집중도 분석, 남은 시간 활용 방안, 긴급 작업 우선순위 제시\n\n"
        )
        + "7. 문체:\n"
        "   - 자연스럽고 친근한 한국어\n"
        "   - 구체적인 수치와 데이터를 포함\n"
        "   - 이해하기 쉽고 바로 실천할 수 있는 문장\n"
        "   - 격려와 동기부여가 담긴 톤\n\n"
        "=== 중요 규칙 ===\n"
        "- 반드시 유효한 JSON 형식만 응답 (마크다운 코드 블록 없이 순수 JSON)\n"
        "- 모든 필수 필드 포함 (summary, urgentTasks, insights, recommendations)\n"
        "- insights와 recommendations는 각각 3-5개로 구성\n"
        "- 긍정적이면서도 구체적인 피드백 제공\n"
        "- 데이터 기반의 정확한 분석\n\n"
        "JSON만 응답하세요."
    )


def build_summary_prompt(
    todos: Sequence[SummaryTodo],
    stats: TodoStatistics,
    period: str,
    now: datetime,
) -> str:
    """Compose the user message for the productivity summary request."""
    local_now = to_local(now)
    label = _period_label(period)
    header = (
        f"당신은 할 일 관리 전문가입니다. 다음은 {label} 사용자의 할 일 데이터입니다.\n\n"
        "=== 현재 상황 ===\n"
        f"현재 날짜: {local_now.year}년 {local_now.month}월 {local_now.day}일\n"
        f"분석 기간: {'오늘 하루' if period == 'today' else '이번 주 (월~일)'}"
    )
    listing = "=== 상세 할 일 목록 ===\n" + "\n".join(
        _todo_line(index, todo) for index, todo in enumerate(todos, start=1)
    )
    parts = [header, *_statistics_sections(stats), listing, _response_contract(stats), _guidelines(stats)]
    return "\n\n".join(parts)
