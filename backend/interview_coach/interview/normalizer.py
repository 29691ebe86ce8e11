import math
from typing import Any

from interview_coach.interview.fallback import fallback_questions, synthesize_question
from interview_coach.interview.models import (
    QUESTION_COUNT,
    TIPS_COUNT,
    EvaluationResult,
    InterviewConfig,
    Question,
    round_half_up,
)
from interview_coach.interview.planner import (
    OPENER_TEXT,
    canonicalize,
    clean_question_text,
    get_category_plan,
    is_generic_question,
)

DEFAULT_METRIC = 6
DEFAULT_OVERALL = 65
DEFAULT_SENTIMENT = "neutral"
DEFAULT_FEEDBACK = "Good start. Improve technical specificity and measurable outcomes."
DEFAULT_TIPS = [
    "Use STAR structure for better clarity.",
    "Add one concrete metric in your answer.",
    "Explain your technical trade-offs clearly.",
]


def clamp(value: Any, low: int, high: int, default: int) -> int:
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return max(low, min(high, round_half_up(number)))


def _raw_text(item: Any) -> str:
    if isinstance(item, dict):
        return str(item.get("text") or "")
    if isinstance(item, str):
        return item
    return ""


def _replacement(
    slot: int,
    category: str,
    fallback: list[Question],
    used: set[str],
    config: InterviewConfig,
) -> str:
    candidates = [fallback[slot]] + [q for q in fallback if q.category == category and q.id != slot + 1]
    for candidate in candidates:
        if canonicalize(candidate.text) not in used:
            return candidate.text
    return synthesize_question(config, category, slot, used)


def normalize_questions(
    raw_questions: Any,
    config: InterviewConfig,
    plan: list[str] | None = None,
    seed: int = 0,
) -> list[Question]:
    """
    Coerce model output into exactly QUESTION_COUNT questions following the plan.

    Slots with empty, generic or duplicate text take the fallback question for
    the same slot. The category always comes from the plan, never the model.
    """
    plan = plan or get_category_plan(config.type)
    fallback = fallback_questions(config, seed=seed)
    items = list(raw_questions) if isinstance(raw_questions, (list, tuple)) else []

    used: set[str] = set()
    normalized: list[Question] = []
    for slot in range(QUESTION_COUNT):
        category = plan[slot]
        if slot == 0 and category == "HR":
            text = OPENER_TEXT
        else:
            text = clean_question_text(_raw_text(items[slot]) if slot < len(items) else "")
            if not text or is_generic_question(text) or canonicalize(text) in used:
                text = _replacement(slot, category, fallback, used, config)
        used.add(canonicalize(text))
        normalized.append(Question(id=slot + 1, text=text, category=category))
    return normalized


def _normalize_tips(raw_tips: Any) -> list[str]:
    tips: list[str] = []
    if isinstance(raw_tips, (list, tuple)):
        tips = [tip.strip() for tip in raw_tips if isinstance(tip, str) and tip.strip()][:TIPS_COUNT]
    while len(tips) < TIPS_COUNT:
        tips.append(DEFAULT_TIPS[len(tips)])
    return tips


def _text_or(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def normalize_evaluation(raw: Any) -> EvaluationResult:
    if isinstance(raw, EvaluationResult):
        raw = raw.model_dump()
    data = raw if isinstance(raw, dict) else {}

    return EvaluationResult(
        relevance=clamp(data.get("relevance"), 1, 10, DEFAULT_METRIC),
        clarity=clamp(data.get("clarity"), 1, 10, DEFAULT_METRIC),
        confidence=clamp(data.get("confidence"), 1, 10, DEFAULT_METRIC),
        technical_depth=clamp(data.get("technical_depth"), 1, 10, DEFAULT_METRIC),
        sentiment=_text_or(data.get("sentiment"), DEFAULT_SENTIMENT),
        overall_score=clamp(data.get("overall_score"), 1, 100, DEFAULT_OVERALL),
        feedback=_text_or(data.get("feedback"), DEFAULT_FEEDBACK),
        improvement_tips=_normalize_tips(data.get("improvement_tips")),
    )
