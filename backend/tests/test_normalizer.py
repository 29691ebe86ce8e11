import pytest

from interview_coach.interview.fallback import fallback_questions
from interview_coach.interview.models import InterviewConfig
from interview_coach.interview.normalizer import (
    DEFAULT_FEEDBACK,
    DEFAULT_TIPS,
    clamp,
    normalize_evaluation,
    normalize_questions,
)
from interview_coach.interview.planner import OPENER_TEXT, canonicalize

MIXED = InterviewConfig(type="Mixed", role="Frontend Developer", experience="Experienced", company="Microsoft", difficulty="Advanced")
TECHNICAL = InterviewConfig(type="Technical", role="Frontend Developer", experience="Experienced", company="Microsoft", difficulty="Advanced")


RAW_EVALUATIONS = [
    {},
    None,
    "not a dict",
    [1, 2, 3],
    {"relevance": -5, "clarity": 0, "confidence": 11, "technical_depth": 99, "overall_score": -10},
    {"relevance": "7", "clarity": "abc", "confidence": None, "technical_depth": True, "overall_score": "250"},
    {"relevance": float("nan"), "overall_score": float("inf"), "improvement_tips": "one tip"},
    {"sentiment": "   ", "feedback": "", "improvement_tips": ["", None, 5, "  Real tip  "]},
    {"improvement_tips": ["a", "b", "c", "d", "e"]},
]


@pytest.mark.parametrize("raw", RAW_EVALUATIONS)
def test_normalize_evaluation_bounds(raw):
    evaluation = normalize_evaluation(raw)
    for field in ("relevance", "clarity", "confidence", "technical_depth"):
        assert 1 <= getattr(evaluation, field) <= 10
    assert 1 <= evaluation.overall_score <= 100
    assert len(evaluation.improvement_tips) == 3
    assert all(tip.strip() for tip in evaluation.improvement_tips)
    assert evaluation.sentiment.strip()
    assert evaluation.feedback.strip()


@pytest.mark.parametrize("raw", RAW_EVALUATIONS)
def test_normalize_evaluation_is_idempotent(raw):
    once = normalize_evaluation(raw)
    assert normalize_evaluation(once.model_dump()) == once
    assert normalize_evaluation(once) == once


def test_normalize_evaluation_defaults_and_clamps():
    evaluation = normalize_evaluation({"relevance": -5, "clarity": "7", "confidence": 11, "overall_score": "250"})
    assert evaluation.relevance == 1
    assert evaluation.clarity == 7
    assert evaluation.confidence == 10
    assert evaluation.technical_depth == 6
    assert evaluation.overall_score == 100
    assert evaluation.sentiment == "neutral"
    assert evaluation.feedback == DEFAULT_FEEDBACK
    assert evaluation.improvement_tips == DEFAULT_TIPS

    assert normalize_evaluation({}).overall_score == 65


def test_normalize_evaluation_backfills_tips_in_order():
    evaluation = normalize_evaluation({"improvement_tips": ["  Real tip  ", ""]})
    assert evaluation.improvement_tips == ["Real tip", DEFAULT_TIPS[1], DEFAULT_TIPS[2]]

    evaluation = normalize_evaluation({"improvement_tips": ["a", "b", "c", "d"]})
    assert evaluation.improvement_tips == ["a", "b", "c"]


def test_clamp_rejects_booleans_and_rounds():
    assert clamp(True, 1, 10, 6) == 6
    assert clamp(7.6, 1, 10, 6) == 8
    assert clamp("3", 1, 10, 6) == 3
    assert clamp({}, 1, 10, 6) == 6
    assert clamp(6.5, 1, 10, 6) == 7
    assert clamp(2.5, 1, 10, 6) == 3
    assert clamp("72.5", 1, 100, 65) == 73

    evaluation = normalize_evaluation({"relevance": 6.5, "overall_score": 72.5})
    assert evaluation.relevance == 7
    assert evaluation.overall_score == 73


def test_normalize_questions_keeps_clean_model_output():
    raw = [
        {"text": "1. Tell me about yourself", "category": "HR"},
        {"text": "How would you split a large React bundle for faster loads?", "category": "HR"},
        {"text": "- Describe a time you pushed back on a deadline.", "category": "HR"},
        {"text": "How do you audit accessibility in a design system?", "category": "Technical"},
        {"text": "Tell me about a tough code review you received.", "category": "HR"},
    ]
    questions = normalize_questions(raw, MIXED)

    assert [q.category for q in questions] == ["HR", "Technical", "HR", "Technical", "HR"]
    assert questions[0].text == OPENER_TEXT
    assert questions[1].text == "How would you split a large React bundle for faster loads?"
    assert questions[2].text == "Describe a time you pushed back on a deadline."


def test_normalize_questions_replaces_generic_and_duplicate_entries():
    fallback = fallback_questions(MIXED, seed=11)
    raw = [
        {"text": "What are your strengths?"},
        {"text": "What are your weaknesses?"},
        {"text": "Explain the virtual DOM."},
        {"text": "explain the virtual dom!!"},
        {"text": ""},
    ]
    questions = normalize_questions(raw, MIXED, seed=11)

    assert questions[0].text == OPENER_TEXT
    assert questions[1].text == fallback[1].text
    assert questions[2].text == "Explain the virtual DOM."
    assert questions[3].text == fallback[3].text
    assert questions[4].text == fallback[4].text
    assert len({canonicalize(q.text) for q in questions}) == 5


def test_normalize_questions_never_duplicates_when_model_echoes_fallback():
    fallback = fallback_questions(TECHNICAL, seed=5)
    raw = [
        {"text": fallback[1].text},
        {"text": "What are your salary expectations?"},
        {"text": fallback[2].text},
        {"text": fallback[3].text},
        {"text": None},
    ]
    questions = normalize_questions(raw, TECHNICAL, seed=5)

    assert len(questions) == 5
    assert all(q.category == "Technical" for q in questions)
    assert len({canonicalize(q.text) for q in questions}) == 5


@pytest.mark.parametrize("raw", [None, "text", {}, [], [{"text": "Only one question about caching layers?"}]])
def test_normalize_questions_pads_short_or_invalid_input(raw):
    questions = normalize_questions(raw, MIXED, seed=1)
    assert len(questions) == 5
    assert questions[0].text == OPENER_TEXT
    assert len({canonicalize(q.text) for q in questions}) == 5
