"""
Deterministic local content used when the model is unavailable.

Question sets are drawn from fixed template pools with a seeded
linear-congruential generator, so a given seed always yields the same set
while different seeds (one per request timestamp) vary between fallbacks.
"""

import hashlib
import re

from interview_coach.catalog import get_company_context, get_role_competencies
from interview_coach.interview.models import EvaluationResult, InterviewConfig, Question, round_half_up
from interview_coach.interview.planner import OPENER_TEXT, canonicalize, get_category_plan

_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223
_LCG_MODULUS = 2 ** 32

TECHNICAL_KEYWORDS = (
    "system",
    "design",
    "api",
    "database",
    "algorithm",
    "testing",
    "debug",
    "performance",
    "cache",
    "latency",
    "deploy",
    "monitor",
    "scalability",
)

_TECHNICAL_RE = re.compile(r"\b(?:" + "|".join(TECHNICAL_KEYWORDS) + r")", re.IGNORECASE)
_PROFANITY_RE = re.compile(r"\bfuck|shit|bitch|bastard|asshole|f\*+k|s\*+t\b", re.IGNORECASE)
_ASSERTIVE_RE = re.compile(r"\b(i will|i would|i can|i did)\b", re.IGNORECASE)

PROFANITY_PENALTY = 25
CHARS_PER_POINT = 40


class LinearCongruential:
    def __init__(self, seed: int = 0):
        self.state = int(seed) % _LCG_MODULUS

    def next_int(self) -> int:
        self.state = (self.state * _LCG_MULTIPLIER + _LCG_INCREMENT) % _LCG_MODULUS
        return self.state

    def next_float(self) -> float:
        return self.next_int() / _LCG_MODULUS

    def next_index(self, size: int) -> int:
        if size <= 0:
            raise ValueError("size must be positive")
        return min(size - 1, int(self.next_float() * size))


def seed_for(config: InterviewConfig, timestamp_ms: int = 0) -> int:
    key = "|".join([
        config.company.lower(),
        config.role.lower(),
        config.experience.lower(),
        config.difficulty.lower(),
        config.type.lower(),
        str(int(timestamp_ms)),
    ])
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return int(digest[:8], 16)


def _hr_pool(config: InterviewConfig) -> list[str]:
    style = get_company_context(config.company)["interview_style"]
    return [
        f"Why are you targeting {config.company} for a {config.role} role, and what impact do you want in your first 6 months?",
        f"Describe a time you handled unclear requirements while coordinating with teammates in a {style} setup.",
        "Tell me about a conflict in a project team and how you resolved it while still delivering on time.",
        "Share one professional mistake you made and the process change you introduced afterward.",
        "How do you prioritize when deadlines shift suddenly and stakeholders have conflicting expectations?",
        f"Describe a moment where you took ownership of a problem outside your assigned {config.role} tasks.",
        "Tell me about feedback that changed how you work, and what you did differently afterward.",
        f"How would you explain a technical decision to a non-technical stakeholder at {config.company}?",
    ]


def _technical_pool(config: InterviewConfig) -> list[str]:
    areas = get_role_competencies(config.role)
    domain = get_company_context(config.company)["domains"][0]
    return [
        f"At {config.company}, design an approach for {areas[0]} with {config.difficulty} constraints. What trade-offs would you make?",
        f"You notice production issues after a deployment related to {areas[1]}. Walk me through your debugging workflow.",
        f"How would you design testing and monitoring for {areas[2]} so failures are detected early?",
        f"Given limited time, how would you prioritize improvements across {areas[0]}, {areas[3]}, and {areas[4]}?",
        "If performance drops under peak traffic, which metrics would you inspect first and why?",
        f"Walk me through how you would review a teammate's change that touches {areas[3]}.",
        f"How would you apply {areas[4]} practices to a {domain} project with a tight deadline?",
        f"Describe a {config.role} problem you solved end to end and the trade-offs you rejected along the way.",
    ]


def synthesize_question(config: InterviewConfig, category: str, slot: int, used: set[str]) -> str:
    areas = get_role_competencies(config.role)
    if category == "HR":
        base = f"Describe a situation where you demonstrated ownership and clear communication as a {config.role} candidate for {config.company}"
    else:
        base = f"Walk through how you would solve a {config.difficulty} {config.role} challenge at {config.company}"

    for offset in range(len(areas)):
        area = areas[(slot + offset) % len(areas)]
        text = f"{base}, focusing on {area}."
        if canonicalize(text) not in used:
            return text

    counter = slot + 1
    while True:
        text = f"{base} (scenario {counter})."
        if canonicalize(text) not in used:
            return text
        counter += 1


def _draw(rng: LinearCongruential, candidates: list[str], used: set[str]) -> str | None:
    while candidates:
        text = candidates.pop(rng.next_index(len(candidates)))
        if canonicalize(text) not in used:
            return text
    return None


def fallback_questions(config: InterviewConfig, seed: int = 0, rng: LinearCongruential | None = None) -> list[Question]:
    rng = rng or LinearCongruential(seed)
    plan = get_category_plan(config.type)
    remaining = {
        "HR": _hr_pool(config),
        "Technical": _technical_pool(config),
    }

    used: set[str] = set()
    result: list[Question] = []
    for index, category in enumerate(plan):
        if index == 0 and category == "HR":
            text = OPENER_TEXT
        else:
            text = _draw(rng, remaining[category], used) or synthesize_question(config, category, index, used)
        used.add(canonicalize(text))
        result.append(Question(id=index + 1, text=text, category=category))
    return result


def _clamp_metric(value: int) -> int:
    return max(1, min(10, int(value)))


def fallback_evaluation(answer: str | None, config: InterviewConfig, reason: str = "model request failed") -> EvaluationResult:
    raw_answer = str(answer or "").strip()
    base = _clamp_metric(max(4, 4 + len(raw_answer) // CHARS_PER_POINT))
    profanity = bool(_PROFANITY_RE.search(raw_answer))

    relevance = base
    clarity = base
    confidence = _clamp_metric(base + (1 if _ASSERTIVE_RE.search(raw_answer) else 0))
    technical_depth = max(1, base - 2)
    if _TECHNICAL_RE.search(raw_answer):
        technical_depth = _clamp_metric(technical_depth + 3)

    total = relevance + clarity + confidence + technical_depth
    overall = round_half_up((total / 40) * 100) - (PROFANITY_PENALTY if profanity else 0)

    return EvaluationResult(
        relevance=relevance,
        clarity=clarity,
        confidence=confidence,
        technical_depth=technical_depth,
        sentiment="negative" if profanity else "neutral",
        overall_score=max(1, min(100, overall)),
        feedback=(
            f"Evaluation fallback active ({reason}). "
            "Improve relevance with role-specific examples and measurable outcomes."
        ),
        improvement_tips=[
            "Use STAR structure: Situation, Task, Action, Result.",
            f"Link your points directly to {config.role} responsibilities.",
            "Add one measurable result (latency drop, defect reduction, delivery speed).",
        ],
    )
