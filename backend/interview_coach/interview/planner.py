import re
from dataclasses import dataclass

from interview_coach.catalog import get_company_context, get_role_competencies, normalize_key
from interview_coach.interview.models import QUESTION_COUNT, InterviewConfig

OPENER_TEXT = "Tell me about yourself."

# Shared by the question prompt and the normalizer; keep both sides in sync.
GENERIC_PATTERNS = [
    re.compile(r"what are your (greatest )?strengths", re.IGNORECASE),
    re.compile(r"what are your (greatest )?weaknesses", re.IGNORECASE),
    re.compile(r"where do you see yourself", re.IGNORECASE),
    re.compile(r"why should we hire you", re.IGNORECASE),
    re.compile(r"(salary|compensation) expectations?", re.IGNORECASE),
]

BANNED_EXAMPLES = [
    "What are your strengths?",
    "What are your weaknesses?",
    "Where do you see yourself in 5 years?",
    "Why should we hire you?",
    "What are your salary expectations?",
]

QUESTION_SYSTEM_PROMPT = (
    "You are a senior interviewer panel generating realistic India hiring interview questions. "
    "Return only valid JSON."
)
EVALUATION_SYSTEM_PROMPT = "You are an interview evaluator. Return only valid JSON."
CHAT_SYSTEM_PROMPT = "You are an AI Interview Coach. Give concise, practical advice."


@dataclass(frozen=True)
class QuestionPrompt:
    system: str
    user: str
    plan: list[str]

    def messages(self) -> list[dict]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def get_category_plan(interview_type: str | None) -> list[str]:
    normalized = normalize_key(interview_type)
    if normalized == "hr":
        return ["HR"] * QUESTION_COUNT
    if normalized == "technical":
        return ["Technical"] * QUESTION_COUNT
    return ["HR", "Technical", "HR", "Technical", "HR"]


def is_generic_question(text: str) -> bool:
    return any(pattern.search(text or "") for pattern in GENERIC_PATTERNS)


def clean_question_text(raw: str | None) -> str:
    text = str(raw or "").strip()
    text = re.sub(r"^\d+[).\-\s]*", "", text)
    text = re.sub(r"^[-*•]\s*", "", text)
    return re.sub(r"\s+", " ", text).strip()


def canonicalize(text: str | None) -> str:
    lowered = str(text or "").lower()
    lowered = re.sub(r"[^a-z0-9 ]", " ", lowered)
    return re.sub(r"\s+", " ", lowered).strip()


def _difficulty_direction(difficulty: str) -> str:
    level = normalize_key(difficulty)
    if level == "advanced":
        return "Set difficult scenario-heavy questions with trade-offs, scale, risk, and failure handling."
    if level == "beginner":
        return "Set foundational but realistic questions that test core understanding and explanation quality."
    return "Set moderate scenario-driven questions combining fundamentals and practical implementation."


def _experience_direction(experience: str) -> str:
    if normalize_key(experience) == "fresher":
        return "Expect internship/academic project context and potential, not long production ownership."
    return "Expect production ownership, decision-making, and measurable outcomes."


def build_question_prompt(config: InterviewConfig) -> QuestionPrompt:
    plan = get_category_plan(config.type)
    company_ctx = get_company_context(config.company)
    role_areas = get_role_competencies(config.role)
    category_plan_text = ", ".join(f"Q{idx + 1}:{category}" for idx, category in enumerate(plan))
    banned = ", ".join(f'"{item}"' for item in BANNED_EXAMPLES)
    opener_rule = (
        f'Q1 text must be exactly "{OPENER_TEXT}"'
        if plan[0] == "HR"
        else "Do not force a generic HR opener."
    )

    user = f"""
Generate exactly {QUESTION_COUNT} unique interview questions with high realism.

Interview configuration:
- Company: {config.company}
- Role: {config.role}
- Experience: {config.experience}
- Difficulty: {config.difficulty}
- Type: {config.type}
- Mandatory category order: {category_plan_text}

Company context:
- Interview style: {company_ctx['interview_style']}
- Domain focus: {', '.join(company_ctx['domains'])}
- Hiring priorities: {', '.join(company_ctx['priorities'])}

Role competencies to target:
- {', '.join(role_areas)}

Constraints:
- {_difficulty_direction(config.difficulty)}
- {_experience_direction(config.experience)}
- Questions must be scenario-based and practical, like real panel interviews.
- No repetition or near-duplicate wording.
- Avoid generic textbook prompts.
- Do NOT use these generic questions: {banned}
- {opener_rule}
- Return JSON only in this exact schema:
{{"questions":[{{"text":"string","category":"HR|Technical"}}]}}
""".strip()

    return QuestionPrompt(system=QUESTION_SYSTEM_PROMPT, user=user, plan=plan)


def build_evaluation_messages(question: str, answer: str, config: InterviewConfig) -> list[dict]:
    user = f"""
Evaluate this answer for a {config.role} interview at {config.company} ({config.experience}, {config.difficulty}).
Question: "{question}"
Answer: "{str(answer or '')}"
Return JSON with:
relevance(1-10), clarity(1-10), confidence(1-10), technical_depth(1-10), sentiment(string), overall_score(1-100), feedback(string), improvement_tips(array of exactly 3 short strings).
""".strip()
    return [
        {"role": "system", "content": EVALUATION_SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


def _history_turn(item) -> dict | None:
    if not isinstance(item, dict):
        return None
    role = "assistant" if item.get("role") in {"model", "assistant"} else "user"
    content = item.get("content")
    if content is None:
        parts = item.get("parts")
        if isinstance(parts, list) and parts and isinstance(parts[0], dict):
            content = parts[0].get("text")
    if not isinstance(content, str) or not content.strip():
        return None
    return {"role": role, "content": content}


def build_chat_messages(message: str, history: list | None = None) -> list[dict]:
    prior = [turn for turn in (_history_turn(item) for item in list(history or [])) if turn]
    return [
        {"role": "system", "content": CHAT_SYSTEM_PROMPT},
        *prior,
        {"role": "user", "content": message},
    ]
