import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from interview_coach.ai.llm import LLMClient, extract_json_object
from interview_coach.core.logger import log_event
from interview_coach.interview.fallback import fallback_evaluation, fallback_questions, seed_for
from interview_coach.interview.models import EvaluationResult, InterviewConfig, Question, Source
from interview_coach.interview.normalizer import normalize_evaluation, normalize_questions
from interview_coach.interview.planner import (
    build_chat_messages,
    build_evaluation_messages,
    build_question_prompt,
)

CHAT_FALLBACK_REPLY = "I could not reach the coaching model right now. Please try again in a moment."


@dataclass
class QuestionBatch:
    questions: list[Question]
    source: Source
    error: Optional[str] = None


@dataclass
class EvaluationOutcome:
    evaluation: EvaluationResult
    source: Source
    error: Optional[str] = None


@dataclass
class ChatOutcome:
    response: str
    source: Source
    error: Optional[str] = None


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class InterviewAI:
    """Model-backed question, evaluation and coaching calls that always return a usable result."""

    def __init__(self, llm: LLMClient, clock: Callable[[], float] | None = None):
        self.llm = llm
        self._clock = clock or time.time

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def generate_questions(self, config: InterviewConfig) -> QuestionBatch:
        seed = seed_for(config, self._now_ms())
        prompt = build_question_prompt(config)
        try:
            raw = await self.llm.call_model(prompt.messages(), json_mode=True, temperature=0.65)
            parsed = extract_json_object(raw)
            questions = normalize_questions(parsed.get("questions"), config, prompt.plan, seed=seed)
        except Exception as exc:
            reason = _describe(exc)
            log_event(
                "interview_ai",
                "questions_fallback",
                level=logging.WARNING,
                company=config.company,
                role=config.role,
                error=reason,
            )
            return QuestionBatch(questions=fallback_questions(config, seed=seed), source="fallback", error=reason)

        log_event("interview_ai", "questions_generated", company=config.company, role=config.role)
        return QuestionBatch(questions=questions, source="model")

    async def evaluate_answer(self, question: str, answer: str, config: InterviewConfig) -> EvaluationOutcome:
        messages = build_evaluation_messages(question, answer, config)
        try:
            raw = await self.llm.call_model(messages, json_mode=True, temperature=0.2)
            evaluation = normalize_evaluation(extract_json_object(raw))
        except Exception as exc:
            reason = _describe(exc)
            log_event(
                "interview_ai",
                "evaluation_fallback",
                level=logging.WARNING,
                question=question,
                answer=answer,
                error=reason,
            )
            return EvaluationOutcome(
                evaluation=fallback_evaluation(answer, config, reason),
                source="fallback",
                error=reason,
            )
        return EvaluationOutcome(evaluation=evaluation, source="model")

    async def chat(self, message: str, history: list | None = None) -> ChatOutcome:
        try:
            reply = await self.llm.call_model(build_chat_messages(message, history), temperature=0.5)
        except Exception as exc:
            reason = _describe(exc)
            log_event("interview_ai", "chat_fallback", level=logging.WARNING, message=message, error=reason)
            return ChatOutcome(response=CHAT_FALLBACK_REPLY, source="fallback", error=reason)
        return ChatOutcome(response=reply, source="model")
