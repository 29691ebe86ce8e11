import asyncio
import time
import uuid
from typing import Callable, Optional

from interview_coach.core.logger import log_event
from interview_coach.db.repo import Repository
from interview_coach.interview.models import Answer, InterviewConfig, InterviewSession, round_half_up
from interview_coach.interview.service import InterviewAI

_METRICS = ("relevance", "clarity", "confidence", "technical_depth")


class InterviewValidationError(ValueError):
    pass


class InterviewAccessError(PermissionError):
    pass


class InterviewEngine:
    """
    Owns interview sessions from start to completion.

    One active session per user. Answers to a session are serialized by a
    per-session lock, so concurrent submissions never outrun the question
    list. The session completes on the last answer, is written to history
    once and then leaves memory; history serves it from there.
    """

    def __init__(self, ai: InterviewAI, repo: Repository, clock: Callable[[], float] | None = None):
        self.ai = ai
        self.repo = repo
        self._clock = clock or time.time
        self._sessions: dict[str, InterviewSession] = {}
        self._active_by_user: dict[str, str] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def start(self, user_id: str, config: InterviewConfig) -> InterviewSession:
        batch = await self.ai.generate_questions(config)
        session = InterviewSession(
            id=uuid.uuid4().hex,
            user_id=str(user_id),
            config=config,
            questions=batch.questions,
            current_question_index=0,
            answers=[],
            start_time=self._now_ms(),
            status="ongoing",
        )

        previous = self._active_by_user.get(str(user_id))
        if previous:
            self._discard(previous)
        self._sessions[session.id] = session
        self._locks[session.id] = asyncio.Lock()
        self._active_by_user[str(user_id)] = session.id

        log_event("interview_engine", "session_started", session.id, source=batch.source, error=batch.error)
        return session

    def _discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._locks.pop(session_id, None)

    def get_session(self, session_id: str) -> Optional[InterviewSession]:
        return self._sessions.get(str(session_id or ""))

    def get_active_session(self, user_id: str) -> Optional[InterviewSession]:
        session_id = self._active_by_user.get(str(user_id))
        return self._sessions.get(session_id) if session_id else None

    def reset(self, user_id: str) -> None:
        session_id = self._active_by_user.pop(str(user_id), None)
        if session_id:
            self._discard(session_id)

    async def submit_answer(self, session_id: str, answer_text: str, user_id: str | None = None) -> InterviewSession:
        session = self.get_session(session_id)
        if session is None:
            raise InterviewValidationError("Invalid interview session")
        if user_id is not None and session.user_id != str(user_id):
            raise InterviewAccessError("Forbidden")

        text = str(answer_text or "").strip()
        if not text:
            raise InterviewValidationError("Answer is empty. Please record or type a response.")

        lock = self._locks.setdefault(session.id, asyncio.Lock())
        async with lock:
            if session.status != "ongoing":
                raise InterviewValidationError("Interview session is already completed")
            question = session.current_question
            if question is None or len(session.answers) >= len(session.questions):
                raise InterviewValidationError("No question is awaiting an answer")

            outcome = await self.ai.evaluate_answer(question.text, text, session.config)
            if self._sessions.get(session.id) is not session:
                raise InterviewValidationError("Interview session was reset")

            session.answers.append(
                Answer(
                    question_id=question.id,
                    question_text=question.text,
                    answer_text=text,
                    evaluation=outcome.evaluation,
                )
            )
            session.current_question_index += 1

            if len(session.answers) == len(session.questions):
                session.status = "completed"
                session.end_time = self._now_ms()
                self.repo.save_interview_session(session.user_id or "", session)
                self._active_by_user.pop(session.user_id or "", None)
                self._discard(session.id)
                log_event("interview_engine", "session_completed", session.id, answers=len(session.answers))
            else:
                log_event(
                    "interview_engine",
                    "answer_recorded",
                    session.id,
                    question_id=question.id,
                    source=outcome.source,
                )
        return session


def summarize(session: InterviewSession) -> dict:
    evaluations = [answer.evaluation for answer in session.answers if answer.evaluation is not None]
    if not evaluations:
        return {
            "session_id": session.id,
            "answered": 0,
            "overall_score": 0,
            "metrics": {name: 0.0 for name in _METRICS},
            "sentiments": [],
            "duration_ms": None,
            "status": session.status,
        }

    count = len(evaluations)
    metrics = {
        name: round(sum(getattr(item, name) for item in evaluations) / count, 2)
        for name in _METRICS
    }
    duration_ms = (session.end_time - session.start_time) if session.end_time else None
    return {
        "session_id": session.id,
        "answered": count,
        "overall_score": round_half_up(sum(item.overall_score for item in evaluations) / count),
        "metrics": metrics,
        "sentiments": [item.sentiment for item in evaluations],
        "duration_ms": duration_ms,
        "status": session.status,
    }
