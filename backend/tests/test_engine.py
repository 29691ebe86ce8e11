import asyncio

import pytest

from interview_coach.ai.llm import LLMClient
from interview_coach.db.repo import Repository
from interview_coach.db.store import JsonKeyValueStore
from interview_coach.interview.engine import (
    InterviewAccessError,
    InterviewEngine,
    InterviewValidationError,
    summarize,
)
from interview_coach.interview.models import round_half_up
from interview_coach.interview.service import InterviewAI


class _SlowAI:
    """Yields to the event loop while evaluating so concurrent submissions interleave."""

    def __init__(self, inner: InterviewAI):
        self.inner = inner
        self.evaluations = 0

    async def generate_questions(self, config):
        return await self.inner.generate_questions(config)

    async def evaluate_answer(self, question, answer, config):
        self.evaluations += 1
        await asyncio.sleep(0.01)
        return await self.inner.evaluate_answer(question, answer, config)


class _Clock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        self.now += 1.5
        return self.now


@pytest.fixture
def repo() -> Repository:
    return Repository(JsonKeyValueStore(None))


@pytest.fixture
def engine(offline_settings, sleep_recorder, repo) -> InterviewEngine:
    ai = InterviewAI(LLMClient(offline_settings, sleep=sleep_recorder))
    return InterviewEngine(ai, repo, clock=_Clock())


@pytest.mark.asyncio
async def test_session_lifecycle_completes_and_persists_once(engine, repo, backend_config):
    session = await engine.start("user-1", backend_config)
    assert session.status == "ongoing"
    assert session.answers == []
    assert len(session.questions) == 5
    assert engine.get_active_session("user-1") is session

    for index in range(5):
        session = await engine.submit_answer(session.id, f"Answer number {index} about API design.", user_id="user-1")
        assert len(session.answers) == index + 1
        assert session.current_question_index == index + 1
        assert session.answers[-1].evaluation is not None
        if index < 4:
            assert session.status == "ongoing"
            assert session.end_time is None

    assert session.status == "completed"
    assert session.end_time is not None and session.end_time > session.start_time
    history = repo.get_history("user-1")
    assert [item.id for item in history] == [session.id]
    assert engine.get_active_session("user-1") is None

    with pytest.raises(InterviewValidationError):
        await engine.submit_answer(session.id, "one more", user_id="user-1")

    repo.save_interview_session("user-1", session)
    assert len(repo.get_history("user-1")) == 1


@pytest.mark.asyncio
async def test_submit_answer_validation(engine, backend_config):
    session = await engine.start("user-1", backend_config)

    with pytest.raises(InterviewValidationError):
        await engine.submit_answer(session.id, "   ", user_id="user-1")
    with pytest.raises(InterviewValidationError):
        await engine.submit_answer("missing", "hello", user_id="user-1")
    with pytest.raises(InterviewAccessError):
        await engine.submit_answer(session.id, "hello", user_id="intruder")

    assert session.answers == []
    assert session.current_question_index == 0


@pytest.mark.asyncio
async def test_starting_again_replaces_active_session(engine, backend_config):
    first = await engine.start("user-1", backend_config)
    second = await engine.start("user-1", backend_config)

    assert engine.get_session(first.id) is None
    assert engine.get_active_session("user-1") is second

    engine.reset("user-1")
    assert engine.get_session(second.id) is None


@pytest.mark.asyncio
async def test_summarize_averages_metrics(engine, backend_config):
    session = await engine.start("user-1", backend_config)
    assert summarize(session)["answered"] == 0

    await engine.submit_answer(session.id, "Short answer.", user_id="user-1")
    await engine.submit_answer(session.id, "I would design the cache with a clear eviction policy and monitor hit rates.", user_id="user-1")

    summary = summarize(session)
    scores = [answer.evaluation.overall_score for answer in session.answers]
    assert summary["answered"] == 2
    assert summary["overall_score"] == round_half_up(sum(scores) / 2)
    assert set(summary["metrics"]) == {"relevance", "clarity", "confidence", "technical_depth"}
    assert summary["status"] == "ongoing"


@pytest.mark.asyncio
async def test_concurrent_answers_never_exceed_question_count(offline_settings, sleep_recorder, repo, backend_config):
    slow = _SlowAI(InterviewAI(LLMClient(offline_settings, sleep=sleep_recorder)))
    engine = InterviewEngine(slow, repo, clock=_Clock())
    session = await engine.start("user-1", backend_config)

    results = await asyncio.gather(
        *(engine.submit_answer(session.id, f"Concurrent answer {index}", user_id="user-1") for index in range(7)),
        return_exceptions=True,
    )

    rejected = [item for item in results if isinstance(item, Exception)]
    assert len(rejected) == 2
    assert all(isinstance(item, InterviewValidationError) for item in rejected)
    assert len(session.answers) == 5
    assert [answer.question_id for answer in session.answers] == [1, 2, 3, 4, 5]
    assert session.status == "completed"
    assert slow.evaluations == 5
    assert [item.id for item in repo.get_history("user-1")] == [session.id]


@pytest.mark.asyncio
async def test_completed_sessions_leave_memory(engine, repo, backend_config):
    finished = []
    for _ in range(3):
        session = await engine.start("user-1", backend_config)
        for index in range(5):
            await engine.submit_answer(session.id, f"Answer {index}", user_id="user-1")
        finished.append(session.id)

    assert all(engine.get_session(session_id) is None for session_id in finished)
    assert engine._sessions == {}
    assert engine._locks == {}
    assert [item.id for item in repo.get_history("user-1")] == list(reversed(finished))
