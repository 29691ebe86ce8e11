import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from interview_coach.core.config import Settings  # noqa: E402


class FakeStatusError(Exception):
    def __init__(self, status_code: int, message: str = ""):
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code


class _Msg:
    def __init__(self, content):
        self.content = content


class _Choice:
    def __init__(self, content):
        self.message = _Msg(content)


class _Response:
    def __init__(self, content):
        self.choices = [_Choice(content)]


class StubCompletions:
    """Replays scripted outcomes: exceptions are raised, strings become message content."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0) if self.outcomes else "{}"
        if isinstance(outcome, BaseException):
            raise outcome
        return _Response(outcome)


class StubChatClient:
    def __init__(self, outcomes):
        self.completions = StubCompletions(outcomes)
        self.chat = self

    @property
    def calls(self):
        return self.completions.calls


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.delenv("STORE_PATH", raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(llm_api_key="test-key", store_path=None, auth_secret="pytest-secret")


@pytest.fixture
def offline_settings() -> Settings:
    return Settings(llm_api_key="", store_path=None, auth_secret="pytest-secret")


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_chat_client():
    def _make(*outcomes):
        return StubChatClient(outcomes)

    return _make


@pytest.fixture
def backend_config():
    from interview_coach.interview.models import InterviewConfig

    return InterviewConfig(
        type="Mixed",
        role="Backend Developer",
        experience="Experienced",
        company="Amazon",
        difficulty="Intermediate",
    )


@pytest.fixture
def status_error():
    return FakeStatusError
