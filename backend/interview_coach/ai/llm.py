import asyncio
import json
import logging
import re
from typing import Any, Awaitable, Callable

from openai import APIConnectionError, AsyncOpenAI

from interview_coach.core.config import Settings

logger = logging.getLogger("interview_coach.ai.llm")

SleepFn = Callable[[float], Awaitable[None]]

_TRANSIENT_MESSAGE_RE = re.compile(
    r"rate.?limit|too many requests|timed? ?out|timeout|overload|temporarily unavailable|"
    r"resource.?exhausted|connection (error|reset|refused)|\b429\b|\b50[234]\b",
    re.IGNORECASE,
)


class LLMError(Exception):
    pass


class LLMNotConfiguredError(LLMError):
    pass


class LLMRequestError(LLMError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LLMUnavailableError(LLMError):
    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class LLMResponseError(LLMError):
    pass


def _status_code(exc: BaseException) -> int | None:
    value = getattr(exc, "status_code", None)
    if value is None:
        response = getattr(exc, "response", None)
        value = getattr(response, "status_code", None)
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def is_transient_error(exc: BaseException) -> bool:
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, APIConnectionError)):
        return True
    status = _status_code(exc)
    if status is not None:
        return status == 429 or status >= 500
    return bool(_TRANSIENT_MESSAGE_RE.search(str(exc)))


def extract_json_object(text: str | None) -> dict[str, Any]:
    trimmed = str(text or "").strip()
    if not trimmed:
        raise LLMResponseError("Model returned empty content.")

    try:
        parsed = json.loads(trimmed)
    except ValueError:
        start = trimmed.find("{")
        end = trimmed.rfind("}")
        if start == -1 or end <= start:
            raise LLMResponseError("Model did not return JSON.")
        try:
            parsed = json.loads(trimmed[start:end + 1])
        except ValueError as exc:
            raise LLMResponseError("Model did not return JSON.") from exc

    if not isinstance(parsed, dict):
        raise LLMResponseError("Model JSON was not an object.")
    return parsed


class LLMClient:
    """
    Chat-completions client for an OpenAI-compatible endpoint.

    Transient failures (429, 5xx, timeouts, overload messages) are retried
    with exponential backoff; anything else is raised on the first attempt.
    """

    def __init__(self, settings: Settings, sleep: SleepFn | None = None, client: Any = None):
        self.settings = settings
        self._sleep = sleep or asyncio.sleep
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or self.settings.llm_configured

    def _completions(self):
        if self._client is None:
            if not self.settings.llm_configured:
                raise LLMNotConfiguredError("LLM API key is not configured.")
            self._client = AsyncOpenAI(
                api_key=self.settings.llm_api_key,
                base_url=self.settings.llm_base_url,
                timeout=self.settings.llm_timeout_sec,
                max_retries=0,
            )
        return self._client.chat.completions

    async def _create_once(self, messages: list[dict], json_mode: bool, temperature: float) -> str:
        request: dict[str, Any] = {
            "model": self.settings.llm_model,
            "messages": messages,
            "temperature": temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        response = await self._completions().create(**request)
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            content = None
        if not isinstance(content, str) or not content.strip():
            raise LLMResponseError("Model returned empty content.")
        return content.strip()

    async def call_model(self, messages: list[dict], *, json_mode: bool = False, temperature: float = 0.3) -> str:
        if not self.configured:
            raise LLMNotConfiguredError("LLM API key is not configured.")

        retries = max(0, int(self.settings.llm_max_retries))
        delay = float(self.settings.llm_initial_backoff_sec)
        last_error: BaseException | None = None

        for attempt in range(retries + 1):
            try:
                return await self._create_once(messages, json_mode, temperature)
            except LLMError:
                raise
            except Exception as exc:
                if not is_transient_error(exc):
                    logger.warning("call_model rejected | attempt=%s err=%s", attempt + 1, exc)
                    raise LLMRequestError(str(exc), status_code=_status_code(exc)) from exc
                last_error = exc
                logger.warning("call_model transient failure | attempt=%s err=%s", attempt + 1, exc)

            if attempt < retries:
                await self._sleep(delay)
                delay *= self.settings.llm_backoff_multiplier

        raise LLMUnavailableError(
            f"LLM request failed after {retries + 1} attempts: {last_error}",
            attempts=retries + 1,
        ) from last_error
