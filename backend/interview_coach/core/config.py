import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_MODEL = "llama-3.3-70b-versatile"
DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    llm_api_key: str = ""
    llm_model: str = DEFAULT_MODEL
    llm_base_url: str = DEFAULT_BASE_URL
    llm_timeout_sec: float = 20.0
    llm_max_retries: int = 2
    llm_initial_backoff_sec: float = 1.0
    llm_backoff_multiplier: float = 2.0
    store_path: Path | None = None
    auth_secret: str = "dev-only-secret"
    cors_allow_origins: list[str] = field(default_factory=list)

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_api_key)


def load_settings() -> Settings:
    load_dotenv(dotenv_path=_BACKEND_ROOT / ".env.local", override=False)
    load_dotenv(dotenv_path=_BACKEND_ROOT / ".env", override=False)

    api_key = str(os.getenv("GROQ_API_KEY") or os.getenv("LLM_API_KEY") or "").strip()
    model = str(os.getenv("GROQ_MODEL") or DEFAULT_MODEL).strip()
    store_raw = str(os.getenv("STORE_PATH") or "").strip()
    origins_raw = str(os.getenv("CORS_ALLOW_ORIGINS") or "").strip()

    return Settings(
        llm_api_key=api_key,
        llm_model=model,
        llm_base_url=str(os.getenv("LLM_BASE_URL") or DEFAULT_BASE_URL).strip(),
        llm_timeout_sec=max(1.0, _env_float("LLM_TIMEOUT_SEC", 20.0)),
        llm_max_retries=max(0, _env_int("LLM_MAX_RETRIES", 2)),
        llm_initial_backoff_sec=max(0.0, _env_float("LLM_INITIAL_BACKOFF_SEC", 1.0)),
        llm_backoff_multiplier=max(1.0, _env_float("LLM_BACKOFF_MULTIPLIER", 2.0)),
        store_path=Path(store_raw) if store_raw else None,
        auth_secret=str(os.getenv("AUTH_SECRET") or "dev-only-secret"),
        cors_allow_origins=[item.strip() for item in origins_raw.split(",") if item.strip()],
    )
