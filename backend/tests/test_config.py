from pathlib import Path

from interview_coach.core.config import DEFAULT_MODEL, load_settings


def test_unset_store_path_keeps_store_in_memory(monkeypatch):
    monkeypatch.delenv("STORE_PATH", raising=False)

    settings = load_settings()

    assert settings.store_path is None
    assert settings.llm_configured is False
    assert settings.llm_model == DEFAULT_MODEL


def test_settings_read_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("STORE_PATH", str(tmp_path / "store.json"))
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
    monkeypatch.setenv("LLM_MAX_RETRIES", "-3")
    monkeypatch.setenv("LLM_TIMEOUT_SEC", "not-a-number")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, ,https://b.example")

    settings = load_settings()

    assert settings.store_path == Path(tmp_path / "store.json")
    assert settings.llm_configured is True
    assert settings.llm_max_retries == 0
    assert settings.llm_timeout_sec == 20.0
    assert settings.cors_allow_origins == ["https://a.example", "https://b.example"]
