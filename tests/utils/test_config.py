import pytest

from studio.gemini.config import GeminiConfig
from studio.utils.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("GEMINI_API_KEY", "API_KEY", "DEFAULT_KEY_ENDPOINT"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_defaults(clean_env) -> None:
    settings = Settings(_env_file=None)

    assert settings.gemini_api_key is None
    assert settings.default_key_endpoint is None
    assert settings.credential_store_path.endswith("credentials.json")
    assert settings.json_logs is False


@pytest.mark.parametrize("variable", ["GEMINI_API_KEY", "API_KEY"])
def test_api_key_from_either_variable(clean_env, variable: str) -> None:
    clean_env.setenv(variable, "env-key")

    assert Settings(_env_file=None).gemini_api_key == "env-key"


def test_gemini_config_defaults() -> None:
    config = GeminiConfig()

    assert config.retry_max_attempts == 5
    assert config.retry_initial_delay == 1.0
    assert config.retry_max_jitter == 0.5
    assert config.poll_interval_seconds == 10.0
    assert config.rotation_max_attempts == 3
    assert config.video_model == "veo-3.0-fast-generate-preview"


def test_gemini_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("GEMINI_POLL_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("GEMINI_RETRY_MAX_ATTEMPTS", "7")
    monkeypatch.setenv("GEMINI_VIDEO_MODEL", "veo-2.0-generate-001")

    config = GeminiConfig.from_env()

    assert config.poll_interval_seconds == 2.5
    assert config.retry_max_attempts == 7
    assert config.video_model == "veo-2.0-generate-001"
