"""Tests for environment-driven configuration."""

import pytest

from clinical_document_evaluation.core.config import PipelineConfiguration
from clinical_document_evaluation.core.exceptions import ConfigurationError


ENV_VARS = (
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "LLM_PROVIDER",
    "OPENAI_MODEL",
    "GEMINI_MODEL",
    "EVALUATION_MODEL",
    "RATE_LIMIT_DELAY",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "RETRY_DELAY",
    "BATCH_DELAY",
    "ENABLE_VALIDATION",
    "VALID_SCORE_THRESHOLD",
)


@pytest.fixture
def env_file(tmp_path, monkeypatch):
    """Empty .env file and a clean environment."""
    # setenv first so teardown also removes values loaded by dotenv
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    path = tmp_path / ".env"
    path.write_text("")
    return str(path)


def test_defaults_with_openai_key(env_file, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    config = PipelineConfiguration.from_environment(env_file=env_file)

    assert config.llm_provider == "openai"
    assert config.generation_model == "gpt-4"
    assert config.evaluation_model == "gpt-4o"
    assert config.max_retries == 2
    assert config.retry_delay == 1.0
    assert config.request_timeout == 60.0
    assert config.valid_score_threshold == 70
    assert config.enable_validation is True


def test_gemini_selected_when_only_gemini_key(env_file, monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "g-test")

    config = PipelineConfiguration.from_environment(env_file=env_file)

    assert config.llm_provider == "gemini"
    assert config.active_api_key == "g-test"
    assert config.generation_model == "gemini-1.5-flash"


def test_values_from_env_file(tmp_path, env_file):
    path = tmp_path / "custom.env"
    path.write_text("OPENAI_API_KEY=sk-file\nMAX_RETRIES=4\nENABLE_VALIDATION=false\n")

    config = PipelineConfiguration.from_environment(env_file=str(path))

    assert config.openai_api_key == "sk-file"
    assert config.max_retries == 4
    assert config.enable_validation is False


def test_missing_key_fails_fast(env_file):
    with pytest.raises(ConfigurationError):
        PipelineConfiguration.from_environment(env_file=env_file)


def test_validation_can_be_deferred(env_file):
    config = PipelineConfiguration.from_environment(env_file=env_file, validate_on_load=False)

    assert config.openai_api_key is None


def test_non_numeric_setting_is_configuration_error(env_file, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("MAX_RETRIES", "many")

    with pytest.raises(ConfigurationError):
        PipelineConfiguration.from_environment(env_file=env_file)


@pytest.mark.parametrize(
    "overrides",
    [
        {"llm_provider": "anthropic"},
        {"max_retries": -1},
        {"request_timeout": 0},
        {"valid_score_threshold": 101},
    ],
)
def test_invalid_values_rejected(overrides):
    config = PipelineConfiguration(openai_api_key="sk-test", **overrides)

    with pytest.raises(ConfigurationError):
        config.validate()


def test_to_dict_masks_keys():
    data = PipelineConfiguration(openai_api_key="sk-secret").to_dict()

    assert data["openai_api_key"] == "***"
    assert data["gemini_api_key"] is None
    assert "sk-secret" not in str(data)
