"""
Tests for utils/config.py - Configuration management
"""

import os
import pytest
from unittest.mock import patch
from utils.config import Config, load_config


@pytest.fixture(autouse=True)
def no_dotenv():
    """Keep a developer's .env file out of these tests."""
    with patch("utils.config.load_dotenv"):
        yield


class TestConfig:
    """Test Config dataclass and utilities."""

    def test_config_dataclass_defaults(self):
        """Test Config dataclass has sensible defaults."""
        config = Config()

        assert config.llm_enabled is False
        assert config.llm_provider == "ollama"
        assert config.anthropic_model == "claude-3-5-haiku-latest"
        assert config.llm_requests_per_minute == 30
        assert config.llm_timeout_seconds == 15.0
        assert config.llm_health_timeout_seconds == 2.0
        assert config.default_dataset == "demo"

    @patch.dict(os.environ, {
        "LLM_ENABLED": "True",
        "LLM_PROVIDER": "OpenAI",
        "OPENAI_BASE_URL": "http://lmstudio:1234/v1",
        "OPENAI_MODEL": "qwen2.5",
        "LLM_REQUESTS_PER_MINUTE": "5",
        "LLM_TIMEOUT_SECONDS": "3.5",
        "LOG_LEVEL": "debug",
    }, clear=True)
    def test_load_config_from_env(self):
        """Test loading config from environment variables."""
        config = load_config()

        assert config.llm_enabled is True
        assert config.llm_provider == "openai"
        assert config.openai_base_url == "http://lmstudio:1234/v1"
        assert config.get_provider_model() == "qwen2.5"
        assert config.llm_requests_per_minute == 5
        assert config.llm_timeout_seconds == 3.5
        assert config.log_level == "DEBUG"

    @patch.dict(os.environ, {"ANTHROPIC_API_KEY": "", "OLLAMA_MODEL": "  "}, clear=True)
    def test_empty_values_are_unset(self):
        """Test empty env vars fall back to defaults."""
        config = Config.from_env()

        assert config.anthropic_api_key is None
        assert config.ollama_model == "llama3.1"

    @patch.dict(os.environ, {"LLM_REQUESTS_PER_MINUTE": "many"}, clear=True)
    def test_non_numeric_setting(self):
        with pytest.raises(ValueError):
            Config.from_env()


class TestValidate:
    """Test provider validation warnings."""

    def test_default_config_is_valid(self):
        is_valid, errors = Config().validate()

        assert is_valid is True
        assert errors == []

    def test_unknown_provider(self):
        is_valid, errors = Config(llm_provider="bard").validate()

        assert is_valid is False
        assert "Unknown LLM_PROVIDER" in errors[0]

    def test_anthropic_without_key(self):
        is_valid, errors = Config(llm_enabled=True, llm_provider="anthropic").validate()

        assert is_valid is False
        assert "ANTHROPIC_API_KEY" in errors[0]

    def test_non_positive_rate_limit(self):
        is_valid, errors = Config(llm_requests_per_minute=0).validate()

        assert is_valid is False

    @patch.dict(os.environ, {"LLM_PROVIDER": "bard"}, clear=True)
    def test_load_config_prints_warnings(self, capsys):
        load_config()

        assert "Config validation" in capsys.readouterr().out


def test_get_provider_model_unknown():
    with pytest.raises(ValueError):
        Config().get_provider_model("bard")
