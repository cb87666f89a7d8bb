"""
Configuration management for the invoice support assistant.

This module handles environment variable loading, validation, and provides
a centralized configuration interface for the entire application. It covers
the optional external-model fallback (provider, endpoints, credentials,
rate limit and timeouts) plus logging and dataset defaults.

Key responsibilities:
- Load environment variables from .env files
- Validate provider configuration before the model gateway is built
- Provide default values for optional settings
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

SUPPORTED_PROVIDERS = ("ollama", "openai", "anthropic")


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read an environment variable, treating empty strings as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass
class Config:
    """
    Application configuration settings.

    Values are loaded from environment variables with sensible defaults
    where appropriate. The external model is disabled unless LLM_ENABLED
    is "true"; the assistant is fully functional on heuristics alone.

    Attributes:
        llm_enabled: Whether the external-model fallback may be used at all
        llm_provider: "ollama" (generate endpoint), "openai" or "anthropic"
            (chat-completion endpoints)
        ollama_base_url: Base URL of the Ollama server
        ollama_model: Model name for Ollama
        openai_base_url: Base URL of an OpenAI-compatible server
        openai_api_key: API key for the OpenAI-compatible server
        openai_model: Model name for the OpenAI-compatible server
        anthropic_api_key: API key for Anthropic
        anthropic_model: Claude model name
        llm_requests_per_minute: Token bucket size for external calls
        llm_timeout_seconds: Per-call timeout for intent extraction
        llm_health_timeout_seconds: Timeout for the health probe
        log_level: Root log level name
        default_dataset: Dataset loaded by the CLI when none is given
    """

    llm_enabled: bool = False
    llm_provider: str = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1"
    openai_base_url: str = "http://localhost:1234/v1"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-5-haiku-latest"
    llm_requests_per_minute: int = 30
    llm_timeout_seconds: float = 15.0
    llm_health_timeout_seconds: float = 2.0
    log_level: str = "INFO"
    default_dataset: str = "demo"

    @classmethod
    def from_env(cls) -> Config:
        """
        Load configuration from environment variables.

        Loads the .env file if present and populates a Config object from
        the environment.

        Returns:
            Config: A configured Config instance with values from environment

        Raises:
            ValueError: If a numeric setting is not a number
        """
        # Load .env file before reading environment variables
        load_dotenv()

        return cls(
            llm_enabled=(_env("LLM_ENABLED", "false") or "false").lower() == "true",
            llm_provider=(_env("LLM_PROVIDER", "ollama") or "ollama").lower(),
            ollama_base_url=_env("OLLAMA_BASE_URL", "http://localhost:11434"),
            ollama_model=_env("OLLAMA_MODEL", "llama3.1"),
            openai_base_url=_env("OPENAI_BASE_URL", "http://localhost:1234/v1"),
            openai_api_key=_env("OPENAI_API_KEY"),
            openai_model=_env("OPENAI_MODEL", "gpt-4o-mini"),
            anthropic_api_key=_env("ANTHROPIC_API_KEY"),
            anthropic_model=_env("ANTHROPIC_MODEL", "claude-3-5-haiku-latest"),
            llm_requests_per_minute=int(_env("LLM_REQUESTS_PER_MINUTE", "30")),
            llm_timeout_seconds=float(_env("LLM_TIMEOUT_SECONDS", "15")),
            llm_health_timeout_seconds=float(_env("LLM_HEALTH_TIMEOUT_SECONDS", "2")),
            log_level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
            default_dataset=_env("DEFAULT_DATASET", "demo"),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the external-model configuration.

        Returns:
            tuple[bool, list[str]]: A tuple of (is_valid, error_messages)
                - is_valid: True if configuration is valid
                - error_messages: List of validation error messages (empty if valid)

        Note:
            Problems here are warnings. A misconfigured provider only means
            every message is resolved by the heuristic classifier.
        """
        errors = []

        if self.llm_provider not in SUPPORTED_PROVIDERS:
            errors.append(
                f"Warning: Unknown LLM_PROVIDER '{self.llm_provider}'. "
                f"Expected one of: {', '.join(SUPPORTED_PROVIDERS)}"
            )

        if self.llm_enabled and self.llm_provider == "anthropic" and not self.anthropic_api_key:
            errors.append(
                "Warning: LLM_PROVIDER=anthropic but ANTHROPIC_API_KEY is missing. "
                "Intents will be resolved heuristically."
            )

        if self.llm_requests_per_minute <= 0:
            errors.append(
                "Warning: LLM_REQUESTS_PER_MINUTE <= 0 rejects every external call."
            )

        return len(errors) == 0, errors

    def get_provider_model(self, provider: Optional[str] = None) -> str:
        """
        Get the model name configured for a provider.

        Args:
            provider: Provider name; defaults to the configured provider

        Returns:
            str: Model name

        Raises:
            ValueError: If provider is not recognized
        """
        provider = provider or self.llm_provider
        if provider == "ollama":
            return self.ollama_model
        elif provider == "openai":
            return self.openai_model
        elif provider == "anthropic":
            return self.anthropic_model
        else:
            raise ValueError(f"Unknown provider: {provider}")


def load_config() -> Config:
    """
    Load and validate application configuration.

    This is the main entry point for loading configuration. It loads from
    environment variables and validates the result.

    Returns:
        Config: Validated configuration object

    Example:
        >>> config = load_config()
        >>> if config.llm_enabled:
        ...     print(f"External model: {config.llm_provider}")
    """
    config = Config.from_env()
    is_valid, errors = config.validate()

    # Only warn; the assistant runs on heuristics without a model
    if not is_valid:
        for error in errors:
            print(f"Config validation: {error}")

    return config
