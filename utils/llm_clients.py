"""
LLM client factory and provider wrappers for intent extraction.

This module provides a unified interface over the text-completion
providers the model gateway can talk to. Every client answers the same
question: "submit this prompt, give me the text back". Two endpoint styles
are supported:

- generate-style: Ollama's ``POST /api/generate`` (plain HTTP via requests)
- chat-completion style: any OpenAI-compatible server (openai SDK) or
  Anthropic Claude (anthropic SDK)

Key responsibilities:
- Create the configured client (provider is static configuration)
- Bound every call with a timeout and disable SDK retries
- Translate provider-specific failures into ModelUnavailableError with a
  short reason so the gateway can record them uniformly
- Provide a cheap reachability probe for health checks
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, Union

import anthropic
import openai
import requests
from anthropic import Anthropic
from openai import OpenAI

from utils.config import Config
from utils.errors import ModelUnavailableError


class LLMClient(Protocol):
    """
    Protocol defining the interface for completion clients.

    Implementations raise ModelUnavailableError on any failure; they never
    return partial results.
    """

    provider: str
    model: str

    def complete(self, prompt: str, system: Optional[str] = None) -> str:
        """
        Submit a prompt and return the raw completion text.

        Args:
            prompt: The full user prompt
            system: Optional system prompt (ignored by generate-style endpoints)

        Returns:
            str: Completion text, possibly empty
        """
        ...

    def ping(self) -> bool:
        """Return True if the provider answers a lightweight request."""
        ...


def extract_token_usage(response: Any) -> Dict[str, int]:
    """
    Extract token usage from an SDK response object.

    Args:
        response: openai or anthropic response object

    Returns:
        dict: Token usage; {"input": 0, "output": 0} when unavailable
    """
    usage_obj = getattr(response, "usage", None)
    if usage_obj is None:
        return {"input": 0, "output": 0}
    try:
        return usage_obj.model_dump()
    except Exception:
        try:
            return dict(usage_obj)
        except Exception:
            return {"input": 0, "output": 0}


class OllamaClient:
    """
    Generate-style client for an Ollama server.

    Attributes:
        base_url: Server root, e.g. "http://localhost:11434"
        model: Ollama model name
        timeout: Seconds allowed per completion call
        health_timeout: Seconds allowed for the health probe
    """

    provider = "ollama"

    def __init__(
        self,
        base_url: str,
        model: str = "llama3.1",
        timeout: float = 15.0,
        health_timeout: float = 2.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.health_timeout = health_timeout
        self.logger = logger or logging.getLogger(__name__)

    def complete(self, prompt: str, system: Optional[str] = None) -> str:
        try:
            response = requests.post(
                f"{self.base_url}/api/generate",
                json={"model": self.model, "prompt": prompt, "stream": False},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.Timeout as err:
            raise ModelUnavailableError("timeout", str(err)) from err
        except requests.HTTPError as err:
            raise ModelUnavailableError("http_error", str(err)) from err
        except requests.RequestException as err:
            raise ModelUnavailableError("transport_error", str(err)) from err

        try:
            payload = response.json()
        except ValueError as err:
            raise ModelUnavailableError("malformed_output", "response body is not JSON") from err

        text = payload.get("response", "") if isinstance(payload, dict) else ""
        return text or ""

    def ping(self) -> bool:
        response = requests.get(f"{self.base_url}/api/tags", timeout=self.health_timeout)
        return response.status_code == 200


class OpenAIClient:
    """
    Chat-completion client for OpenAI or any OpenAI-compatible server.

    Attributes:
        client: The underlying OpenAI API client
        model: The model to use (e.g., "gpt-4o-mini")
        logger: Logger for debugging and error tracking
    """

    provider = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 15.0,
        health_timeout: float = 2.0,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: API key; local OpenAI-compatible servers accept any value
            model: Model name
            base_url: Optional base URL for OpenAI-compatible servers
            timeout: Seconds allowed per call
            health_timeout: Seconds allowed for the health probe
            logger: Optional logger for debugging
        """
        self.client = OpenAI(
            api_key=api_key or "not-needed",
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )
        self.model = model
        self.health_timeout = health_timeout
        self.logger = logger or logging.getLogger(__name__)

    def complete(self, prompt: str, system: Optional[str] = None) -> str:
        # OpenAI expects system message as first message
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=0,
                messages=messages,
            )
        except openai.APITimeoutError as err:
            raise ModelUnavailableError("timeout", str(err)) from err
        except openai.APIStatusError as err:
            raise ModelUnavailableError("http_error", f"status {err.status_code}") from err
        except openai.APIError as err:
            raise ModelUnavailableError("transport_error", str(err)) from err

        self.logger.debug(
            "OpenAI completion received",
            extra={"usage": extract_token_usage(response)},
        )

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def ping(self) -> bool:
        self.client.with_options(timeout=self.health_timeout).models.list()
        return True


class AnthropicClient:
    """
    Chat-completion client for Anthropic Claude.

    Attributes:
        client: The underlying Anthropic API client
        model: The Claude model to use
        logger: Logger for debugging and error tracking
    """

    provider = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-latest",
        timeout: float = 15.0,
        health_timeout: float = 2.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.client = Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model
        self.health_timeout = health_timeout
        self.logger = logger or logging.getLogger(__name__)

    def complete(self, prompt: str, system: Optional[str] = None) -> str:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=150,
                temperature=0.0,
                system=system or "",
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APITimeoutError as err:
            raise ModelUnavailableError("timeout", str(err)) from err
        except anthropic.APIStatusError as err:
            raise ModelUnavailableError("http_error", f"status {err.status_code}") from err
        except anthropic.APIError as err:
            raise ModelUnavailableError("transport_error", str(err)) from err

        self.logger.debug(
            "Anthropic completion received",
            extra={"usage": extract_token_usage(response)},
        )

        # Concatenate text blocks; tool or thinking blocks carry no text
        return "".join(getattr(block, "text", "") or "" for block in response.content or [])

    def ping(self) -> bool:
        self.client.with_options(timeout=self.health_timeout).models.list()
        return True


class LLMClientFactory:
    """
    Factory for creating completion clients from configuration.

    Returning None is intentional: it means "no external model", and the
    intent resolver will use its heuristic classifier for every message.
    """

    @staticmethod
    def create_client(
        config: Config,
        logger: Optional[logging.Logger] = None,
    ) -> Optional[Union[OllamaClient, OpenAIClient, AnthropicClient]]:
        """
        Create the client for the configured provider.

        Args:
            config: Application configuration
            logger: Optional logger for error reporting

        Returns:
            LLMClient implementation or None if the model is disabled or the
            client cannot be created

        Example:
            >>> client = LLMClientFactory.create_client(Config(llm_enabled=True))
            >>> client.provider
            'ollama'
        """
        logger = logger or logging.getLogger(__name__)

        if not config.llm_enabled:
            logger.debug("External model disabled, client will be None")
            return None

        provider = config.llm_provider
        try:
            if provider == "ollama":
                return OllamaClient(
                    base_url=config.ollama_base_url,
                    model=config.get_provider_model(provider),
                    timeout=config.llm_timeout_seconds,
                    health_timeout=config.llm_health_timeout_seconds,
                    logger=logger,
                )

            elif provider == "openai":
                return OpenAIClient(
                    api_key=config.openai_api_key,
                    model=config.get_provider_model(provider),
                    base_url=config.openai_base_url,
                    timeout=config.llm_timeout_seconds,
                    health_timeout=config.llm_health_timeout_seconds,
                    logger=logger,
                )

            elif provider == "anthropic":
                if not config.anthropic_api_key:
                    logger.warning("No API key provided for anthropic, client will be None")
                    return None
                return AnthropicClient(
                    api_key=config.anthropic_api_key,
                    model=config.get_provider_model(provider),
                    timeout=config.llm_timeout_seconds,
                    health_timeout=config.llm_health_timeout_seconds,
                    logger=logger,
                )

            else:
                logger.error(f"Unknown provider: {provider}")
                return None

        except Exception as err:
            logger.warning(
                f"Failed to initialize {provider} client, falling back to heuristic mode",
                extra={"error": str(err)},
            )
            return None
