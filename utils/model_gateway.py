"""
Model gateway: rate-limited, time-bounded intent extraction.

The gateway wraps one completion client (chosen by configuration) and
turns a user message into an Intent, or into ``None``. It never raises:
rate-limit rejections, timeouts, transport errors, non-2xx responses and
unparseable output all come back as ``None``. Each failure is logged and
counted in ``failures`` so operators can see how often the heuristic path
is taking over.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from typing import Any, Dict, Optional

from models.records import Intent
from utils.config import Config
from utils.errors import ModelUnavailableError
from utils.llm_clients import LLMClient, LLMClientFactory
from utils.prompts import PromptBuilder, get_prompt_builder
from utils.rate_limiter import TokenBucket


def extract_json_block(text: str) -> Optional[str]:
    """
    Return the first balanced ``{...}`` block in ``text``.

    Braces inside JSON string literals are ignored when balancing.
    Returns None when no opening brace exists or the first block never
    closes.
    """
    if not text:
        return None
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Parse the first balanced JSON object block; None on any failure."""
    block = extract_json_block(text)
    if block is None:
        return None
    try:
        parsed = json.loads(block)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class ModelGateway:
    """
    Rate-limited front door to the external model.

    Attributes:
        client: Completion client, or None when the model is disabled
        bucket: Process-wide token bucket shared by every session
        enabled: Whether the configuration enables the external model
        provider: Configured provider name
        failures: Counter of failure reasons ("rate_limited", "timeout", ...)
    """

    def __init__(
        self,
        client: Optional[LLMClient],
        bucket: TokenBucket,
        enabled: bool = True,
        provider: Optional[str] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.bucket = bucket
        self.enabled = enabled
        self.provider = provider or (client.provider if client is not None else "none")
        self.prompt_builder = prompt_builder or get_prompt_builder()
        self.logger = logger or logging.getLogger(__name__)
        self.failures: Counter = Counter()

    @classmethod
    def from_config(
        cls,
        config: Config,
        logger: Optional[logging.Logger] = None,
    ) -> "ModelGateway":
        """
        Build the gateway, its client and its token bucket from configuration.
        """
        client = LLMClientFactory.create_client(config, logger=logger)
        return cls(
            client=client,
            bucket=TokenBucket(config.llm_requests_per_minute),
            enabled=config.llm_enabled,
            provider=config.llm_provider,
            logger=logger,
        )

    def _record_failure(self, reason: str, detail: str = "") -> None:
        self.failures[reason] += 1
        self.logger.warning(
            f"Model intent extraction failed ({reason}), using heuristic",
            extra={"reason": reason, "detail": detail, "provider": self.provider},
        )

    def _request_intent(self, message: str) -> Intent:
        """
        One guarded round trip. Raises ModelUnavailableError on any failure.
        """
        if not self.bucket.try_acquire():
            raise ModelUnavailableError("rate_limited")

        prompt = self.prompt_builder.build_intent_prompt(message)
        text = self.client.complete(prompt, system=self.prompt_builder.templates.INTENT_SYSTEM)

        payload = parse_json_object(text)
        if payload is None:
            raise ModelUnavailableError("malformed_output", text[:200])

        intent = Intent.from_dict(payload)
        if intent is None:
            raise ModelUnavailableError("unrecognized_type", str(payload.get("type")))
        return intent

    def extract_intent(self, message: str) -> Optional[Intent]:
        """
        Ask the external model for an intent.

        Args:
            message: Raw user message

        Returns:
            Intent if the model produced a well-formed object with a known
            type, otherwise None. Never raises.
        """
        if not self.enabled or self.client is None:
            return None

        try:
            intent = self._request_intent(message)
        except ModelUnavailableError as err:
            self._record_failure(err.reason, err.detail)
            return None
        except Exception as err:
            self._record_failure("unexpected_error", str(err))
            return None

        self.logger.debug(
            "Model intent extracted",
            extra={"intent": intent.to_dict(), "provider": self.provider},
        )
        return intent

    def health(self) -> Dict[str, Any]:
        """
        Probe the provider without touching the rate limiter.

        Returns:
            dict: {"enabled", "provider", "healthy", "reason"?}
        """
        if not self.enabled:
            return {
                "enabled": False,
                "provider": self.provider,
                "healthy": False,
                "reason": "LLM disabled",
            }
        if self.client is None:
            return {
                "enabled": True,
                "provider": self.provider,
                "healthy": False,
                "reason": "client not configured",
            }
        try:
            healthy = bool(self.client.ping())
        except Exception as err:
            return {
                "enabled": True,
                "provider": self.provider,
                "healthy": False,
                "reason": str(err),
            }
        return {"enabled": True, "provider": self.provider, "healthy": healthy}
