"""
Intent resolution: ordered keyword rules with an optional model in front.

The heuristic classifier is a fixed, ordered table of rules evaluated on
the lower-cased message. The first rule whose predicate matches decides the
intent type; when none match the intent is ``general``. Several rules
overlap ("create a ticket" vs "ticket status update"), so the order of
RULES is part of the behaviour:

    1. filter_invoices   "filter" and "invoice"
    2. explain_failures  "why" and ("fail" or "error")
    3. create_ticket     "create" and "ticket"
    4. download_report   "download" and ("report" or "fix")
    5. ticket_status     "ticket" and ("status" or "update")

Only filter_invoices carries slots (vendor, status, timeframe). Slot
extraction never raises; unmatched vendor/status stay None and timeframe
falls back to "all".

When asked to, the resolver first consults the model gateway and accepts
its answer as-is if it is a well-formed intent. Anything else, including
the gateway being rate limited or timing out, silently falls through to
the rules.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from models.records import Intent, IntentType, Timeframe
from utils.model_gateway import ModelGateway

KNOWN_VENDORS = ("IndiSky", "AirIndia", "SpiceJet", "GoAir", "Vistara")
KNOWN_STATUSES = ("paid", "pending", "failed", "processing")

TIMEFRAME_PHRASES = (
    ("last month", Timeframe.LAST_MONTH),
    ("this month", Timeframe.THIS_MONTH),
    ("last week", Timeframe.LAST_WEEK),
)

_VENDOR_QUOTED = re.compile(r"""vendor\s*=\s*['"](.*?)['"]""", re.IGNORECASE)
_VENDOR_BARE = re.compile(r"vendor\s*=\s*(\w+)", re.IGNORECASE)
_STATUS_QUOTED = re.compile(r"""status\s*=\s*['"](.*?)['"]""", re.IGNORECASE)
_STATUS_BARE = re.compile(r"status\s*=\s*(\w+)", re.IGNORECASE)


# ============================================================================
# RULE PREDICATES (input is the lower-cased message)
# ============================================================================


def is_filter_request(text: str) -> bool:
    return "filter" in text and "invoice" in text


def is_failure_question(text: str) -> bool:
    return "why" in text and ("fail" in text or "error" in text)


def is_ticket_creation(text: str) -> bool:
    return "create" in text and "ticket" in text


def is_download_request(text: str) -> bool:
    return "download" in text and ("report" in text or "fix" in text)


def is_ticket_status_query(text: str) -> bool:
    return "ticket" in text and ("status" in text or "update" in text)


@dataclass(frozen=True)
class IntentRule:
    intent_type: str
    matches: Callable[[str], bool]


RULES: Tuple[IntentRule, ...] = (
    IntentRule(IntentType.FILTER_INVOICES, is_filter_request),
    IntentRule(IntentType.EXPLAIN_FAILURES, is_failure_question),
    IntentRule(IntentType.CREATE_TICKET, is_ticket_creation),
    IntentRule(IntentType.DOWNLOAD_REPORT, is_download_request),
    IntentRule(IntentType.TICKET_STATUS, is_ticket_status_query),
)


# ============================================================================
# SLOT EXTRACTION
# ============================================================================


def extract_vendor(message: str) -> Optional[str]:
    """
    Known vendor mentioned anywhere (canonical spelling), else a
    ``vendor='X'`` or ``vendor=X`` pattern.
    """
    lowered = message.lower()
    for vendor in KNOWN_VENDORS:
        if vendor.lower() in lowered:
            return vendor

    match = _VENDOR_QUOTED.search(message) or _VENDOR_BARE.search(message)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


def extract_status(message: str) -> Optional[str]:
    """Known status mentioned anywhere, else a ``status=`` pattern."""
    lowered = message.lower()
    for status in KNOWN_STATUSES:
        if status in lowered:
            return status

    match = _STATUS_QUOTED.search(message) or _STATUS_BARE.search(message)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


def extract_timeframe(message: str) -> str:
    lowered = message.lower()
    for phrase, timeframe in TIMEFRAME_PHRASES:
        if phrase in lowered:
            return timeframe
    return Timeframe.ALL


def classify(message: str) -> str:
    """Return the intent type of the first matching rule, or ``general``."""
    lowered = message.lower()
    for rule in RULES:
        if rule.matches(lowered):
            return rule.intent_type
    return IntentType.GENERAL


def heuristic_intent(message: str) -> Intent:
    """Classify ``message`` and fill slots for filter requests."""
    intent_type = classify(message)
    if intent_type != IntentType.FILTER_INVOICES:
        return Intent(type=intent_type)
    return Intent(
        type=intent_type,
        vendor=extract_vendor(message),
        status=extract_status(message),
        timeframe=extract_timeframe(message),
    )


@dataclass(frozen=True)
class IntentResolution:
    intent: Intent
    source: str  # "model" or "heuristic"


class IntentResolver:
    """
    Resolves free text into an Intent.

    Attributes:
        gateway: Optional model gateway consulted before the rules
        logger: Logger for debugging
    """

    def __init__(
        self,
        gateway: Optional[ModelGateway] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.gateway = gateway
        self.logger = logger or logging.getLogger(__name__)

    def resolve_with_source(self, message: str, use_external_model: bool = False) -> IntentResolution:
        """
        Resolve a message and report which path produced the intent.

        Args:
            message: Raw user message
            use_external_model: Ask the model gateway first

        Returns:
            IntentResolution: The intent and its source
        """
        if use_external_model and self.gateway is not None:
            intent = self.gateway.extract_intent(message)
            if intent is not None:
                resolution = IntentResolution(intent=intent, source="model")
                self.logger.debug(
                    f"Resolved intent {intent.type} via model",
                    extra={"intent": intent.to_dict()},
                )
                return resolution

        intent = heuristic_intent(message)
        self.logger.debug(
            f"Resolved intent {intent.type} via heuristic",
            extra={"intent": intent.to_dict()},
        )
        return IntentResolution(intent=intent, source="heuristic")

    def resolve(self, message: str, use_external_model: bool = False) -> Intent:
        return self.resolve_with_source(message, use_external_model).intent
