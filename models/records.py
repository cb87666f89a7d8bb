"""
Core record types for the invoice support assistant.

This module defines the immutable records that flow through the pipeline:
- Intent: structured classification of a single user message
- InvoiceRecord: one row of the (read-only) invoice dataset
- Action: an executed data operation, referenceable later by report_id
- Message: one chat message in a conversation
- Conversation: the append-only per-session log of messages and actions

Records are frozen dataclasses. Collections inside them are tuples so that
an Action handed to a later turn can never be edited by the turn that
produced it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class IntentType:
    """Names of the intents the assistant understands."""

    FILTER_INVOICES = "filter_invoices"
    EXPLAIN_FAILURES = "explain_failures"
    CREATE_TICKET = "create_ticket"
    DOWNLOAD_REPORT = "download_report"
    TICKET_STATUS = "ticket_status"
    GENERAL = "general"

    ALL = (
        FILTER_INVOICES,
        EXPLAIN_FAILURES,
        CREATE_TICKET,
        DOWNLOAD_REPORT,
        TICKET_STATUS,
        GENERAL,
    )


class ActionType:
    """Action types accepted by the action executor."""

    FILTER_INVOICES = "filter_invoices"
    ANALYZE_FAILURES = "analyze_failures"
    GENERATE_REPORT = "generate_report"

    ALL = (FILTER_INVOICES, ANALYZE_FAILURES, GENERATE_REPORT)


class Sender:
    USER = "user"
    ASSISTANT = "assistant"


class Timeframe:
    LAST_MONTH = "last_month"
    THIS_MONTH = "this_month"
    LAST_WEEK = "last_week"
    ALL = "all"

    VALUES = (LAST_MONTH, THIS_MONTH, LAST_WEEK, ALL)


# Issue text the failure analysis and the compliance remark key off
GSTIN_ISSUE = "Missing GSTIN information"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def freeze_mapping(values: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Wrap a dict in a read-only proxy (nested lists become tuples)."""
    frozen: Dict[str, Any] = {}
    for key, value in (values or {}).items():
        if isinstance(value, dict):
            frozen[key] = freeze_mapping(value)
        elif isinstance(value, list):
            frozen[key] = tuple(value)
        else:
            frozen[key] = value
    return MappingProxyType(frozen)


def thaw(value: Any) -> Any:
    """Turn read-only proxies and tuples back into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class Intent:
    """
    Structured classification of one user message.

    Attributes:
        type: One of IntentType.ALL
        vendor: Vendor slot (filter_invoices only), absent when not mentioned
        status: Invoice status slot, absent when not mentioned
        timeframe: Timeframe slot; the only slot with a default ("all")
    """

    type: str
    vendor: Optional[str] = None
    status: Optional[str] = None
    timeframe: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["Intent"]:
        """
        Build an Intent from an untrusted dict (e.g. external model output).

        Returns None when the payload is not a dict or does not carry a
        recognized ``type``.
        """
        if not isinstance(payload, dict):
            return None
        intent_type = payload.get("type")
        if not isinstance(intent_type, str) or intent_type.strip().lower() not in IntentType.ALL:
            return None

        def _slot(name: str) -> Optional[str]:
            value = payload.get(name)
            if isinstance(value, str) and value.strip():
                return value.strip()
            return None

        timeframe = _slot("timeframe")
        if timeframe is not None:
            timeframe = timeframe.lower().replace(" ", "_")
            if timeframe not in Timeframe.VALUES:
                timeframe = Timeframe.ALL

        return cls(
            type=intent_type.strip().lower(),
            vendor=_slot("vendor"),
            status=_slot("status"),
            timeframe=timeframe,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type}
        for name in ("vendor", "status", "timeframe"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        return payload


@dataclass(frozen=True)
class InvoiceRecord:
    """One invoice row. Owned by the dataset; read-only to the assistant."""

    id: str
    vendor: str
    amount: float
    currency: str
    status: str
    date: date
    issues: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "vendor": self.vendor,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "date": self.date.isoformat(),
            "issues": list(self.issues),
        }


@dataclass(frozen=True)
class Action:
    """
    Immutable record of one executed data operation.

    ``report_id`` is the only reference later turns (and report downloads)
    use to find this action again.
    """

    type: str
    report_id: str
    data: Tuple[InvoiceRecord, ...]
    summary: Mapping[str, Any]
    timestamp: datetime
    downloadable: bool
    filters: Optional[Mapping[str, Any]] = None

    @property
    def issues(self) -> Tuple[str, ...]:
        return tuple(self.summary.get("issues", ()))

    def to_dict(self, include_data: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type,
            "report_id": self.report_id,
            "summary": thaw(self.summary),
            "timestamp": self.timestamp.isoformat(),
            "downloadable": self.downloadable,
            "record_count": len(self.data),
        }
        if self.filters is not None:
            payload["filters"] = thaw(self.filters)
        if include_data:
            payload["data"] = [record.to_dict() for record in self.data]
        return payload


@dataclass(frozen=True)
class Message:
    id: str
    text: str
    sender: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "sender": self.sender,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class Conversation:
    """
    Per-session log of messages and actions.

    Both lists only ever grow; see conversation.context for the operations
    allowed on them.
    """

    session_id: str
    messages: List[Message] = field(default_factory=list)
    actions: List[Action] = field(default_factory=list)
    created: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "created": self.created.isoformat(),
            "messages": [message.to_dict() for message in self.messages],
            "actions": [action.to_dict() for action in self.actions],
        }
