"""
Support ticket records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


class TicketPriority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    VALUES = (LOW, MEDIUM, HIGH, CRITICAL)


class TicketStatus:
    OPEN = "open"
    RESOLVED = "resolved"
    ESCALATED = "escalated"

    TERMINAL = (RESOLVED, ESCALATED)


class TicketCategory:
    BILLING = "Billing"
    COMPLIANCE = "Compliance"
    PAYMENT = "Payment"
    TECHNICAL = "Technical"
    GENERAL = "General"


@dataclass(frozen=True)
class TicketUpdate:
    timestamp: datetime
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp.isoformat(), "message": self.message}


@dataclass(frozen=True)
class Ticket:
    """
    A support ticket.

    Tickets are never edited in place: the ticket manager returns a new
    version for every change and the caller writes it back to its store.
    """

    id: str
    description: str
    priority: str
    status: str
    category: str
    session_id: Optional[str]
    created: datetime
    last_updated: datetime
    estimated_resolution: datetime
    related_action_ids: Tuple[str, ...] = ()
    updates: Tuple[TicketUpdate, ...] = ()
    assignee: Optional[str] = None
    resolution: Optional[str] = None
    resolved_at: Optional[datetime] = None
    escalation_reason: Optional[str] = None
    escalated_at: Optional[datetime] = None

    @property
    def last_update(self) -> Optional[TicketUpdate]:
        return self.updates[-1] if self.updates else None

    def to_dict(self) -> Dict[str, Any]:
        def _iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "description": self.description,
            "priority": self.priority,
            "status": self.status,
            "category": self.category,
            "session_id": self.session_id,
            "created": _iso(self.created),
            "last_updated": _iso(self.last_updated),
            "estimated_resolution": _iso(self.estimated_resolution),
            "related_action_ids": list(self.related_action_ids),
            "updates": [update.to_dict() for update in self.updates],
            "assignee": self.assignee,
            "resolution": self.resolution,
            "resolved_at": _iso(self.resolved_at),
            "escalation_reason": self.escalation_reason,
            "escalated_at": _iso(self.escalated_at),
        }
