"""
Support ticket lifecycle.

Tickets move open -> resolved or open -> escalated. Both targets are
terminal; notes can still be added to a ticket in any state. The manager
holds no tickets itself: update, resolve and escalate read from and write
to the store the caller passes in, and fail with TicketNotFoundError when
that store does not know the id.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from conversation.store import TicketStore
from models.records import utcnow
from models.ticket import (
    Ticket,
    TicketCategory,
    TicketPriority,
    TicketStatus,
    TicketUpdate,
)
from utils.errors import (
    InvalidTicketTransitionError,
    TicketIdsExhaustedError,
    TicketNotFoundError,
)

TICKET_PREFIX = "TKT"
IDS_PER_DAY = 1000
MAX_ID_DRAWS = 20

BASE_RESOLUTION_DAYS: Dict[str, float] = {
    TicketPriority.LOW: 7,
    TicketPriority.MEDIUM: 3,
    TicketPriority.HIGH: 1,
    TicketPriority.CRITICAL: 0.5,
}

COMPLIANCE_MULTIPLIER = 1.5

# First match wins, in this order
CATEGORY_KEYWORDS = (
    (TicketCategory.BILLING, ("invoice", "billing")),
    (TicketCategory.COMPLIANCE, ("gstin", "tax")),
    (TicketCategory.PAYMENT, ("payment", "transaction")),
    (TicketCategory.TECHNICAL, ("technical", "system")),
)

COMPLIANCE_TERMS = ("gstin", "compliance")

TICKET_TEMPLATES: Dict[str, Dict[str, object]] = {
    TicketCategory.BILLING: {
        "description": "Issue with invoice processing",
        "required_info": ["Invoice ID", "Vendor", "Amount", "Error message"],
    },
    TicketCategory.COMPLIANCE: {
        "description": "Compliance or regulatory issue",
        "required_info": ["Document type", "Compliance requirement", "Missing information"],
    },
    TicketCategory.PAYMENT: {
        "description": "Payment processing issue",
        "required_info": ["Transaction ID", "Amount", "Payment method", "Error code"],
    },
    TicketCategory.TECHNICAL: {
        "description": "Technical system issue",
        "required_info": ["System component", "Error message", "Steps to reproduce"],
    },
    TicketCategory.GENERAL: {
        "description": "General support request",
        "required_info": ["Summary of the request"],
    },
}


def categorize(description: str) -> str:
    lowered = description.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return TicketCategory.GENERAL


def resolution_days(priority: str, description: str) -> float:
    """Base days for the priority, stretched for compliance work."""
    days = BASE_RESOLUTION_DAYS.get(priority, BASE_RESOLUTION_DAYS[TicketPriority.MEDIUM])
    lowered = description.lower()
    if any(term in lowered for term in COMPLIANCE_TERMS):
        return days * COMPLIANCE_MULTIPLIER
    return days


class TicketManager:
    """
    Creates tickets and applies lifecycle transitions.

    Attributes:
        clock: Returns the current time
        rng: Random source for the id disambiguator
        logger: Logger for lifecycle events
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.clock = clock
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)

    def generate_ticket_id(self, now: datetime, store: Optional[TicketStore] = None) -> str:
        """
        ``TKT-YYYYMMDD-NNN``. When a store is given, draws again until the
        id is unused; after MAX_ID_DRAWS collisions the first free number
        of the day is taken instead.

        Raises:
            TicketIdsExhaustedError: Every number for the day is taken
        """
        prefix = f"{TICKET_PREFIX}-{now:%Y%m%d}-"
        if store is None:
            return f"{prefix}{self.rng.randrange(IDS_PER_DAY):03d}"

        for _ in range(MAX_ID_DRAWS):
            ticket_id = f"{prefix}{self.rng.randrange(IDS_PER_DAY):03d}"
            if store.get_ticket(ticket_id) is None:
                return ticket_id

        for number in range(IDS_PER_DAY):
            ticket_id = f"{prefix}{number:03d}"
            if store.get_ticket(ticket_id) is None:
                return ticket_id
        raise TicketIdsExhaustedError(now.date().isoformat())

    def create(
        self,
        description: str,
        priority: str = TicketPriority.MEDIUM,
        session_id: Optional[str] = None,
        related_action_ids: Sequence[str] = (),
        store: Optional[TicketStore] = None,
    ) -> Ticket:
        """
        Create a new open ticket.

        Args:
            description: Free-text description; drives category and estimate
            priority: low, medium, high or critical
            session_id: Session that asked for the ticket
            related_action_ids: report_ids of the actions behind the request
            store: Optional store used only to avoid id collisions

        Returns:
            Ticket: The new ticket (not persisted)

        Raises:
            ValueError: If priority is not recognized
        """
        if priority not in TicketPriority.VALUES:
            raise ValueError(f"Unknown priority: {priority}")

        now = self.clock()
        ticket = Ticket(
            id=self.generate_ticket_id(now, store),
            description=description,
            priority=priority,
            status=TicketStatus.OPEN,
            category=categorize(description),
            session_id=session_id,
            created=now,
            last_updated=now,
            estimated_resolution=now + timedelta(days=resolution_days(priority, description)),
            related_action_ids=tuple(related_action_ids),
        )
        self.logger.info(
            f"Created ticket {ticket.id}",
            extra={"priority": priority, "category": ticket.category},
        )
        return ticket

    def _require(self, store: TicketStore, ticket_id: str) -> Ticket:
        ticket = store.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket

    def _require_open(self, ticket: Ticket, target: str) -> None:
        if ticket.status in TicketStatus.TERMINAL:
            raise InvalidTicketTransitionError(ticket.id, ticket.status, target)

    def update(self, store: TicketStore, ticket_id: str, note: str) -> Ticket:
        """Append a timestamped note; the status is unchanged."""
        ticket = self._require(store, ticket_id)
        now = self.clock()
        updated = replace(
            ticket,
            updates=ticket.updates + (TicketUpdate(timestamp=now, message=note),),
            last_updated=now,
        )
        store.put_ticket(updated)
        self.logger.debug(f"Added note to ticket {ticket_id}")
        return updated

    def resolve(self, store: TicketStore, ticket_id: str, resolution: str) -> Ticket:
        ticket = self._require(store, ticket_id)
        self._require_open(ticket, TicketStatus.RESOLVED)
        now = self.clock()
        resolved = replace(
            ticket,
            status=TicketStatus.RESOLVED,
            resolution=resolution,
            resolved_at=now,
            last_updated=now,
            updates=ticket.updates + (TicketUpdate(timestamp=now, message=resolution),),
        )
        store.put_ticket(resolved)
        self.logger.info(f"Resolved ticket {ticket_id}")
        return resolved

    def escalate(self, store: TicketStore, ticket_id: str, reason: str) -> Ticket:
        """Escalate an open ticket; priority is forced to high."""
        ticket = self._require(store, ticket_id)
        self._require_open(ticket, TicketStatus.ESCALATED)
        now = self.clock()
        escalated = replace(
            ticket,
            status=TicketStatus.ESCALATED,
            priority=TicketPriority.HIGH,
            escalation_reason=reason,
            escalated_at=now,
            last_updated=now,
            updates=ticket.updates + (TicketUpdate(timestamp=now, message=f"Escalated: {reason}"),),
        )
        store.put_ticket(escalated)
        self.logger.info(f"Escalated ticket {ticket_id}", extra={"reason": reason})
        return escalated

    @staticmethod
    def template_for(category: str) -> Dict[str, object]:
        template = TICKET_TEMPLATES.get(category, TICKET_TEMPLATES[TicketCategory.GENERAL])
        return {"category": category, **template}

    @staticmethod
    def open_tickets(tickets: List[Ticket]) -> List[Ticket]:
        return [ticket for ticket in tickets if ticket.status == TicketStatus.OPEN]
