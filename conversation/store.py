"""
Storage interfaces the assistant core depends on, and an in-memory
implementation of them.

The core never reaches for module-level state: conversations, tickets and
report lookups come through a store object passed in by the caller, so a
database-backed store can replace InMemoryStore without touching pipeline
logic.

Concurrent requests for the same session are not serialized here; a
caller that allows them must serialize per session itself.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from models.records import Action, Conversation
from models.ticket import Ticket

from .context import find_action


class ConversationStore(Protocol):
    def get_or_create_conversation(self, session_id: str) -> Conversation:
        ...

    def save_conversation(self, conversation: Conversation) -> None:
        ...

    def find_action(self, report_id: str) -> Optional[Action]:
        ...


class TicketStore(Protocol):
    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        ...

    def put_ticket(self, ticket: Ticket) -> None:
        ...

    def list_tickets(self, session_id: Optional[str] = None) -> List[Ticket]:
        ...


class InMemoryStore:
    """
    Process-lifetime storage for conversations and tickets.

    Attributes:
        conversations: session_id -> Conversation
        tickets: ticket_id -> Ticket (insertion order preserved)
    """

    def __init__(self) -> None:
        self.conversations: Dict[str, Conversation] = {}
        self.tickets: Dict[str, Ticket] = {}

    def get_or_create_conversation(self, session_id: str) -> Conversation:
        conversation = self.conversations.get(session_id)
        if conversation is None:
            conversation = Conversation(session_id=session_id)
            self.conversations[session_id] = conversation
        return conversation

    def get_conversation(self, session_id: str) -> Optional[Conversation]:
        return self.conversations.get(session_id)

    def save_conversation(self, conversation: Conversation) -> None:
        self.conversations[conversation.session_id] = conversation

    def find_action(self, report_id: str) -> Optional[Action]:
        """Locate an action by report id across every conversation."""
        for conversation in self.conversations.values():
            action = find_action(conversation, report_id)
            if action is not None:
                return action
        return None

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        return self.tickets.get(ticket_id)

    def put_ticket(self, ticket: Ticket) -> None:
        self.tickets[ticket.id] = ticket

    def list_tickets(self, session_id: Optional[str] = None) -> List[Ticket]:
        tickets = list(self.tickets.values())
        if session_id is not None:
            tickets = [ticket for ticket in tickets if ticket.session_id == session_id]
        return tickets

    def stats(self) -> Dict[str, int]:
        return {"conversations": len(self.conversations), "tickets": len(self.tickets)}
