from .records import (
    GSTIN_ISSUE,
    Action,
    ActionType,
    Conversation,
    Intent,
    IntentType,
    InvoiceRecord,
    Message,
    Sender,
    Timeframe,
)
from .ticket import Ticket, TicketCategory, TicketPriority, TicketStatus, TicketUpdate

__all__ = [
    "GSTIN_ISSUE",
    "Action",
    "ActionType",
    "Conversation",
    "Intent",
    "IntentType",
    "InvoiceRecord",
    "Message",
    "Sender",
    "Timeframe",
    "Ticket",
    "TicketCategory",
    "TicketPriority",
    "TicketStatus",
    "TicketUpdate",
]
