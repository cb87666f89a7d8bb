from .intent_resolver import IntentResolution, IntentResolver, classify, heuristic_intent
from .invoice_assistant import ChatResponse, InvoiceAssistant
from .ticket_manager import TicketManager

__all__ = [
    "ChatResponse",
    "IntentResolution",
    "IntentResolver",
    "InvoiceAssistant",
    "TicketManager",
    "classify",
    "heuristic_intent",
]
