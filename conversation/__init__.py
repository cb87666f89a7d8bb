from .context import (
    append_action,
    append_message,
    find_action,
    last_action_of_type,
    last_downloadable_action,
    recent_actions,
)
from .store import ConversationStore, InMemoryStore, TicketStore

__all__ = [
    "ConversationStore",
    "InMemoryStore",
    "TicketStore",
    "append_action",
    "append_message",
    "find_action",
    "last_action_of_type",
    "last_downloadable_action",
    "recent_actions",
]
