"""
Append-only operations on a Conversation and the lookups that let
referential intents ("why did these fail?") find earlier results.

There is deliberately no delete, replace or reorder operation. Lookups
scan from the most recent entry backwards.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from models.records import Action, Conversation, Message, Sender, utcnow


def append_message(
    conversation: Conversation,
    text: str,
    sender: str,
    timestamp: Optional[datetime] = None,
) -> Message:
    """Create a Message and push it onto the conversation."""
    if sender not in (Sender.USER, Sender.ASSISTANT):
        raise ValueError(f"Unknown sender: {sender}")
    message = Message(
        id=str(uuid.uuid4()),
        text=text,
        sender=sender,
        timestamp=timestamp or utcnow(),
    )
    conversation.messages.append(message)
    return message


def append_action(conversation: Conversation, action: Action) -> None:
    conversation.actions.append(action)


def last_action_of_type(conversation: Conversation, action_type: str) -> Optional[Action]:
    """Most recent action of ``action_type``, or None."""
    for action in reversed(conversation.actions):
        if action.type == action_type:
            return action
    return None


def last_downloadable_action(conversation: Conversation) -> Optional[Action]:
    for action in reversed(conversation.actions):
        if action.downloadable:
            return action
    return None


def recent_actions(conversation: Conversation, limit: int = 3) -> List[Action]:
    """The last ``limit`` actions, most recent first."""
    if limit <= 0:
        return []
    return list(reversed(conversation.actions[-limit:]))


def find_action(conversation: Conversation, report_id: str) -> Optional[Action]:
    for action in reversed(conversation.actions):
        if action.report_id == report_id:
            return action
    return None
