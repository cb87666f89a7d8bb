"""
Tests for conversation/ - append-only context and the in-memory store
"""

import pytest

from conversation.context import (
    append_action,
    append_message,
    find_action,
    last_action_of_type,
    last_downloadable_action,
    recent_actions,
)
from conversation.store import InMemoryStore
from models.records import ActionType, Conversation, Sender

from conftest import NOW


@pytest.fixture
def actions(executor, demo_dataset):
    filtered = executor.execute(ActionType.FILTER_INVOICES, {"vendor": "IndiSky"}, demo_dataset)
    analysis = executor.execute(ActionType.ANALYZE_FAILURES, {}, filtered.data)
    report = executor.execute(ActionType.GENERATE_REPORT, {"vendor": "GoAir"}, demo_dataset)
    return filtered, analysis, report


class TestContext:
    """Test conversation context operations."""

    def test_messages_keep_order(self):
        conversation = Conversation(session_id="s1")

        append_message(conversation, "hello", Sender.USER, timestamp=NOW)
        append_message(conversation, "hi there", Sender.ASSISTANT)

        assert [message.text for message in conversation.messages] == ["hello", "hi there"]
        assert conversation.messages[0].timestamp == NOW
        assert conversation.messages[0].id != conversation.messages[1].id

    def test_unknown_sender_rejected(self):
        conversation = Conversation(session_id="s1")

        with pytest.raises(ValueError):
            append_message(conversation, "hello", "system")

    def test_last_action_of_type(self, actions):
        filtered, analysis, report = actions
        conversation = Conversation(session_id="s1")
        for action in actions:
            append_action(conversation, action)

        assert last_action_of_type(conversation, ActionType.FILTER_INVOICES) is filtered
        assert last_action_of_type(conversation, ActionType.ANALYZE_FAILURES) is analysis
        assert last_action_of_type(Conversation(session_id="s2"), ActionType.FILTER_INVOICES) is None

    def test_last_downloadable_action(self, actions):
        conversation = Conversation(session_id="s1")
        assert last_downloadable_action(conversation) is None

        for action in actions:
            append_action(conversation, action)

        assert last_downloadable_action(conversation) is actions[-1]

    def test_recent_actions_most_recent_first(self, actions):
        filtered, analysis, report = actions
        conversation = Conversation(session_id="s1")
        for action in actions:
            append_action(conversation, action)

        assert recent_actions(conversation, 2) == [report, analysis]
        assert recent_actions(conversation) == [report, analysis, filtered]
        assert recent_actions(conversation, 0) == []

    def test_find_action(self, actions):
        conversation = Conversation(session_id="s1")
        for action in actions:
            append_action(conversation, action)

        assert find_action(conversation, actions[1].report_id) is actions[1]
        assert find_action(conversation, "missing") is None


class TestInMemoryStore:
    """Test the in-memory conversation and ticket store."""

    def test_get_or_create_returns_same_conversation(self):
        store = InMemoryStore()

        first = store.get_or_create_conversation("s1")
        second = store.get_or_create_conversation("s1")

        assert first is second
        assert store.get_conversation("s2") is None

    def test_find_action_across_sessions(self, actions):
        store = InMemoryStore()
        append_action(store.get_or_create_conversation("s1"), actions[0])
        append_action(store.get_or_create_conversation("s2"), actions[2])

        assert store.find_action(actions[2].report_id) is actions[2]
        assert store.find_action("missing") is None

    def test_list_tickets_by_session(self, ticket_manager):
        store = InMemoryStore()
        mine = ticket_manager.create("Issue with invoices", session_id="s1", store=store)
        store.put_ticket(mine)
        theirs = ticket_manager.create("Payment problem", session_id="s2", store=store)
        store.put_ticket(theirs)

        assert store.list_tickets("s1") == [mine]
        assert store.list_tickets() == [mine, theirs]
        assert store.stats() == {"conversations": 0, "tickets": 2}
