"""
Tests for agents/invoice_assistant.py - the chat pipeline end to end
"""

import pytest
from unittest.mock import Mock

from agents.intent_resolver import IntentResolver, classify
from agents.invoice_assistant import InvoiceAssistant
from data.scenarios import DEMO_PHRASES
from models.records import GSTIN_ISSUE, ActionType, Conversation, Intent, IntentType
from models.ticket import TicketPriority, TicketStatus
from utils.errors import UnknownActionError
from utils.prompts import PromptTemplates

FILTER = "Filter invoices for last month, vendor='IndiSky', status=failed"
EXPLAIN = "Why did these fail?"
CREATE = "Create a ticket and notify me when fixed"
STATUS = "What's the status of my ticket?"
DOWNLOAD = "Download the fixed report"


def send(assistant, store, dataset, message, session_id="s1"):
    return assistant.handle_message(message, session_id=session_id, store=store, dataset=dataset)


class TestDemoConversation:
    """Test the five-step demo in one session."""

    def test_filter_reports_counts_and_issue_bullets(self, assistant, store, demo_dataset):
        reply = send(assistant, store, demo_dataset, FILTER)

        assert reply.intent.type == IntentType.FILTER_INVOICES
        assert reply.text.startswith('Found 12 invoices from IndiSky with status "failed" from last month.')
        assert f"• {GSTIN_ISSUE} (7 invoices)" in reply.text
        assert len(reply.actions) == 1
        assert reply.actions[0].downloadable is True

        conversation = store.get_conversation("s1")
        assert [message.sender for message in conversation.messages] == ["user", "assistant"]
        assert conversation.actions == reply.actions

    def test_explain_references_the_same_records(self, assistant, store, demo_dataset):
        filtered = send(assistant, store, demo_dataset, FILTER).actions[0]

        reply = send(assistant, store, demo_dataset, EXPLAIN)

        assert reply.text.startswith("Analysis of 12 failed invoices:")
        assert f"• {GSTIN_ISSUE}: 7 invoices" in reply.text
        assert PromptTemplates.COMPLIANCE_REMARK in reply.text
        analysis = reply.actions[0]
        assert analysis.type == ActionType.ANALYZE_FAILURES
        assert analysis.filters["source_report_id"] == filtered.report_id
        assert analysis.data == filtered.data

    def test_ticket_seeded_from_latest_issues(self, assistant, store, demo_dataset):
        filtered = send(assistant, store, demo_dataset, FILTER).actions[0]
        analysis = send(assistant, store, demo_dataset, EXPLAIN).actions[0]

        reply = send(assistant, store, demo_dataset, CREATE)

        ticket = reply.ticket
        assert ticket.description == (
            "Issue with invoices: Missing GSTIN information, "
            "Invalid payment reference, Expired vendor certificate"
        )
        assert ticket.priority == TicketPriority.HIGH
        assert ticket.status == TicketStatus.OPEN
        assert ticket.session_id == "s1"
        assert ticket.related_action_ids == (filtered.report_id, analysis.report_id)
        assert ticket.id in reply.text
        assert store.get_ticket(ticket.id) == ticket
        assert reply.actions == []

    def test_status_lists_session_tickets(self, assistant, store, demo_dataset):
        send(assistant, store, demo_dataset, FILTER)
        ticket = send(assistant, store, demo_dataset, CREATE).ticket

        reply = send(assistant, store, demo_dataset, STATUS)

        assert reply.intent.type == IntentType.TICKET_STATUS
        assert f"• {ticket.id}: open" in reply.text

    def test_download_cites_latest_downloadable_report(self, assistant, store, demo_dataset):
        send(assistant, store, demo_dataset, FILTER)
        analysis = send(assistant, store, demo_dataset, EXPLAIN).actions[0]
        send(assistant, store, demo_dataset, CREATE)

        reply = send(assistant, store, demo_dataset, DOWNLOAD)

        assert f"Report ID: {analysis.report_id}" in reply.text
        assert reply.actions == []

    def test_rendered_answers_do_not_change_intent(self, assistant, store, demo_dataset):
        for phrase in DEMO_PHRASES:
            reply = send(assistant, store, demo_dataset, phrase)

            assert classify(reply.text) in {reply.intent.type, IntentType.GENERAL}


class TestClarifyingAnswers:
    """Test referential intents without the context they need."""

    def test_explain_without_filter(self, assistant, store, demo_dataset):
        reply = send(assistant, store, demo_dataset, EXPLAIN)

        assert reply.text == PromptTemplates.NEED_FILTER_FIRST
        assert reply.actions == []
        assert store.get_conversation("s1").actions == []

    def test_download_without_reports(self, assistant, store, demo_dataset):
        reply = send(assistant, store, demo_dataset, DOWNLOAD)

        assert reply.text == PromptTemplates.NO_DOWNLOADABLE_REPORT
        assert reply.actions == []

    def test_explain_when_filter_found_no_failures(self, assistant, store, demo_dataset):
        send(assistant, store, demo_dataset, "Filter invoices vendor=GoAir status=paid")

        reply = send(assistant, store, demo_dataset, EXPLAIN)

        assert reply.text == PromptTemplates.NO_FAILED_IN_RESULTS
        assert reply.actions == []

    def test_context_is_per_session(self, assistant, store, demo_dataset):
        send(assistant, store, demo_dataset, FILTER, session_id="alice")

        reply = send(assistant, store, demo_dataset, EXPLAIN, session_id="bob")

        assert reply.text == PromptTemplates.NEED_FILTER_FIRST

    def test_ticket_without_context(self, assistant, store, demo_dataset):
        reply = send(assistant, store, demo_dataset, CREATE)

        assert reply.ticket.description == "General support request"
        assert reply.ticket.priority == TicketPriority.MEDIUM
        assert reply.ticket.related_action_ids == ()

    def test_no_tickets_yet(self, assistant, store, demo_dataset):
        reply = send(assistant, store, demo_dataset, STATUS)

        assert reply.text == PromptTemplates.NO_TICKETS


class TestGeneral:
    """Test greetings and the general fallback."""

    def test_first_greeting(self, assistant, store, demo_dataset):
        reply = send(assistant, store, demo_dataset, "Hello")

        assert PromptTemplates.GREETING_FIRST_TIME in reply.text

    def test_returning_greeting(self, assistant, store, demo_dataset):
        send(assistant, store, demo_dataset, FILTER)

        reply = send(assistant, store, demo_dataset, "hi again")

        assert PromptTemplates.GREETING_RETURNING in reply.text

    def test_greeting_needs_whole_word(self, assistant, store, demo_dataset):
        reply = send(assistant, store, demo_dataset, "show me this")

        assert PromptTemplates.GREETING_CAPABILITIES not in reply.text
        assert reply.text.startswith(PromptTemplates.GENERAL_INTRO)
        assert PromptTemplates.GENERAL_CONTINUE not in reply.text

    def test_general_mentions_open_tickets(self, assistant, store, demo_dataset):
        send(assistant, store, demo_dataset, CREATE)

        reply = send(assistant, store, demo_dataset, "thanks")

        assert "1 open support ticket" in reply.text
        assert PromptTemplates.GENERAL_CONTINUE in reply.text


class TestProcessMessage:
    """Test the single-dispatch entry point."""

    def test_does_not_record_anything(self, assistant, demo_dataset):
        conversation = Conversation(session_id="s1")

        reply = assistant.process_message(FILTER, conversation, demo_dataset)

        assert len(reply.actions) == 1
        assert conversation.messages == []
        assert conversation.actions == []

    def test_trace_records_both_steps(self, assistant, demo_dataset):
        reply = assistant.process_message(FILTER, Conversation(session_id="s1"), demo_dataset)

        assert [step["name"] for step in reply.trace["steps"]] == ["resolve_intent", "dispatch"]
        assert reply.trace["session_id"] == "s1"
        assert reply.trace["steps"][1]["output"]["report_ids"] == [reply.actions[0].report_id]

    def test_model_intent_is_used(self, executor, ticket_manager, demo_dataset):
        gateway = Mock()
        gateway.extract_intent.return_value = Intent(
            type=IntentType.FILTER_INVOICES, vendor="AirIndia", status="failed"
        )
        assistant = InvoiceAssistant(
            resolver=IntentResolver(gateway=gateway),
            executor=executor,
            ticket_manager=ticket_manager,
        )

        reply = assistant.process_message(
            "anything from the air india folks that broke?",
            Conversation(session_id="s1"),
            demo_dataset,
            use_external_model=True,
        )

        assert reply.intent_source == "model"
        assert len(reply.actions[0].data) == 1

    def test_unknown_action_propagates(self, ticket_manager, store, demo_dataset):
        executor = Mock()
        executor.execute.side_effect = UnknownActionError("filter_invoices")
        assistant = InvoiceAssistant(executor=executor, ticket_manager=ticket_manager)

        with pytest.raises(UnknownActionError):
            send(assistant, store, demo_dataset, FILTER)

    def test_failed_dispatch_leaves_conversation_untouched(self, ticket_manager, store, demo_dataset):
        executor = Mock()
        executor.execute.side_effect = RuntimeError("dataset offline")
        assistant = InvoiceAssistant(executor=executor, ticket_manager=ticket_manager)

        with pytest.raises(RuntimeError):
            send(assistant, store, demo_dataset, FILTER)
        reply = send(assistant, store, demo_dataset, "Hello")

        assert PromptTemplates.GREETING_FIRST_TIME in reply.text
        messages = store.get_or_create_conversation("s1").messages
        assert [message.sender for message in messages] == ["user", "assistant"]
        assert messages[0].text == "Hello"

    def test_to_dict(self, assistant, store, demo_dataset):
        payload = send(assistant, store, demo_dataset, FILTER).to_dict()

        assert payload["intent"]["vendor"] == "IndiSky"
        assert payload["intent_source"] == "heuristic"
        assert payload["actions"][0]["record_count"] == 12
        assert payload["ticket"] is None
