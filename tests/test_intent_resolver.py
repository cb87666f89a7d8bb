"""
Tests for agents/intent_resolver.py - rule table, slot extraction and model fallback
"""

import pytest
from unittest.mock import Mock

from agents.intent_resolver import (
    RULES,
    IntentResolver,
    classify,
    extract_status,
    extract_timeframe,
    extract_vendor,
    heuristic_intent,
    is_download_request,
    is_failure_question,
    is_filter_request,
    is_ticket_creation,
    is_ticket_status_query,
)
from data.scenarios import DEMO_SCENARIO
from models.records import Intent, IntentType, Timeframe


class TestClassify:
    """Test the ordered rule table."""

    @pytest.mark.parametrize("step", DEMO_SCENARIO, ids=lambda step: step["expected_intent"])
    def test_demo_phrases(self, step):
        assert classify(step["input"]) == step["expected_intent"]

    def test_first_matching_rule_wins(self):
        assert classify("Filter invoices and create a ticket") == IntentType.FILTER_INVOICES

    def test_unmatched_message_is_general(self):
        assert classify("hello there") == IntentType.GENERAL
        assert classify("") == IntentType.GENERAL

    def test_download_needs_report_or_fix(self):
        assert classify("download") == IntentType.GENERAL
        assert classify("download the report") == IntentType.DOWNLOAD_REPORT

    def test_error_counts_as_failure_question(self):
        assert classify("Why is there an error?") == IntentType.EXPLAIN_FAILURES

    def test_ticket_update_query(self):
        assert classify("Any update on my ticket?") == IntentType.TICKET_STATUS

    def test_case_insensitive(self):
        assert classify("FILTER ALL INVOICES") == IntentType.FILTER_INVOICES

    def test_rule_order(self):
        assert [rule.intent_type for rule in RULES] == [
            IntentType.FILTER_INVOICES,
            IntentType.EXPLAIN_FAILURES,
            IntentType.CREATE_TICKET,
            IntentType.DOWNLOAD_REPORT,
            IntentType.TICKET_STATUS,
        ]


def test_predicates_in_isolation():
    assert is_filter_request("filter invoices")
    assert not is_filter_request("filter tickets")
    assert is_failure_question("why did it fail")
    assert not is_failure_question("it failed")
    assert is_ticket_creation("create a ticket")
    assert is_download_request("download the fixed report")
    assert is_ticket_status_query("ticket status")
    assert not is_ticket_status_query("status of invoices")


class TestSlotExtraction:
    """Test vendor, status and timeframe slots."""

    def test_demo_filter_phrase(self):
        intent = heuristic_intent("Filter invoices for last month, vendor='IndiSky', status=failed")

        assert intent == Intent(
            type=IntentType.FILTER_INVOICES,
            vendor="IndiSky",
            status="failed",
            timeframe=Timeframe.LAST_MONTH,
        )

    def test_known_vendor_returns_canonical_spelling(self):
        assert extract_vendor("show indisky stuff") == "IndiSky"

    def test_quoted_vendor_pattern(self):
        assert extract_vendor("filter invoices vendor='Acme Air'") == "Acme Air"
        assert extract_vendor('filter invoices vendor="Acme Air"') == "Acme Air"

    def test_bare_vendor_pattern(self):
        assert extract_vendor("filter invoices vendor=Acme") == "Acme"

    def test_vendor_absent(self):
        assert extract_vendor("filter invoices") is None

    def test_status_patterns(self):
        assert extract_status("status=failed") == "failed"
        assert extract_status("filter invoices status='on hold'") == "on hold"
        assert extract_status("filter invoices") is None

    def test_timeframes(self):
        assert extract_timeframe("last month please") == Timeframe.LAST_MONTH
        assert extract_timeframe("this month please") == Timeframe.THIS_MONTH
        assert extract_timeframe("over the last week") == Timeframe.LAST_WEEK
        assert extract_timeframe("everything") == Timeframe.ALL

    def test_non_filter_intents_carry_no_slots(self):
        intent = heuristic_intent("Why did IndiSky invoices fail last month?")

        assert intent == Intent(type=IntentType.EXPLAIN_FAILURES)


class TestIntentResolver:
    """Test the model-first, heuristic-fallback resolver."""

    def test_heuristic_when_model_not_requested(self):
        gateway = Mock()
        resolver = IntentResolver(gateway=gateway)

        resolution = resolver.resolve_with_source("Why did these fail?")

        assert resolution.source == "heuristic"
        assert resolution.intent.type == IntentType.EXPLAIN_FAILURES
        gateway.extract_intent.assert_not_called()

    def test_model_result_used_when_available(self):
        gateway = Mock()
        gateway.extract_intent.return_value = Intent(type=IntentType.CREATE_TICKET)
        resolver = IntentResolver(gateway=gateway)

        resolution = resolver.resolve_with_source("please open something for me", use_external_model=True)

        assert resolution.source == "model"
        assert resolution.intent.type == IntentType.CREATE_TICKET

    def test_falls_back_when_model_returns_none(self):
        gateway = Mock()
        gateway.extract_intent.return_value = None
        resolver = IntentResolver(gateway=gateway)

        resolution = resolver.resolve_with_source("Download the fixed report", use_external_model=True)

        assert resolution.source == "heuristic"
        assert resolution.intent.type == IntentType.DOWNLOAD_REPORT

    def test_no_gateway_means_heuristic(self):
        resolver = IntentResolver()

        assert resolver.resolve("Create a ticket", use_external_model=True).type == IntentType.CREATE_TICKET


class TestIntentFromDict:
    """Test normalization of untrusted model output."""

    def test_normalizes_timeframe(self):
        intent = Intent.from_dict({"type": "filter_invoices", "timeframe": "Last Month"})

        assert intent.timeframe == Timeframe.LAST_MONTH

    def test_unknown_timeframe_becomes_all(self):
        intent = Intent.from_dict({"type": "filter_invoices", "timeframe": "last year"})

        assert intent.timeframe == Timeframe.ALL

    def test_blank_slots_dropped(self):
        intent = Intent.from_dict({"type": "filter_invoices", "vendor": "  ", "status": 3})

        assert intent.vendor is None
        assert intent.status is None

    @pytest.mark.parametrize("payload", [{"type": "refund"}, {"vendor": "IndiSky"}, ["general"], None])
    def test_rejects_unknown_type(self, payload):
        assert Intent.from_dict(payload) is None
