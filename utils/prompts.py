"""
Centralized prompt and response templates for the invoice assistant.

This module contains the intent-extraction prompt sent to the external
model and every user-facing sentence the assistant renders. Keeping them in
one place makes it easy to:
- Version the extraction prompt
- Keep the wording of responses consistent across handlers
- Check that rendered responses do not trip the intent keyword rules
  (a rendered answer fed back to the resolver must not turn into a
  different action)

Key responsibilities:
- Build the intent-extraction prompt
- Render filter summaries, failure breakdowns, ticket and report messages
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence

from models.records import GSTIN_ISSUE, Action, Timeframe
from models.ticket import Ticket

DISPLAY_DATE_FORMAT = "%b %d, %Y"
DISPLAY_DATETIME_FORMAT = "%b %d, %Y %H:%M"


class PromptTemplates:
    """
    Collection of prompt and response templates.

    Templates are grouped by purpose. Response templates deliberately avoid
    phrasing such as "created" next to "ticket" in status listings, or
    "filter" next to "invoice" in summaries, so that a rendered answer never
    reads like a new command.
    """

    # ========================================================================
    # INTENT EXTRACTION PROMPTS
    # ========================================================================

    INTENT_SYSTEM = "You extract structured intents for an invoice assistant."

    INTENT_EXTRACTION_V1 = (
        "You are an intent extractor for an enterprise invoice assistant.\n"
        "Return ONLY a compact JSON object with fields: {{type, vendor, status, timeframe}}.\n"
        "Types: filter_invoices | explain_failures | create_ticket | download_report | "
        "ticket_status | general.\n"
        "Timeframes: last_month | this_month | last_week | all.\n"
        'Message: "{message}"'
    )

    # ========================================================================
    # CLARIFYING MESSAGES (referential intents without context)
    # ========================================================================

    NEED_FILTER_FIRST = (
        "I need to filter invoices first to analyze failures. "
        "Please ask me to filter invoices with status=failed."
    )

    NO_DOWNLOADABLE_REPORT = (
        "No downloadable reports are currently available. "
        "Please filter some invoices first to generate a report."
    )

    NO_FAILED_IN_RESULTS = "None of the invoices in your last search have a failed status."

    # ========================================================================
    # RESPONSE TEMPLATES
    # ========================================================================

    COMPLIANCE_REMARK = (
        "The most common issue is missing GSTIN information, which is required "
        "for compliance with Indian tax regulations."
    )

    NO_SPECIFIC_ISSUES = (
        "No specific issues were identified in the failed invoices. "
        "This might require manual investigation."
    )

    TICKET_CREATED = (
        "I've created support ticket {ticket_id} for you. The ticket has been assigned "
        'priority "{priority}" and our support team will investigate the issue.\n\n'
        "I'll notify you as soon as there are any updates. "
        "You can also check the ticket status in the sidebar."
    )

    REPORT_READY = (
        "The latest report ({label}) is ready for download. You can find the download "
        "button in the Recent Actions panel.\n\n"
        "Report ID: {report_id}\n"
        "Generated: {generated}"
    )

    NO_TICKETS = "You don't have any support tickets yet."

    GREETING_CAPABILITIES = (
        "Hello! I'm your invoice support assistant. I can help you with:\n\n"
        "• Filtering and analyzing invoices\n"
        "• Creating and tracking support tickets\n"
        "• Downloading reports\n"
        "• Explaining issues and providing insights\n\n"
    )

    GREETING_RETURNING = "I can see we've been chatting before. Feel free to continue where we left off!"

    GREETING_FIRST_TIME = (
        "Try asking me to 'Filter invoices for last month, vendor=IndiSky, status=failed' "
        "to get started."
    )

    GENERAL_INTRO = "I'm here to help you with invoice management and support tickets. "

    GENERAL_CONTINUE = (
        "Based on our conversation, I can help you continue with your previous tasks "
        "or start something new. "
    )

    GENERAL_CLOSING = "\n\nWhat would you like to do next?"

    # Human-readable labels for action types in download answers
    ACTION_LABELS = {
        "filter_invoices": "filtered results",
        "analyze_failures": "failure analysis",
        "generate_report": "generated report",
    }

    TIMEFRAME_PHRASES = {
        Timeframe.LAST_MONTH: " from last month",
        Timeframe.THIS_MONTH: " from this month",
        Timeframe.LAST_WEEK: " from the last week",
    }


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _money(amount: float) -> str:
    return f"₹{amount:,.0f}"


class PromptBuilder:
    """
    Builder for the extraction prompt and every rendered response.

    Attributes:
        version: Prompt version to use (only "v1" exists today)
        templates: PromptTemplates instance with template definitions
    """

    def __init__(self, version: str = "v1"):
        self.version = version
        self.templates = PromptTemplates()

    def build_intent_prompt(self, message: str) -> str:
        """
        Build the intent-extraction prompt for the external model.

        Args:
            message: The raw user message

        Returns:
            str: Prompt text asking for a single JSON object
        """
        # Double quotes inside the message would end the quoted block early
        return self.templates.INTENT_EXTRACTION_V1.format(message=message.replace('"', "'"))

    def render_filter_summary(self, action: Action) -> str:
        """
        Render the answer for a filter_invoices action.

        Args:
            action: The filter action just executed

        Returns:
            str: Count line, totals and one bullet per distinct issue with
                the number of records carrying it
        """
        summary = action.summary
        filters = action.filters or {}

        text = f"Found {_plural(len(action.data), 'invoice')}"
        if filters.get("vendor"):
            text += f" from {filters['vendor']}"
        if filters.get("status"):
            text += f' with status "{filters["status"]}"'
        text += self.templates.TIMEFRAME_PHRASES.get(filters.get("timeframe"), "")

        text += ".\n\nSummary:\n"
        text += f"• Total Amount: {_money(summary['total_amount'])}\n"
        text += f"• Average: {_money(round(summary['avg_amount']))}\n"

        issue_counts: Mapping[str, int] = summary.get("issue_counts", {})
        if issue_counts:
            text += "\n⚠️ Issues found:\n"
            for issue, count in issue_counts.items():
                text += f"• {issue} ({_plural(count, 'invoice')})\n"

        return text

    def render_failure_analysis(self, action: Action) -> str:
        """
        Render the breakdown for an analyze_failures action.

        The compliance remark is added when missing GSTIN information is the
        most frequent issue.
        """
        summary = action.summary
        by_issue: Mapping[str, int] = summary.get("by_issue", {})

        text = f"Analysis of {_plural(summary['total_failed'], 'failed invoice')}:\n\n"

        if not by_issue:
            return text + self.templates.NO_SPECIFIC_ISSUES

        text += "Issues identified:\n"
        for issue, count in by_issue.items():
            text += f"• {issue}: {_plural(count, 'invoice')}\n"

        by_vendor: Mapping[str, int] = summary.get("by_vendor", {})
        if len(by_vendor) > 1:
            text += "\nBy vendor:\n"
            for vendor, count in by_vendor.items():
                text += f"• {vendor}: {count}\n"

        if gstin_dominates(by_issue):
            text += "\n" + self.templates.COMPLIANCE_REMARK

        recommendations: Sequence[str] = summary.get("recommendations", ())
        if recommendations:
            text += "\n\nRecommended next steps:\n"
            text += "".join(f"• {item}\n" for item in recommendations)

        return text.rstrip("\n")

    def render_ticket_created(self, ticket: Ticket) -> str:
        return self.templates.TICKET_CREATED.format(
            ticket_id=ticket.id,
            priority=ticket.priority,
        )

    def render_report_ready(self, action: Action) -> str:
        label = self.templates.ACTION_LABELS.get(action.type, "report")
        return self.templates.REPORT_READY.format(
            label=label,
            report_id=action.report_id,
            generated=action.timestamp.strftime(DISPLAY_DATETIME_FORMAT),
        )

    def render_ticket_status(self, tickets: Sequence[Ticket]) -> str:
        """
        Render one block per ticket: id, status, opening date, latest update.
        """
        if not tickets:
            return self.templates.NO_TICKETS

        lines: List[str] = [
            f"Here is the status of your {_plural(len(tickets), 'support ticket')}:",
            "",
        ]
        for ticket in tickets:
            lines.append(f"• {ticket.id}: {ticket.status}")
            lines.append(f"  Opened: {ticket.created.strftime(DISPLAY_DATE_FORMAT)}")
            if ticket.last_update is not None:
                lines.append(f"  Last update: {ticket.last_update.message}")
            lines.append("")
        return "\n".join(lines)

    def render_greeting(self, returning: bool) -> str:
        text = self.templates.GREETING_CAPABILITIES
        text += self.templates.GREETING_RETURNING if returning else self.templates.GREETING_FIRST_TIME
        return text

    def render_general(self, has_history: bool, open_tickets: int) -> str:
        text = self.templates.GENERAL_INTRO
        if has_history:
            text += self.templates.GENERAL_CONTINUE
        if open_tickets > 0:
            text += f"You have {_plural(open_tickets, 'open support ticket')} that I'm tracking. "
        return text + self.templates.GENERAL_CLOSING

    @staticmethod
    def describe_issues(issues: Iterable[str]) -> str:
        """Ticket description seeded from summarized issues."""
        return f"Issue with invoices: {', '.join(issues)}"


def gstin_dominates(by_issue: Mapping[str, int]) -> bool:
    """True when missing GSTIN is (one of) the most frequent issues."""
    count = by_issue.get(GSTIN_ISSUE, 0)
    return count > 0 and count >= max(by_issue.values())


def get_prompt_builder(version: str = "v1") -> PromptBuilder:
    """
    Factory function to create a PromptBuilder instance.

    Args:
        version: Prompt version to use

    Returns:
        PromptBuilder: Configured prompt builder instance
    """
    return PromptBuilder(version=version)
