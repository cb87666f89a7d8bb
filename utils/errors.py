"""
Exception types raised by the assistant core.

Only UnknownActionError, TicketNotFoundError, InvalidTicketTransitionError,
TicketIdsExhaustedError and ReportNotFoundError reach callers.
ModelUnavailableError is raised and caught inside the model gateway, which
turns it into a ``None`` result.
"""

from __future__ import annotations


class AssistantError(Exception):
    """Base class for assistant errors."""


class UnknownActionError(AssistantError, ValueError):
    def __init__(self, action_type: str):
        super().__init__(f"Unknown action type: {action_type}")
        self.action_type = action_type


class TicketNotFoundError(AssistantError, KeyError):
    def __init__(self, ticket_id: str):
        super().__init__(ticket_id)
        self.ticket_id = ticket_id

    def __str__(self) -> str:
        return f"Ticket not found: {self.ticket_id}"


class InvalidTicketTransitionError(AssistantError):
    def __init__(self, ticket_id: str, status: str, target: str):
        super().__init__(f"Ticket {ticket_id} is {status}; cannot move to {target}")
        self.ticket_id = ticket_id
        self.status = status
        self.target = target


class TicketIdsExhaustedError(AssistantError):
    def __init__(self, day: str):
        super().__init__(f"No ticket ids left for {day}")
        self.day = day


class ModelUnavailableError(AssistantError):
    """
    The external model could not produce a usable intent.

    Attributes:
        reason: Short machine-readable reason ("rate_limited", "timeout",
            "transport_error", "http_error", "malformed_output", ...)
    """

    def __init__(self, reason: str, detail: str = ""):
        super().__init__(f"{reason}: {detail}" if detail else reason)
        self.reason = reason
        self.detail = detail


class ReportNotFoundError(AssistantError, KeyError):
    def __init__(self, report_id: str):
        super().__init__(report_id)
        self.report_id = report_id

    def __str__(self) -> str:
        return f"Report not found: {self.report_id}"
