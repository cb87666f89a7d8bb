"""
Invoice support assistant: one request/response cycle per user message.

This module implements the chat pipeline that turns a free-text message
into a response:
    1. Resolve the message into an Intent (heuristic rules, optionally
       preceded by the external model)
    2. Dispatch the intent to its handler, which may run an action over
       the invoice dataset, look up earlier actions in the conversation,
       or create a support ticket
    3. Render the response text and return it with any new Action and
       Ticket

Referential intents resolve against the conversation:
    - explain_failures needs an earlier filter_invoices action
    - download_report needs an earlier downloadable action
Without one, the assistant answers with a clarifying message and runs
nothing.

Architecture:
    InvoiceAssistant holds collaborators only (resolver, executor, ticket
    manager, prompt builder). Everything session-specific arrives as
    arguments: the Conversation, the dataset, the session's tickets and
    the store. ``process_message`` dispatches without writing anything;
    ``handle_message`` is the full cycle that appends to the conversation
    and persists through the store.

Error handling:
    Unknown actions, store failures and any other unexpected exception
    propagate to the caller. Formatting an apology is the caller's job.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from actions import ActionExecutor
from conversation.context import (
    append_action,
    append_message,
    last_action_of_type,
    last_downloadable_action,
    recent_actions,
)
from conversation.store import InMemoryStore, TicketStore
from models.records import (
    Action,
    ActionType,
    Conversation,
    Intent,
    IntentType,
    InvoiceRecord,
    Sender,
    utcnow,
)
from models.ticket import Ticket, TicketPriority, TicketStatus
from tracing.tracer import Tracer
from utils.prompts import PromptBuilder, get_prompt_builder

from .intent_resolver import IntentResolver
from .ticket_manager import TicketManager

GREETING_PATTERN = re.compile(r"\b(hello|hi|hey)\b", re.IGNORECASE)

TICKET_CONTEXT_WINDOW = 3
GENERAL_TICKET_DESCRIPTION = "General support request"


@dataclass
class ChatResponse:
    """
    Result of one message.

    Attributes:
        text: Rendered answer
        actions: Zero or one newly created Action
        ticket: Newly created Ticket, if any
        intent: The resolved intent
        intent_source: "model" or "heuristic"
        trace: Per-step trace of the pipeline
    """

    text: str
    actions: List[Action] = field(default_factory=list)
    ticket: Optional[Ticket] = None
    intent: Optional[Intent] = None
    intent_source: str = "heuristic"
    trace: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.text,
            "actions": [action.to_dict() for action in self.actions],
            "ticket": self.ticket.to_dict() if self.ticket else None,
            "intent": self.intent.to_dict() if self.intent else None,
            "intent_source": self.intent_source,
        }


@dataclass
class _Turn:
    message: str
    intent: Intent
    conversation: Conversation
    dataset: Iterable[InvoiceRecord]
    tickets: Sequence[Ticket]
    ticket_store: Optional[TicketStore]


class InvoiceAssistant:
    """
    Chat pipeline for the invoice support assistant.

    Attributes:
        resolver: Turns messages into intents
        executor: Runs data actions over the invoice dataset
        ticket_manager: Creates support tickets
        prompt_builder: Renders every response sentence
        logger: Logger for debugging and monitoring

    Example:
        >>> assistant = InvoiceAssistant()
        >>> store = InMemoryStore()
        >>> reply = assistant.handle_message(
        ...     "Filter invoices for last month, vendor='IndiSky', status=failed",
        ...     session_id="demo",
        ...     store=store,
        ...     dataset=load_dataset("demo"),
        ... )
        >>> reply.actions[0].report_id  # referenced later by downloads
    """

    def __init__(
        self,
        resolver: Optional[IntentResolver] = None,
        executor: Optional[ActionExecutor] = None,
        ticket_manager: Optional[TicketManager] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        tracer_factory: Callable[[], Tracer] = Tracer,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.resolver = resolver or IntentResolver(logger=self.logger)
        self.executor = executor or ActionExecutor(logger=self.logger)
        self.ticket_manager = ticket_manager or TicketManager(logger=self.logger)
        self.prompt_builder = prompt_builder or get_prompt_builder()
        self.tracer_factory = tracer_factory

        self._handlers: Dict[str, Callable[[_Turn], ChatResponse]] = {
            IntentType.FILTER_INVOICES: self._handle_filter_invoices,
            IntentType.EXPLAIN_FAILURES: self._handle_explain_failures,
            IntentType.CREATE_TICKET: self._handle_create_ticket,
            IntentType.DOWNLOAD_REPORT: self._handle_download_report,
            IntentType.TICKET_STATUS: self._handle_ticket_status,
            IntentType.GENERAL: self._handle_general,
        }

    # ========================================================================
    # INTENT HANDLERS
    # ========================================================================

    def _handle_filter_invoices(self, turn: _Turn) -> ChatResponse:
        parameters = {
            "vendor": turn.intent.vendor,
            "status": turn.intent.status,
            "timeframe": turn.intent.timeframe,
        }
        action = self.executor.execute(ActionType.FILTER_INVOICES, parameters, turn.dataset)
        return ChatResponse(
            text=self.prompt_builder.render_filter_summary(action),
            actions=[action],
        )

    def _handle_explain_failures(self, turn: _Turn) -> ChatResponse:
        templates = self.prompt_builder.templates

        source = last_action_of_type(turn.conversation, ActionType.FILTER_INVOICES)
        if source is None:
            return ChatResponse(text=templates.NEED_FILTER_FIRST)

        if not any(record.status.lower() == "failed" for record in source.data):
            return ChatResponse(text=templates.NO_FAILED_IN_RESULTS)

        action = self.executor.execute(
            ActionType.ANALYZE_FAILURES,
            {"source_report_id": source.report_id},
            source.data,
        )
        return ChatResponse(
            text=self.prompt_builder.render_failure_analysis(action),
            actions=[action],
        )

    def _handle_create_ticket(self, turn: _Turn) -> ChatResponse:
        recent = recent_actions(turn.conversation, TICKET_CONTEXT_WINDOW)

        # Seed from the most recent action that summarized issues
        seed = next((action for action in recent if action.issues), None)
        if seed is not None:
            description = self.prompt_builder.describe_issues(seed.issues)
            priority = TicketPriority.HIGH
        else:
            description = GENERAL_TICKET_DESCRIPTION
            priority = TicketPriority.MEDIUM

        ticket = self.ticket_manager.create(
            description=description,
            priority=priority,
            session_id=turn.conversation.session_id,
            related_action_ids=[action.report_id for action in reversed(recent)],
            store=turn.ticket_store,
        )
        return ChatResponse(
            text=self.prompt_builder.render_ticket_created(ticket),
            ticket=ticket,
        )

    def _handle_download_report(self, turn: _Turn) -> ChatResponse:
        action = last_downloadable_action(turn.conversation)
        if action is None:
            return ChatResponse(text=self.prompt_builder.templates.NO_DOWNLOADABLE_REPORT)
        return ChatResponse(text=self.prompt_builder.render_report_ready(action))

    def _handle_ticket_status(self, turn: _Turn) -> ChatResponse:
        return ChatResponse(text=self.prompt_builder.render_ticket_status(turn.tickets))

    def _handle_general(self, turn: _Turn) -> ChatResponse:
        if GREETING_PATTERN.search(turn.message):
            returning = len(turn.conversation.messages) >= 2
            return ChatResponse(text=self.prompt_builder.render_greeting(returning))

        open_count = sum(1 for ticket in turn.tickets if ticket.status == TicketStatus.OPEN)
        return ChatResponse(
            text=self.prompt_builder.render_general(
                has_history=len(turn.conversation.messages) > 0,
                open_tickets=open_count,
            )
        )

    # ========================================================================
    # PIPELINE
    # ========================================================================

    def process_message(
        self,
        message: str,
        conversation: Conversation,
        dataset: Iterable[InvoiceRecord],
        tickets: Sequence[Ticket] = (),
        use_external_model: bool = False,
        ticket_store: Optional[TicketStore] = None,
    ) -> ChatResponse:
        """
        Resolve and dispatch one message without recording it.

        Args:
            message: Raw user message
            conversation: The session's conversation (read, not written)
            dataset: Invoice records for data actions
            tickets: The session's tickets (for status and greetings)
            use_external_model: Ask the model gateway before the rules
            ticket_store: Optional store used to keep ticket ids unique

        Returns:
            ChatResponse: Text plus any new Action and Ticket
        """
        tracer = self.tracer_factory()
        tracer.start_trace(conversation.session_id, message, use_external_model)

        resolution = self.resolver.resolve_with_source(message, use_external_model)
        intent = resolution.intent
        tracer.record_step(
            "resolve_intent",
            {"message": message},
            {"intent": intent.to_dict(), "source": resolution.source},
        )

        handler = self._handlers.get(intent.type, self._handle_general)
        turn = _Turn(
            message=message,
            intent=intent,
            conversation=conversation,
            dataset=dataset,
            tickets=tickets,
            ticket_store=ticket_store,
        )
        response = handler(turn)
        response.intent = intent
        response.intent_source = resolution.source

        tracer.record_step(
            "dispatch",
            {"intent_type": intent.type},
            {
                "report_ids": [action.report_id for action in response.actions],
                "ticket_id": response.ticket.id if response.ticket else None,
            },
        )
        response.trace = tracer.end_trace()

        self.logger.debug(
            f"Dispatched {intent.type}",
            extra={
                "session_id": conversation.session_id,
                "source": resolution.source,
                "action_count": len(response.actions),
            },
        )
        return response

    def handle_message(
        self,
        message: str,
        session_id: str,
        store: InMemoryStore,
        dataset: Iterable[InvoiceRecord],
        use_external_model: bool = False,
    ) -> ChatResponse:
        """
        Full request/response cycle for one message.

        Dispatches against the prior turns, then appends the user message,
        the assistant message and any new action, persists a new ticket and
        saves the conversation. Nothing is recorded when dispatch raises.

        Args:
            message: Raw user message
            session_id: Session key chosen by the caller
            store: Conversation and ticket store
            dataset: Invoice records for data actions
            use_external_model: Ask the model gateway before the rules

        Returns:
            ChatResponse: The dispatched response
        """
        conversation = store.get_or_create_conversation(session_id)
        received_at = utcnow()

        response = self.process_message(
            message,
            conversation,
            dataset,
            tickets=store.list_tickets(session_id),
            use_external_model=use_external_model,
            ticket_store=store,
        )

        append_message(conversation, message, Sender.USER, timestamp=received_at)
        append_message(conversation, response.text, Sender.ASSISTANT)
        for action in response.actions:
            append_action(conversation, action)
        if response.ticket is not None:
            store.put_ticket(response.ticket)
        store.save_conversation(conversation)

        return response
