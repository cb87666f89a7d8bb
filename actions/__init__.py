"""
Action execution engine.

Pure functions of (action type, parameters, dataset): no conversation
awareness. Each supported action type is one handler class with a ``name``
and a ``run`` method; ActionExecutor dispatches by name.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from models.records import Action, InvoiceRecord, utcnow
from utils.errors import UnknownActionError

from .analyze_failures import AnalyzeFailuresAction
from .filter_invoices import FilterInvoicesAction
from .generate_report import GenerateReportAction


class ActionExecutor:
    """
    Dispatches an action type to its handler.

    Attributes:
        handlers: Mapping of action type to handler instance
        clock: Returns the current time; timeframe filters and timestamps use it
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        logger: Optional[logging.Logger] = None,
    ):
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self.handlers: Dict[str, Any] = {
            handler.name: handler
            for handler in (FilterInvoicesAction(), AnalyzeFailuresAction(), GenerateReportAction())
        }

    def execute(
        self,
        action_type: str,
        parameters: Optional[Mapping[str, Any]],
        dataset: Iterable[InvoiceRecord],
    ) -> Action:
        """
        Run one action.

        Args:
            action_type: "filter_invoices", "analyze_failures" or "generate_report"
            parameters: Action parameters (vendor/status/timeframe for filters)
            dataset: Invoice records to operate on

        Returns:
            Action: A new immutable action with a fresh report_id

        Raises:
            UnknownActionError: For any other action type
        """
        handler = self.handlers.get(action_type)
        if handler is None:
            raise UnknownActionError(action_type)

        action = handler.run(parameters or {}, dataset, self.clock())
        self.logger.debug(
            f"Executed {action_type}",
            extra={"report_id": action.report_id, "record_count": len(action.data)},
        )
        return action


__all__ = [
    "ActionExecutor",
    "AnalyzeFailuresAction",
    "FilterInvoicesAction",
    "GenerateReportAction",
]
