"""
filter_invoices action.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from models.records import Action, ActionType, InvoiceRecord, freeze_mapping

from .filtering import apply_filters, clean_filters, new_report_id, summarize


class FilterInvoicesAction:
    """
    Applies vendor, status and timeframe filters and summarizes the result.
    """

    name = ActionType.FILTER_INVOICES

    def run(
        self,
        parameters: Mapping[str, Any],
        records: Iterable[InvoiceRecord],
        now: datetime,
    ) -> Action:
        filters = clean_filters(parameters)
        selected = apply_filters(records, filters, now)
        return Action(
            type=self.name,
            report_id=new_report_id(),
            data=tuple(selected),
            summary=freeze_mapping(summarize(selected)),
            timestamp=now,
            downloadable=True,
            filters=freeze_mapping(filters),
        )
