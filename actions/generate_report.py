"""
generate_report action.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from models.records import Action, ActionType, InvoiceRecord, freeze_mapping

from .filtering import apply_filters, clean_filters, new_report_id, summarize

REPORT_COLUMNS = ("id", "vendor", "amount", "currency", "status", "date", "issues")


class GenerateReportAction:
    """
    Same selection as filter_invoices, packaged as an exportable report.
    """

    name = ActionType.GENERATE_REPORT

    def run(
        self,
        parameters: Mapping[str, Any],
        records: Iterable[InvoiceRecord],
        now: datetime,
    ) -> Action:
        filters = clean_filters(parameters)
        selected = apply_filters(records, filters, now)
        summary = summarize(selected)
        summary["columns"] = list(REPORT_COLUMNS)
        return Action(
            type=self.name,
            report_id=new_report_id(),
            data=tuple(selected),
            summary=freeze_mapping(summary),
            timestamp=now,
            downloadable=True,
            filters=freeze_mapping(filters),
        )
