"""
analyze_failures action.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping

from models.records import GSTIN_ISSUE, Action, ActionType, InvoiceRecord, freeze_mapping

from .filtering import new_report_id

GSTIN_RECOMMENDATION = "Update vendor records to include GSTIN information"


class AnalyzeFailuresAction:
    """
    Groups failed invoices by vendor, issue and calendar month.

    Only records with status "failed" are considered. A fixed
    recommendation is added when any record is missing GSTIN information.
    """

    name = ActionType.ANALYZE_FAILURES

    @staticmethod
    def _count(counts: Dict[str, int], key: str) -> None:
        counts[key] = counts.get(key, 0) + 1

    def run(
        self,
        parameters: Mapping[str, Any],
        records: Iterable[InvoiceRecord],
        now: datetime,
    ) -> Action:
        failed = [record for record in records if record.status.lower() == "failed"]

        by_vendor: Dict[str, int] = {}
        by_issue: Dict[str, int] = {}
        by_month: Dict[str, int] = {}
        for record in failed:
            self._count(by_vendor, record.vendor)
            for issue in record.issues:
                self._count(by_issue, issue)
            self._count(by_month, record.date.strftime("%Y-%m"))

        recommendations: List[str] = []
        if by_issue.get(GSTIN_ISSUE, 0) > 0:
            recommendations.append(GSTIN_RECOMMENDATION)

        summary = {
            "count": len(failed),
            "total_failed": len(failed),
            "by_vendor": by_vendor,
            "by_issue": by_issue,
            "by_month": by_month,
            "issues": list(by_issue),
            "recommendations": recommendations,
        }

        filters = None
        if parameters.get("source_report_id"):
            filters = freeze_mapping({"source_report_id": parameters["source_report_id"]})

        return Action(
            type=self.name,
            report_id=new_report_id(),
            data=tuple(failed),
            summary=freeze_mapping(summary),
            timestamp=now,
            downloadable=True,
            filters=filters,
        )
