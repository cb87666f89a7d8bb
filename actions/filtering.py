"""
Record filters and summaries shared by the action handlers.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from models.records import InvoiceRecord, Timeframe


def new_report_id() -> str:
    return str(uuid.uuid4())


def timeframe_bounds(timeframe: Optional[str], today: date) -> Optional[Tuple[date, date]]:
    """
    Inclusive date bounds for a timeframe, or None for no filtering.

    - last_month: first..last day of the previous calendar month
    - this_month: first day of the current month..today
    - last_week: the seven calendar days ending today
    """
    if timeframe == Timeframe.LAST_MONTH:
        end = today.replace(day=1) - timedelta(days=1)
        return end.replace(day=1), end
    if timeframe == Timeframe.THIS_MONTH:
        return today.replace(day=1), today
    if timeframe == Timeframe.LAST_WEEK:
        return today - timedelta(days=6), today
    return None


def apply_filters(
    records: Iterable[InvoiceRecord],
    filters: Mapping[str, Any],
    now: datetime,
) -> List[InvoiceRecord]:
    """
    Vendor equality, then status equality, then timeframe.

    Vendor and status comparisons are exact and case-insensitive. Dataset
    order is preserved.
    """
    selected = list(records)

    vendor = filters.get("vendor")
    if vendor:
        selected = [record for record in selected if record.vendor.lower() == vendor.lower()]

    status = filters.get("status")
    if status:
        selected = [record for record in selected if record.status.lower() == status.lower()]

    bounds = timeframe_bounds(filters.get("timeframe"), now.date())
    if bounds is not None:
        start, end = bounds
        selected = [record for record in selected if start <= record.date <= end]

    return selected


def summarize(records: Sequence[InvoiceRecord]) -> Dict[str, Any]:
    """
    Count, total, average, distinct vendors, per-status counts, distinct
    issues and per-issue record counts.

    Every collection keeps first-seen order so identical inputs give
    identical summaries.
    """
    total_amount = 0.0
    vendors: Dict[str, None] = {}
    statuses: Dict[str, int] = {}
    issue_counts: Dict[str, int] = {}

    for record in records:
        total_amount += record.amount
        vendors.setdefault(record.vendor, None)
        statuses[record.status] = statuses.get(record.status, 0) + 1
        for issue in record.issues:
            issue_counts[issue] = issue_counts.get(issue, 0) + 1

    count = len(records)
    return {
        "count": count,
        "total_amount": total_amount,
        "avg_amount": total_amount / count if count else 0.0,
        "vendors": list(vendors),
        "statuses": statuses,
        "issues": list(issue_counts),
        "issue_counts": issue_counts,
    }


def clean_filters(parameters: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "vendor": parameters.get("vendor") or None,
        "status": parameters.get("status") or None,
        "timeframe": parameters.get("timeframe") or Timeframe.ALL,
    }
