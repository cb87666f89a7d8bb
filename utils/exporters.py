"""
Export helpers for reports and run transcripts.

This module provides:
- CSV rendering of the records behind a downloadable action
- Report lookup by reportId through the conversation store
- JSON export of a CLI run transcript with an evaluation summary

Key responsibilities:
- Keep the CSV layout stable (record fields in order, issues last)
- Aggregate evaluator results into pass/fail counts and per-metric rates
"""

from __future__ import annotations

import csv
import io
import json
import time
import uuid
from typing import Any, Dict, List, Sequence

from actions.generate_report import REPORT_COLUMNS
from conversation.store import ConversationStore
from models.records import InvoiceRecord
from utils.errors import ReportNotFoundError

NO_DATA = "No data available"
ISSUE_SEPARATOR = "; "


def export_report_csv(records: Sequence[InvoiceRecord]) -> str:
    """
    Render invoice records as CSV text.

    Args:
        records: Records of a downloadable action

    Returns:
        str: Header row plus one row per record. Issues are joined with
            "; ". Values holding commas or quotes are quoted, inner quotes
            doubled. Empty input gives "No data available".

    Example:
        >>> text = export_report_csv(action.data)
        >>> text.splitlines()[0]
        'id,vendor,amount,currency,status,date,issues'
    """
    if not records:
        return NO_DATA

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(REPORT_COLUMNS)
    for record in records:
        row = record.to_dict()
        row["issues"] = ISSUE_SEPARATOR.join(record.issues)
        writer.writerow([row[column] for column in REPORT_COLUMNS])
    return buffer.getvalue().rstrip("\n")


def render_report(store: ConversationStore, report_id: str) -> str:
    """
    CSV for the action with the given reportId.

    Raises:
        ReportNotFoundError: When no conversation holds that reportId
    """
    action = store.find_action(report_id)
    if action is None:
        raise ReportNotFoundError(report_id)
    return export_report_csv(action.data)


def _collect_metrics(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Pass rate per evaluator across the run, plus the weakest one.

    Args:
        results: Transcript entries, each with an "evaluations" dict keyed
            by evaluator name

    Returns:
        dict: evaluator name -> pass rate (0-1), and "bottleneck" naming the
            evaluator with the lowest rate (composite excluded)
    """
    outcomes: Dict[str, List[bool]] = {}
    for result in results:
        for name, evaluation in result.get("evaluations", {}).items():
            if name == "composite":
                continue
            outcomes.setdefault(name, []).append(bool(evaluation.get("passed")))

    summary: Dict[str, Any] = {
        name: round(sum(flags) / len(flags), 3) for name, flags in outcomes.items() if flags
    }
    if summary:
        summary["bottleneck"] = min(summary, key=summary.get)  # type: ignore
    return summary


def export_to_json(
    transcript: List[Dict[str, Any]],
    filename: str = "run.json",
) -> Dict[str, Any]:
    """
    Write a CLI run transcript to a JSON file.

    Args:
        transcript: One entry per scenario step (input, response, intent,
            actions, ticket, evaluations)
        filename: Output path

    Returns:
        dict: The payload written to disk

    File Format:
        {
          "project": "invoice_assistant",
          "run_id": "...",
          "session_id": "demo",
          "dataset": "demo",
          "timestamp": "2025-01-15T10:30:00Z",
          "results": [...],
          "summary": {"steps": 5, "passed": 5, "failed": 0, "metrics": {...}}
        }
    """
    total = len(transcript)
    passed = sum(
        1
        for result in transcript
        if result.get("evaluations", {}).get("composite", {}).get("passed")
    )

    first = transcript[0] if transcript else {}

    payload = {
        "project": "invoice_assistant",
        "run_id": first.get("run_id") or str(uuid.uuid4()),
        "session_id": first.get("session_id"),
        "dataset": first.get("dataset", "unknown"),
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "results": transcript,
        "summary": {
            "steps": total,
            "passed": passed,
            "failed": total - passed,
            "metrics": _collect_metrics(transcript),
        },
    }

    with open(filename, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, default=str)

    return payload
