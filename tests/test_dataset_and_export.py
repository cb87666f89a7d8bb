import csv
import io
import json
from datetime import timedelta

import pytest

from actions.generate_report import REPORT_COLUMNS
from conversation.context import append_action
from data.datasets import load_dataset
from data.invoices import generate_invoices
from models.records import GSTIN_ISSUE, ActionType, InvoiceRecord
from tracing.tracer import Tracer
from utils.errors import ReportNotFoundError
from utils.exporters import export_report_csv, export_to_json, render_report

from conftest import TODAY


def test_demo_dataset_shape():
    ds = load_dataset("demo", today=TODAY)
    indisky_failed_last_month = [
        r
        for r in ds
        if r.vendor == "IndiSky" and r.status == "failed" and r.date.month == 2 and r.date.year == 2025
    ]
    assert len(indisky_failed_last_month) == 12
    assert sum(1 for r in indisky_failed_last_month if GSTIN_ISSUE in r.issues) == 7
    assert len({r.id for r in ds}) == len(ds)


def test_sample_dataset_is_reproducible():
    first = load_dataset("sample", seed=7, today=TODAY)
    second = load_dataset("sample", seed=7, today=TODAY)
    assert first == second
    assert len(first) == 500


def test_sample_dataset_ranges():
    ds = generate_invoices(count=200, seed=3, today=TODAY)
    assert all(5000 <= r.amount <= 104999 for r in ds)
    assert all(TODAY - timedelta(days=89) <= r.date <= TODAY for r in ds)
    assert all(r.currency == "INR" for r in ds)
    with_issues = [r for r in ds if r.issues]
    assert all(r.vendor == "IndiSky" and r.status == "failed" for r in with_issues)


def test_unknown_dataset():
    with pytest.raises(ValueError):
        load_dataset("mock")


def test_csv_layout():
    records = [
        InvoiceRecord(
            id="INV-000001",
            vendor="Acme, Inc",
            amount=1200.0,
            currency="INR",
            status="failed",
            date=TODAY,
            issues=(GSTIN_ISSUE, 'Bad "ref"'),
        )
    ]
    text = export_report_csv(records)
    lines = text.splitlines()
    assert lines[0] == ",".join(REPORT_COLUMNS)
    assert '"Acme, Inc"' in lines[1]
    assert '; Bad ""ref"""' in lines[1]
    row = next(csv.DictReader(io.StringIO(text)))
    assert row["issues"] == f'{GSTIN_ISSUE}; Bad "ref"'
    assert row["date"] == "2025-03-15"


def test_csv_empty():
    assert export_report_csv([]) == "No data available"


def test_render_report_by_id(executor, demo_dataset, store):
    action = executor.execute(ActionType.FILTER_INVOICES, {"vendor": "GoAir"}, demo_dataset)
    append_action(store.get_or_create_conversation("s1"), action)

    text = render_report(store, action.report_id)
    assert len(text.splitlines()) == 2
    with pytest.raises(ReportNotFoundError):
        render_report(store, "missing")


def test_tracer_metadata():
    tracer = Tracer()
    tracer.start_trace(session_id="s1", message="hello", use_external_model=True)
    tracer.record_step("dummy", {"a": 1}, {"b": 2}, attributes={"attr": "val"})
    trace = tracer.end_trace()
    assert trace["session_id"] == "s1"
    assert trace["use_external_model"] is True
    assert trace["steps"][0]["attributes"]["attr"] == "val"
    assert trace["latency_ms"] >= 0


def test_export_uses_metadata(tmp_path):
    results = [
        {
            "run_id": "run123",
            "session_id": "demo",
            "dataset": "demo",
            "evaluations": {
                "intent_accuracy": {"passed": True},
                "reference_accuracy": {"passed": False},
                "composite": {"passed": False},
            },
        },
        {
            "run_id": "run123",
            "evaluations": {
                "intent_accuracy": {"passed": True},
                "reference_accuracy": {"passed": True},
                "composite": {"passed": True},
            },
        },
    ]
    out_file = tmp_path / "out.json"
    payload = export_to_json(results, filename=str(out_file))
    assert payload["run_id"] == "run123"
    assert payload["dataset"] == "demo"
    assert payload["summary"]["steps"] == 2
    assert payload["summary"]["passed"] == 1
    assert payload["summary"]["metrics"]["reference_accuracy"] == 0.5
    assert payload["summary"]["metrics"]["bottleneck"] == "reference_accuracy"
    assert json.loads(out_file.read_text(encoding="utf-8"))["summary"]["failed"] == 1
