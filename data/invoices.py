"""
Invoice datasets for the assistant.

Two flavours:
- generate_invoices: a random sample over the last 90 days, the shape the
  assistant sees in a live demo
- build_demo_invoices: a fixed set built around the demo story. It holds
  exactly 12 IndiSky invoices that failed last month, 7 of them missing
  GSTIN information, plus records every demo filter must leave out.
"""

from __future__ import annotations

import random
from datetime import date, timedelta
from typing import List, Optional

from models.records import GSTIN_ISSUE, InvoiceRecord, utcnow

VENDORS = ["IndiSky", "AirIndia", "SpiceJet", "GoAir", "Vistara"]
STATUSES = ["paid", "pending", "failed", "processing"]
CURRENCY = "INR"

SAMPLE_SIZE = 500
SAMPLE_DAYS = 90
GSTIN_ISSUE_RATE = 0.7

PAYMENT_REFERENCE_ISSUE = "Invalid payment reference"
CERTIFICATE_ISSUE = "Expired vendor certificate"


def invoice_id(sequence: int) -> str:
    return f"INV-{sequence:06d}"


def generate_invoices(
    count: int = SAMPLE_SIZE,
    seed: Optional[int] = None,
    today: Optional[date] = None,
) -> List[InvoiceRecord]:
    """
    Random invoices dated within the last 90 days.

    Args:
        count: Number of records
        seed: Seed for a reproducible set
        today: Anchor date (defaults to the current UTC date)

    Returns:
        List[InvoiceRecord]: Records with ids INV-000001 upwards
    """
    rng = random.Random(seed)
    today = today or utcnow().date()

    records: List[InvoiceRecord] = []
    for sequence in range(1, count + 1):
        vendor = rng.choice(VENDORS)
        status = rng.choice(STATUSES)
        amount = float(rng.randrange(5000, 105000))
        invoice_date = today - timedelta(days=rng.randrange(SAMPLE_DAYS))

        # Only IndiSky failures carry the GSTIN problem
        has_issue = vendor == "IndiSky" and status == "failed" and rng.random() < GSTIN_ISSUE_RATE

        records.append(
            InvoiceRecord(
                id=invoice_id(sequence),
                vendor=vendor,
                amount=amount,
                currency=CURRENCY,
                status=status,
                date=invoice_date,
                issues=(GSTIN_ISSUE,) if has_issue else (),
            )
        )
    return records


def _demo_failure_issues(index: int) -> tuple:
    if index < 7:
        return (GSTIN_ISSUE,)
    if index < 10:
        return (PAYMENT_REFERENCE_ISSUE,)
    return (CERTIFICATE_ISSUE,)


def build_demo_invoices(today: Optional[date] = None) -> List[InvoiceRecord]:
    """
    Deterministic dataset for the demo scenario.

    Contents relative to ``today``:
        - 12 IndiSky/failed invoices in the previous calendar month
          (7 missing GSTIN, 3 invalid payment reference, 2 expired certificate)
        - IndiSky/failed invoices this month and two months ago
        - IndiSky invoices last month with other statuses
        - Other vendors' failed invoices last month

    Args:
        today: Anchor date (defaults to the current UTC date)

    Returns:
        List[InvoiceRecord]: The demo records, ids in sequence
    """
    today = today or utcnow().date()
    this_month_start = today.replace(day=1)
    last_month_end = this_month_start - timedelta(days=1)
    last_month_start = last_month_end.replace(day=1)
    older = (last_month_start - timedelta(days=1)).replace(day=15)

    rows = []

    for index in range(12):
        rows.append(
            (
                "IndiSky",
                "failed",
                15000.0 + index * 1250,
                last_month_start.replace(day=1 + index * 2),
                _demo_failure_issues(index),
            )
        )

    rows.extend(
        [
            ("IndiSky", "failed", 18000.0, this_month_start, (GSTIN_ISSUE,)),
            ("IndiSky", "failed", 22000.0, older, (GSTIN_ISSUE,)),
            ("IndiSky", "paid", 30500.0, last_month_start.replace(day=5), ()),
            ("IndiSky", "pending", 12750.0, last_month_start.replace(day=9), ()),
            ("IndiSky", "processing", 41000.0, last_month_start.replace(day=20), ()),
            ("AirIndia", "failed", 27300.0, last_month_start.replace(day=4), (PAYMENT_REFERENCE_ISSUE,)),
            ("SpiceJet", "failed", 9800.0, last_month_start.replace(day=11), ()),
            ("GoAir", "paid", 64200.0, last_month_start.replace(day=14), ()),
            ("Vistara", "pending", 55100.0, this_month_start, ()),
            ("Vistara", "failed", 38900.0, older, ()),
        ]
    )

    return [
        InvoiceRecord(
            id=invoice_id(sequence),
            vendor=vendor,
            amount=amount,
            currency=CURRENCY,
            status=status,
            date=invoice_date,
            issues=issues,
        )
        for sequence, (vendor, status, amount, invoice_date, issues) in enumerate(rows, start=1)
    ]
