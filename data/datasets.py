"""
Named invoice datasets for the CLI and tests.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from models.records import InvoiceRecord

from .invoices import build_demo_invoices, generate_invoices

DATASETS = ("demo", "sample")


def load_dataset(
    name: str = "demo",
    seed: Optional[int] = None,
    today: Optional[date] = None,
) -> List[InvoiceRecord]:
    """
    Returns the invoice records for a named dataset.

    "demo" is the fixed demo-story set; "sample" is the random 500-record set
    (reproducible when a seed is given).
    """
    if name == "demo":
        return build_demo_invoices(today=today)
    if name == "sample":
        return generate_invoices(seed=seed, today=today)
    raise ValueError(f"Unknown dataset: {name}")
