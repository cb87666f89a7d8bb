from .datasets import DATASETS, load_dataset
from .invoices import build_demo_invoices, generate_invoices
from .scenarios import DEMO_PHRASES, DEMO_SCENARIO

__all__ = [
    "DATASETS",
    "DEMO_PHRASES",
    "DEMO_SCENARIO",
    "build_demo_invoices",
    "generate_invoices",
    "load_dataset",
]
