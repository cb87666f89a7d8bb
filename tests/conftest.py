import random
from datetime import date, datetime, timezone

import pytest

from actions import ActionExecutor
from agents.invoice_assistant import InvoiceAssistant
from agents.ticket_manager import TicketManager
from conversation.store import InMemoryStore
from data.invoices import build_demo_invoices

TODAY = date(2025, 3, 15)
NOW = datetime(2025, 3, 15, 10, 30, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


@pytest.fixture
def demo_dataset():
    return build_demo_invoices(today=TODAY)


@pytest.fixture
def executor():
    return ActionExecutor(clock=fixed_clock)


@pytest.fixture
def ticket_manager():
    return TicketManager(clock=fixed_clock, rng=random.Random(42))


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def assistant(executor, ticket_manager):
    return InvoiceAssistant(executor=executor, ticket_manager=ticket_manager)
