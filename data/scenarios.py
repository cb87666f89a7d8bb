"""
The demo conversation: five phrases played in one session, each with the
intent it must resolve to. Order matters; later phrases refer back to the
actions created by earlier ones.
"""

from models.records import IntentType

DEMO_SCENARIO = [
    {
        "step": 1,
        "description": "Customer filters invoices",
        "input": "Filter invoices for last month, vendor='IndiSky', status=failed",
        "expected_intent": IntentType.FILTER_INVOICES,
    },
    {
        "step": 2,
        "description": "Customer asks for an explanation",
        "input": "Why did these fail?",
        "expected_intent": IntentType.EXPLAIN_FAILURES,
    },
    {
        "step": 3,
        "description": "Customer opens a ticket",
        "input": "Create a ticket and notify me when fixed",
        "expected_intent": IntentType.CREATE_TICKET,
    },
    {
        "step": 4,
        "description": "Customer checks on the ticket",
        "input": "What's the status of my ticket?",
        "expected_intent": IntentType.TICKET_STATUS,
    },
    {
        "step": 5,
        "description": "Customer downloads the report",
        "input": "Download the fixed report",
        "expected_intent": IntentType.DOWNLOAD_REPORT,
    },
]

DEMO_PHRASES = [step["input"] for step in DEMO_SCENARIO]
