"""
CLI entrypoint for the invoice support assistant.

This module provides the command-line interface for the assistant. It
supports these modes:
- Playing the demo conversation in one session, with per-step evaluation
- A single ad-hoc exchange
- A health probe of the external model
- Export of the run transcript and of downloadable reports

The CLI handles:
- Environment configuration loading
- Assistant construction (model gateway, resolver, pipeline)
- Evaluator configuration and execution
- Results export and presentation

Usage:
    # Play the demo conversation on the fixed demo dataset
    python -m invoice_assistant.main --run

    # Use the external model for intent extraction
    python -m invoice_assistant.main --run --use-llm --provider openai

    # One exchange in a named session
    python -m invoice_assistant.main --message "Show ticket status" --session alice

    # Check the model provider
    python -m invoice_assistant.main --health

    # Save the transcript and every downloadable report
    python -m invoice_assistant.main --run --export run.json --reports-dir reports
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional

from agents.intent_resolver import IntentResolver
from agents.invoice_assistant import InvoiceAssistant
from conversation.store import InMemoryStore
from data.datasets import DATASETS, load_dataset
from data.scenarios import DEMO_SCENARIO
from evaluators import CompositeEvaluator, IntentEvaluator, ReferenceEvaluator
from models.records import InvoiceRecord
from utils.config import SUPPORTED_PROVIDERS, Config, load_config
from utils.exporters import export_to_json, render_report
from utils.model_gateway import ModelGateway

ERROR_REPLY = (
    "I apologize, but I encountered an error processing your request. Please try again."
)
DEFAULT_SESSION = "cli"
DEMO_SESSION = "demo"


def setup_logging(debug: bool = False, level: str = "INFO") -> logging.Logger:
    """
    Configure application logging.

    Debug mode logs to both console and logs/run.log; otherwise the console
    gets the configured level.

    Args:
        debug: Whether to enable debug-level logging
        level: Level name used when debug is off

    Returns:
        logging.Logger: Configured logger instance
    """
    if debug:
        os.makedirs("logs", exist_ok=True)
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(message)s",
            handlers=[
                logging.StreamHandler(),
                logging.FileHandler("logs/run.log", encoding="utf-8"),
            ],
        )
        logger = logging.getLogger("invoice_assistant")
        logger.debug("Debug logging enabled")
        return logger

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    return logging.getLogger("invoice_assistant")


def build_assistant(config: Config, logger: Optional[logging.Logger] = None) -> InvoiceAssistant:
    """Wire the gateway, resolver and pipeline from configuration."""
    gateway = ModelGateway.from_config(config, logger=logger)
    resolver = IntentResolver(gateway=gateway, logger=logger)
    return InvoiceAssistant(resolver=resolver, logger=logger)


def create_evaluators() -> List[Any]:
    """
    Evaluators for scenario steps. CompositeEvaluator reads the results of
    the others, so it runs last.
    """
    return [
        IntentEvaluator(),
        ReferenceEvaluator(),
        CompositeEvaluator(),
    ]


def run_scenario(
    assistant: InvoiceAssistant,
    store: InMemoryStore,
    dataset: List[InvoiceRecord],
    dataset_name: str = "demo",
    session_id: str = DEMO_SESSION,
    use_external_model: bool = False,
    run_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Play the demo conversation in one session and evaluate each step.

    Args:
        assistant: The chat pipeline
        store: Conversation and ticket store
        dataset: Invoice records
        dataset_name: Name recorded in the transcript
        session_id: Session the whole scenario runs in
        use_external_model: Ask the model gateway before the rules
        run_id: Optional run identifier (generated if not provided)

    Returns:
        list: One transcript entry per step, each containing:
            - step, input, response, intent, intent_source
            - actions, ticket: what the step produced
            - prior_actions: the session's actions before the step
            - evaluations: evaluator name -> result
            - trace: per-step pipeline trace
    """
    evaluators = create_evaluators()
    run_id = run_id or str(uuid.uuid4())

    transcript: List[Dict[str, Any]] = []
    for step in DEMO_SCENARIO:
        conversation = store.get_or_create_conversation(session_id)
        prior_actions = [action.to_dict() for action in conversation.actions]

        response = assistant.handle_message(
            step["input"],
            session_id=session_id,
            store=store,
            dataset=dataset,
            use_external_model=use_external_model,
        )

        result: Dict[str, Any] = {
            "run_id": run_id,
            "session_id": session_id,
            "dataset": dataset_name,
            "step": step["step"],
            "input": step["input"],
            **response.to_dict(),
            "prior_actions": prior_actions,
            "trace": response.trace,
        }

        result["evaluations"] = {}
        for evaluator in evaluators:
            result["evaluations"][evaluator.name] = evaluator.evaluate(step, result)

        transcript.append(result)

    return transcript


def print_exchange(result: Dict[str, Any]) -> None:
    print(f"\n[{result['step']}] > {result['input']}")
    print(result["response"])


def print_summary(transcript: List[Dict[str, Any]]) -> None:
    """
    Print pass/fail counts of a scenario run.

    Example:
        >>> print_summary(transcript)
        Played 5 steps | passed: 5 | failed: 0
    """
    total = len(transcript)
    passed = sum(
        1
        for r in transcript
        if r.get("evaluations", {}).get("composite", {}).get("passed")
    )
    print(f"\nPlayed {total} steps | passed: {passed} | failed: {total - passed}")


def write_reports(store: InMemoryStore, session_id: str, reports_dir: str) -> List[str]:
    """
    Write every downloadable action of the session as ``<reportId>.csv``.

    Returns:
        list: Paths written
    """
    conversation = store.get_conversation(session_id)
    if conversation is None:
        return []

    os.makedirs(reports_dir, exist_ok=True)
    paths: List[str] = []
    for action in conversation.actions:
        if not action.downloadable:
            continue
        path = os.path.join(reports_dir, f"{action.report_id}.csv")
        with open(path, "w", encoding="utf-8") as f:
            f.write(render_report(store, action.report_id))
        paths.append(path)
    return paths


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entrypoint.

    Command-line Arguments:
        --run: Play the demo conversation
        --dataset: Dataset name (default from DEFAULT_DATASET)
        --use-llm: Ask the external model before the heuristic rules
        --provider: Model provider (ollama, openai or anthropic)
        --message: Send one message
        --session: Session id for --message (default: cli)
        --health: Print the model health probe as JSON
        --export: Write the run transcript to this JSON file
        --reports-dir: Write downloadable reports as CSV into this directory
        --debug: Enable debug logging to console and logs/run.log

    Returns:
        int: Process exit code
    """
    parser = argparse.ArgumentParser(
        description="Invoice support assistant",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # Run mode arguments
    parser.add_argument("--run", action="store_true", help="Play the demo conversation")
    parser.add_argument("--dataset", choices=DATASETS, help="Dataset name (default: demo)")
    parser.add_argument(
        "--use-llm",
        dest="use_llm",
        action="store_true",
        help="Use the external model for intent extraction",
    )
    parser.add_argument("--provider", choices=SUPPORTED_PROVIDERS, help="Model provider")
    parser.add_argument("--message", help="Send one message and print the answer")
    parser.add_argument("--session", default=DEFAULT_SESSION, help="Session id for --message")
    parser.add_argument("--health", action="store_true", help="Print the model health probe")

    # Export arguments
    parser.add_argument("--export", metavar="FILE", help="Write the run transcript to FILE")
    parser.add_argument(
        "--reports-dir",
        dest="reports_dir",
        metavar="DIR",
        help="Write downloadable reports as CSV into DIR",
    )

    # Debug argument
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to console and logs/run.log",
    )

    args = parser.parse_args(argv)

    config = load_config()
    if args.use_llm:
        config = replace(config, llm_enabled=True)
    if args.provider:
        config = replace(config, llm_provider=args.provider)

    logger = setup_logging(debug=args.debug, level=config.log_level)

    if not (args.run or args.message or args.health):
        parser.print_help()
        return 0

    assistant = build_assistant(config, logger=logger)

    if args.health:
        print(json.dumps(assistant.resolver.gateway.health(), indent=2))
        if not (args.run or args.message):
            return 0

    dataset_name = args.dataset or config.default_dataset
    dataset = load_dataset(dataset_name)
    store = InMemoryStore()

    if args.message:
        try:
            response = assistant.handle_message(
                args.message,
                session_id=args.session,
                store=store,
                dataset=dataset,
                use_external_model=args.use_llm,
            )
            print(response.text)
        except Exception:
            logger.exception("Error processing message", extra={"session_id": args.session})
            print(ERROR_REPLY)
            return 1

    if args.run:
        try:
            transcript = run_scenario(
                assistant,
                store,
                dataset,
                dataset_name=dataset_name,
                use_external_model=args.use_llm,
            )
        except Exception:
            logger.exception("Error playing the demo conversation")
            print(ERROR_REPLY)
            return 1

        for result in transcript:
            print_exchange(result)
        print_summary(transcript)

        if args.export:
            export_to_json(transcript, filename=args.export)
            print(f"Exported transcript to {args.export}")

        if args.reports_dir:
            paths = write_reports(store, DEMO_SESSION, args.reports_dir)
            print(f"Wrote {len(paths)} reports to {args.reports_dir}")
    elif args.export or args.reports_dir:
        print("Nothing to export. Run with --run first.")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
