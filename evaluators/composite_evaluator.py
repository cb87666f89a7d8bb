"""
Composite evaluator for end-to-end success of a scenario step.
"""

from __future__ import annotations

from typing import Any, Dict


class CompositeEvaluator:
    """
    Requires the intent and reference checks to pass.
    """

    name = "composite"

    def evaluate(self, step: Dict[str, Any], result: Dict[str, Any]) -> Dict[str, Any]:
        evaluations = result.get("evaluations", {})
        intent_ok = evaluations.get("intent_accuracy", {}).get("passed", False)
        reference_ok = evaluations.get("reference_accuracy", {}).get("passed", False)

        passed = intent_ok and reference_ok
        reasoning = f"intent_ok={intent_ok}, reference_ok={reference_ok}"
        return {"name": self.name, "score": passed, "reasoning": reasoning, "passed": passed}
