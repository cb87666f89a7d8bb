"""
Intent accuracy for scenario steps.
"""

from __future__ import annotations

from typing import Any, Dict


class IntentEvaluator:
    """
    Compares the resolved intent type against the step's expected intent.
    """

    name = "intent_accuracy"

    def evaluate(self, step: Dict[str, Any], result: Dict[str, Any]) -> Dict[str, Any]:
        expected = step.get("expected_intent")
        predicted = (result.get("intent") or {}).get("type")

        if not expected or not predicted:
            return {
                "name": self.name,
                "score": 0,
                "reasoning": "Missing expected or predicted intent",
                "passed": False,
            }

        passed = expected == predicted
        reasoning = f"expected={expected}, predicted={predicted}, source={result.get('intent_source')}"
        return {"name": self.name, "score": 1 if passed else 0, "reasoning": reasoning, "passed": passed}
