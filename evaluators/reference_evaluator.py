"""
Checks that referential answers point at the right earlier action.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from models.records import ActionType, IntentType


def _latest(actions: List[Dict[str, Any]], predicate) -> Optional[Dict[str, Any]]:
    for action in reversed(actions):
        if predicate(action):
            return action
    return None


class ReferenceEvaluator:
    """
    Uses the actions that existed before the step ("prior_actions"):

    - download_report answers must cite the reportId of the latest
      downloadable action
    - explain_failures answers must cite the number of failed records in
      the latest filter_invoices action

    Steps expecting any other intent pass trivially.
    """

    name = "reference_accuracy"

    def _result(self, passed: bool, reasoning: str) -> Dict[str, Any]:
        return {"name": self.name, "score": 1 if passed else 0, "reasoning": reasoning, "passed": passed}

    def evaluate(self, step: Dict[str, Any], result: Dict[str, Any]) -> Dict[str, Any]:
        expected = step.get("expected_intent")
        prior: List[Dict[str, Any]] = result.get("prior_actions", [])
        response = result.get("response", "")

        if expected == IntentType.DOWNLOAD_REPORT:
            target = _latest(prior, lambda action: action.get("downloadable"))
            if target is None:
                return self._result(False, "No downloadable action before this step")
            passed = target["report_id"] in response
            return self._result(passed, f"expected reportId {target['report_id']}")

        if expected == IntentType.EXPLAIN_FAILURES:
            target = _latest(prior, lambda action: action.get("type") == ActionType.FILTER_INVOICES)
            if target is None:
                return self._result(False, "No filter action before this step")
            failed = target.get("summary", {}).get("statuses", {}).get("failed", 0)
            passed = f"{failed} failed" in response
            return self._result(passed, f"expected {failed} failed records from {target['report_id']}")

        return self._result(True, "No reference required")
