"""
Lightweight per-message tracer for the assistant pipeline.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Dict, List, Optional


class Tracer:
    """
    Collects the steps of one message through the pipeline (intent
    resolution, dispatch) with timings, inputs and outputs.
    """

    def __init__(self):
        self.current_trace: Dict[str, Any] = {}
        self.steps: List[Dict[str, Any]] = []
        self._step_started: Optional[float] = None

    def start_trace(
        self,
        session_id: str,
        message: str,
        use_external_model: bool = False,
    ) -> None:
        self.current_trace = {
            "trace_id": str(uuid.uuid4()),
            "session_id": session_id,
            "message": message,
            "use_external_model": use_external_model,
            "start_time": time.time(),
            "steps": [],
        }
        self.steps = []
        self._step_started = time.time()

    def record_step(
        self,
        step_name: str,
        input_payload: Dict[str, Any],
        output_payload: Dict[str, Any],
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        # A step spans from the end of the previous step (or trace start)
        end = time.time()
        start = self._step_started if self._step_started is not None else end
        self.steps.append(
            {
                "name": step_name,
                "input": input_payload,
                "output": output_payload,
                "attributes": attributes or {},
                "start_time": start,
                "end_time": end,
                "latency_ms": round((end - start) * 1000, 2),
            }
        )
        self._step_started = end

    def end_trace(self) -> Dict[str, Any]:
        end_time = time.time()
        self.current_trace["end_time"] = end_time
        self.current_trace["latency_ms"] = round(
            (end_time - self.current_trace.get("start_time", end_time)) * 1000, 2
        )
        self.current_trace["steps"] = self.steps
        return self.current_trace
