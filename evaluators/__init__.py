from .intent_evaluator import IntentEvaluator
from .reference_evaluator import ReferenceEvaluator
from .composite_evaluator import CompositeEvaluator

__all__ = [
    "IntentEvaluator",
    "ReferenceEvaluator",
    "CompositeEvaluator",
]
