"""Pure domain services."""

from poolfund.domain.services.governance_evaluator import (
    EvaluationResult,
    apply_evaluation,
    evaluate,
    is_quorum_reached,
)

__all__: list[str] = [
    "EvaluationResult",
    "apply_evaluation",
    "evaluate",
    "is_quorum_reached",
]
