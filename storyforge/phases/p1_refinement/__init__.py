"""
Refinement Pass - generation, quality gate and graph feedback rounds.
"""

from storyforge.phases.p1_refinement.loop import (
    RefinementLoop,
    RefinementResult,
    RefinementStatus,
    RoundSummary,
)
from storyforge.phases.p1_refinement.quality_gate import (
    GateOutcome,
    GateState,
    QualityGate,
)

__all__ = [
    "GateOutcome",
    "GateState",
    "QualityGate",
    "RefinementLoop",
    "RefinementResult",
    "RefinementStatus",
    "RoundSummary",
]
