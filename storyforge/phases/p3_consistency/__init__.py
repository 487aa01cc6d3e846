"""
Global Consistency Pass - cross-artifact contradiction scan with gated fixes.
"""

from storyforge.phases.p3_consistency.orchestrator import (
    ConsistencyOrchestrator,
    ConsistencyResult,
)

__all__ = ["ConsistencyOrchestrator", "ConsistencyResult"]
