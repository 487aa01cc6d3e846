"""
StoryForge Phases - pass orchestrators.

Each pass takes the latest graph and artifacts and returns new values.
"""

# Pass name (as published on the event bus) -> display label
PASS_LABELS = {
    "discovery": "Pass 0: Discovery",
    "refinement": "Pass 1: Generation & Refinement",
    "interconnection": "Pass 2: Cross-References",
    "consistency": "Pass 3: Global Consistency",
}


__all__ = [
    "PASS_LABELS",
]
