"""
Cross-Reference Pass - links each artifact to the graph and its siblings.
"""

from storyforge.phases.p2_interconnection.orchestrator import InterconnectionOrchestrator

__all__ = ["InterconnectionOrchestrator"]
