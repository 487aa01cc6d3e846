"""
Discovery Pass - builds the initial system graph from unit descriptions.
"""

from storyforge.phases.p0_discovery.orchestrator import DiscoveryOrchestrator

__all__ = ["DiscoveryOrchestrator"]
