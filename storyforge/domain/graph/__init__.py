"""Graph services."""

from storyforge.domain.graph.merger import RelationshipMerger

__all__ = ["RelationshipMerger"]
