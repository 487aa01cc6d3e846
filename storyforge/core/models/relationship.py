"""
Relationship Models for StoryForge.

A Relationship is a candidate graph edit surfaced by the judge. It is consumed
by the merger and never persisted raw: every candidate ends up merged,
skipped, or routed to manual review.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from storyforge.core.models.base import WireModel
from storyforge.core.models.graph import SystemGraph


class RelationshipOperation(str, Enum):
    ADD_NODE = "add_node"
    ADD_EDGE = "add_edge"
    EDIT_NODE = "edit_node"
    EDIT_EDGE = "edit_edge"


class Relationship(WireModel):
    """A candidate node or edge discovered while judging an artifact.

    Attributes:
        id: Node ID for add_node, optional for edges
        type: Node type for add_node (component/stateModel/event/dataFlow) or
            'edge' for edge operations
        operation: add_node / add_edge / edit_node / edit_edge (kept as a
            string so unknown operations reach manual review instead of
            failing the judge response)
        name: Edge name (composed-of, coordinates-with, ...) or node label
        canonical_name: Canonical name for a new node
        source: Edge source component ID
        target: Edge target component ID
        via: Event or callback name for coordination edges
        confidence: 0-1 confidence, None when the judge left it to the rubric
        evidence: Quote or reasoning that supports the candidate
    """

    id: str | None = None
    type: str = ""
    operation: str = ""
    name: str = ""
    canonical_name: str | None = None
    source: str | None = None
    target: str | None = None
    via: str | None = None
    description: str | None = None
    confidence: float | None = Field(default=None, ge=0, le=1)
    evidence: str = ""
    attributes: dict[str, Any] = Field(default_factory=dict)

    def key(self) -> str:
        """Lookup key into a rubric's confidence map."""
        if self.id:
            return self.id
        if self.source and self.target:
            return f"{self.source}->{self.target}"
        return self.name or self.canonical_name or ""


class SkippedRelationship(WireModel):
    relationship: Relationship
    reason: str


class ManualReviewItem(WireModel):
    relationship: Relationship
    reason: str


class MergeResult(WireModel):
    """Result of merging a batch of relationships into a graph."""

    updated_graph: SystemGraph
    merged_count: int = 0
    skipped: list[SkippedRelationship] = Field(default_factory=list)
    manual_review: list[ManualReviewItem] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.merged_count + len(self.skipped) + len(self.manual_review)
