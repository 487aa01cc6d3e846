"""
Relationship Merger - integrates judge-discovered relationships into the graph.

Add-only policy: new nodes and edges are merged, duplicates are skipped, and
anything that would need judgment (edits, dangling endpoints, unknown shapes)
is routed to manual review. The input graph is never mutated and every
relationship ends in exactly one of merged / skipped / manual review.
"""

from __future__ import annotations

from dataclasses import dataclass

from storyforge.core.models.graph import (
    Component,
    CompositionEdge,
    CoordinationEdge,
    DataFlow,
    Event,
    StateModel,
    SystemGraph,
)
from storyforge.core.models.relationship import (
    ManualReviewItem,
    MergeResult,
    Relationship,
    RelationshipOperation,
    SkippedRelationship,
)
from storyforge.utils.ids import EntityType
from storyforge.utils.logging import get_logger

logger = get_logger("domain.graph.merger")

COMPOSITION_EDGE_NAMES = frozenset({"composed-of", "contains"})
COORDINATION_EDGE_NAMES = frozenset({"coordinates-with", "communicates-with"})


@dataclass
class _Outcome:
    """Result of a single merge attempt."""

    merged: bool = False
    skip_reason: str | None = None
    review_reason: str | None = None


class RelationshipMerger:
    """Merges candidate relationships into a copy of the graph.

    Usage:
        merger = RelationshipMerger()
        result = merger.merge(graph, relationships)
        graph = result.updated_graph
    """

    def merge(self, graph: SystemGraph, relationships: list[Relationship]) -> MergeResult:
        """Merge a batch of relationships.

        Args:
            graph: Current graph (not mutated)
            relationships: Candidates, processed in order

        Returns:
            MergeResult with the updated graph and per-relationship outcomes
        """
        updated = graph.model_copy(deep=True)
        result = MergeResult(updated_graph=updated)

        for rel in relationships:
            outcome = self._merge_one(updated, rel)
            if outcome.merged:
                result.merged_count += 1
            elif outcome.skip_reason is not None:
                result.skipped.append(SkippedRelationship(relationship=rel, reason=outcome.skip_reason))
            else:
                result.manual_review.append(
                    ManualReviewItem(relationship=rel, reason=outcome.review_reason or "unresolved")
                )

        logger.info(
            f"Merge summary: {result.merged_count} merged, {len(result.skipped)} skipped, "
            f"{len(result.manual_review)} flagged for manual review"
        )
        return result

    def _merge_one(self, graph: SystemGraph, rel: Relationship) -> _Outcome:
        try:
            operation = RelationshipOperation(rel.operation)
        except ValueError:
            return _Outcome(review_reason=f"Unknown operation: {rel.operation}")

        if operation in (RelationshipOperation.EDIT_NODE, RelationshipOperation.EDIT_EDGE):
            return _Outcome(review_reason="Edit operations require manual review")

        if operation == RelationshipOperation.ADD_NODE:
            return self._add_node(graph, rel)
        return self._add_edge(graph, rel)

    # ========== Nodes ==========

    def _add_node(self, graph: SystemGraph, rel: Relationship) -> _Outcome:
        canonical_name = rel.canonical_name or rel.name
        if not rel.id or not canonical_name:
            return _Outcome(
                review_reason="add_node missing required fields (id, canonicalName or name)"
            )

        try:
            entity_type = EntityType(rel.type)
        except ValueError:
            return _Outcome(review_reason=f"Unknown node type: {rel.type}")

        nodes = graph.nodes_of(entity_type)
        if rel.id in nodes:
            return _Outcome(skip_reason=f"Duplicate node: {rel.id}")

        nodes[rel.id] = _build_node(entity_type, rel, canonical_name)
        logger.debug(f"Merged node {rel.id} ({entity_type.value})")
        return _Outcome(merged=True)

    # ========== Edges ==========

    def _add_edge(self, graph: SystemGraph, rel: Relationship) -> _Outcome:
        if not rel.name or not rel.source or not rel.target:
            return _Outcome(
                review_reason="add_edge missing required fields (name, source, target)"
            )

        if rel.source not in graph.components or rel.target not in graph.components:
            return _Outcome(
                review_reason=(
                    f"Entity references do not exist "
                    f"(source: {rel.source}, target: {rel.target})"
                )
            )

        if rel.name in COMPOSITION_EDGE_NAMES:
            if any(e.parent == rel.source and e.child == rel.target for e in graph.composition_edges):
                return _Outcome(skip_reason=f"Duplicate edge: {rel.source} -> {rel.target}")
            graph.composition_edges.append(CompositionEdge(parent=rel.source, child=rel.target))
            return _Outcome(merged=True)

        if rel.name in COORDINATION_EDGE_NAMES:
            via = rel.via or rel.name
            if any(
                e.source == rel.source and e.target == rel.target and e.via == via
                for e in graph.coordination_edges
            ):
                return _Outcome(skip_reason=f"Duplicate edge: {rel.source} -> {rel.target} ({via})")
            graph.coordination_edges.append(
                CoordinationEdge(source=rel.source, target=rel.target, via=via)
            )
            return _Outcome(merged=True)

        return _Outcome(review_reason=f"Unknown edge type: {rel.name}")


def _build_node(
    entity_type: EntityType,
    rel: Relationship,
    canonical_name: str,
) -> Component | StateModel | Event | DataFlow:
    description = rel.description or ""
    if entity_type == EntityType.COMPONENT:
        return Component(id=rel.id, canonical_name=canonical_name, description=description)
    if entity_type == EntityType.STATE_MODEL:
        return StateModel(id=rel.id, canonical_name=canonical_name, description=description)
    if entity_type == EntityType.EVENT:
        return Event(id=rel.id, canonical_name=canonical_name)
    return DataFlow(
        id=rel.id,
        canonical_name=canonical_name,
        source=rel.source or "",
        target=rel.target or "",
        description=description,
    )
