"""
System Graph Models for StoryForge.

The graph is the shared record of discovered components, state models,
events, data flows and product vocabulary. Nodes live in ID-indexed maps and
edges refer to nodes by ID only, so a snapshot is a plain value that can be
deep-copied, hashed and serialized without following object references.
"""

from __future__ import annotations

import hashlib
import json
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import Field

from storyforge.core.models.base import WireModel
from storyforge.utils.ids import EntityType


# ============================================================================
# Nodes
# ============================================================================


class Component(WireModel):
    """A UI or system component (ID prefix ``COMP-``)."""

    id: str
    canonical_name: str
    description: str = ""
    technical_name: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)


class StateModel(WireModel):
    """A state contract owned by one component (ID prefix ``C-STATE-``)."""

    id: str
    canonical_name: str
    description: str = ""
    owner: str = ""
    consumers: list[str] = Field(default_factory=list)


class Event(WireModel):
    """An event in the registry (ID prefix ``E-``)."""

    id: str
    canonical_name: str
    payload: dict[str, str] = Field(default_factory=dict)
    emitter: str = ""
    listeners: list[str] = Field(default_factory=list)


class DataFlow(WireModel):
    """A data flow contract between components (ID prefix ``DF-``)."""

    id: str
    canonical_name: str
    source: str = ""
    target: str = ""
    description: str = ""


# ============================================================================
# Edges
# ============================================================================


class CompositionEdge(WireModel):
    """Parent contains child."""

    parent: str
    child: str


class CoordinationEdge(WireModel):
    """Source coordinates with target via an event or callback name."""

    source: str
    target: str
    via: str


# ============================================================================
# Supporting records
# ============================================================================


class StandardState(WireModel):
    """Standard UI state shared by every artifact."""

    type: Literal["loading", "error", "empty", "success"]
    description: str


class ComponentRole(WireModel):
    component_id: str
    role: str
    description: str = ""


def default_standard_states() -> list[StandardState]:
    """The four standard UI states every graph starts with."""
    return [
        StandardState(type="loading", description="Operation in progress"),
        StandardState(type="error", description="Operation failed"),
        StandardState(type="empty", description="No data to show"),
        StandardState(type="success", description="Operation completed"),
    ]


# ============================================================================
# Graph
# ============================================================================


class SystemGraph(WireModel):
    """The shared context every artifact is generated against.

    Attributes:
        components: Component nodes keyed by stable ID
        state_models: State model nodes keyed by stable ID
        events: Event nodes keyed by stable ID
        data_flows: Data flow nodes keyed by stable ID
        composition_edges: Parent/child edges between components
        coordination_edges: Event/callback edges between components
        vocabulary: Raw term -> canonical product name
        standard_states: Loading/error/empty/success descriptions
        component_roles: Optional role descriptions per component
        reference_documents: Names of reference documents used in discovery
        timestamp: ISO timestamp of the discovery pass
    """

    components: dict[str, Component] = Field(default_factory=dict)
    state_models: dict[str, StateModel] = Field(default_factory=dict)
    events: dict[str, Event] = Field(default_factory=dict)
    data_flows: dict[str, DataFlow] = Field(default_factory=dict)
    composition_edges: list[CompositionEdge] = Field(default_factory=list)
    coordination_edges: list[CoordinationEdge] = Field(default_factory=list)
    vocabulary: dict[str, str] = Field(default_factory=dict)
    standard_states: list[StandardState] = Field(default_factory=default_standard_states)
    component_roles: list[ComponentRole] = Field(default_factory=list)
    reference_documents: list[str] | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())

    def __str__(self) -> str:
        return (
            f"SystemGraph(components={len(self.components)}, "
            f"state_models={len(self.state_models)}, events={len(self.events)}, "
            f"data_flows={len(self.data_flows)}, "
            f"edges={len(self.composition_edges) + len(self.coordination_edges)})"
        )

    def nodes_of(self, entity_type: EntityType | str) -> dict[str, Any]:
        """Get the node map for an entity type."""
        entity_type = EntityType(entity_type)
        if entity_type == EntityType.COMPONENT:
            return self.components
        if entity_type == EntityType.STATE_MODEL:
            return self.state_models
        if entity_type == EntityType.EVENT:
            return self.events
        return self.data_flows

    def has_node(self, node_id: str) -> bool:
        """Check whether any node map contains this ID."""
        return node_id in self.contract_ids()

    @property
    def node_count(self) -> int:
        return sum(len(self.nodes_of(t)) for t in EntityType)

    @property
    def edge_count(self) -> int:
        return len(self.composition_edges) + len(self.coordination_edges)

    def contract_ids(self) -> set[str]:
        """All IDs an artifact may legitimately reference."""
        ids: set[str] = set()
        for entity_type in EntityType:
            ids.update(self.nodes_of(entity_type).keys())
        return ids

    def dangling_edges(self) -> list[CompositionEdge | CoordinationEdge]:
        """Edges whose endpoints are not component nodes (should be empty)."""
        dangling: list[CompositionEdge | CoordinationEdge] = []
        for edge in self.composition_edges:
            if edge.parent not in self.components or edge.child not in self.components:
                dangling.append(edge)
        for edge in self.coordination_edges:
            if edge.source not in self.components or edge.target not in self.components:
                dangling.append(edge)
        return dangling

    def digest(self) -> str:
        """Content hash of the graph, used as an artifact staleness marker.

        The timestamp is excluded so two graphs with equal content hash equal.
        """
        content = self.model_dump(mode="json", by_alias=True, exclude={"timestamp"})
        canonical = json.dumps(content, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]

    def summary(self) -> str:
        """Compact text rendering of the graph for prompts."""
        parts: list[str] = []
        if self.timestamp:
            parts.append(f"Timestamp: {self.timestamp}")
        if self.components:
            parts.append("Components: " + ", ".join(
                f"{c.id} ({c.canonical_name})" for c in self.components.values()
            ))
        if self.composition_edges:
            parts.append("Composition: " + ", ".join(
                f"{e.parent}->{e.child}" for e in self.composition_edges
            ))
        if self.coordination_edges:
            parts.append("Coordination: " + ", ".join(
                f"{e.source}->{e.target} ({e.via})" for e in self.coordination_edges
            ))
        if self.state_models:
            parts.append("State models: " + ", ".join(self.state_models))
        if self.events:
            parts.append("Events: " + ", ".join(self.events))
        if self.data_flows:
            parts.append("Data flows: " + ", ".join(
                f"{d.id} ({d.source}->{d.target})" for d in self.data_flows.values()
            ))
        if self.standard_states:
            parts.append("Standard states: " + ", ".join(s.type for s in self.standard_states))
        if self.component_roles:
            parts.append("Roles: " + ", ".join(
                f"{r.component_id}: {r.role}" for r in self.component_roles
            ))
        if self.vocabulary:
            parts.append("Vocabulary: " + ", ".join(
                f"{k}->{v}" for k, v in self.vocabulary.items()
            ))
        if self.reference_documents:
            parts.append(f"Reference documents: {len(self.reference_documents)} item(s)")
        return "\n".join(parts) if parts else "(no system context)"
