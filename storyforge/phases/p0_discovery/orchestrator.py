"""
Discovery Pass Orchestrator for StoryForge.

Pass 0: one discovery call over every unit description, then canonical
name resolution and stable ID minting into a fresh SystemGraph.
"""

from __future__ import annotations

from typing import Any

from storyforge.agents.discovery import DiscoveryAgent, DiscoveryMentions
from storyforge.core.errors import InputValidationError
from storyforge.core.event_bus import EventBus
from storyforge.core.events import TOPIC_PASS_COMPLETED, TOPIC_PASS_STARTED, create_pass_event
from storyforge.core.models.graph import Component, DataFlow, Event, StateModel, SystemGraph
from storyforge.utils.ids import EntityType, IdRegistry, mint_stable_id
from storyforge.utils.logging import get_logger

logger = get_logger("discovery")

PASS_NAME = "discovery"

_NODE_CLASSES = {
    EntityType.COMPONENT: Component,
    EntityType.STATE_MODEL: StateModel,
    EntityType.EVENT: Event,
    EntityType.DATA_FLOW: DataFlow,
}


class DiscoveryOrchestrator:
    """Builds the initial graph from unit descriptions.

    The ID registry belongs to the caller so independent runs never share
    minted IDs; pass the same registry to keep IDs stable across runs.

    Usage:
        registry = IdRegistry()
        orchestrator = DiscoveryOrchestrator(DiscoveryAgent(llm), registry)
        graph = await orchestrator.run(["As a user I want to log in"])
    """

    def __init__(
        self,
        agent: DiscoveryAgent,
        registry: IdRegistry | None = None,
        event_bus: EventBus | None = None,
    ):
        self.agent = agent
        self.registry = registry if registry is not None else IdRegistry()
        self.event_bus = event_bus

    async def run(
        self,
        descriptions: list[str],
        reference_documents: list[str] | None = None,
        image_names: list[str] | None = None,
    ) -> SystemGraph:
        """Discover entities and return the initial graph.

        Args:
            descriptions: Ordered free-text unit descriptions
            reference_documents: Optional reference document names or text
            image_names: Optional names of attached images

        Raises:
            InputValidationError: If there are no descriptions or one is blank
            StructuredOutputError: If the discovery reply is malformed
        """
        if not descriptions:
            raise InputValidationError("At least one description is required")
        for index, text in enumerate(descriptions):
            if not isinstance(text, str) or not text.strip():
                raise InputValidationError(f"Description {index + 1} is empty")

        await self._publish(TOPIC_PASS_STARTED, create_pass_event(
            PASS_NAME, descriptions=len(descriptions),
        ))

        reply = await self.agent.discover(descriptions, reference_documents, image_names)
        graph = self.build_graph(reply)
        if reference_documents:
            graph.reference_documents = list(reference_documents)

        logger.info(f"Discovery complete: {graph}")
        await self._publish(TOPIC_PASS_COMPLETED, create_pass_event(
            PASS_NAME, nodes=graph.node_count,
        ))
        return graph

    def build_graph(self, reply: DiscoveryMentions) -> SystemGraph:
        """Resolve, dedupe and mint every mention into graph nodes."""
        graph = SystemGraph()
        per_type = {
            EntityType.COMPONENT: reply.mentions.components,
            EntityType.STATE_MODEL: reply.mentions.state_models,
            EntityType.EVENT: reply.mentions.events,
            EntityType.DATA_FLOW: reply.mentions.data_flows,
        }

        for entity_type, mentions in per_type.items():
            nodes = graph.nodes_of(entity_type)
            for canonical in _dedupe(reply.canonical_for(m) for m in mentions):
                entity_id = mint_stable_id(canonical, entity_type, self.registry)
                if entity_id in nodes:
                    continue
                nodes[entity_id] = _build_node(entity_type, entity_id, canonical, reply.evidence)

        graph.vocabulary = _build_vocabulary(reply)
        return graph

    async def _publish(self, topic: str, payload: dict[str, Any]) -> None:
        if self.event_bus is not None:
            await self.event_bus.publish(topic, payload)


def _dedupe(names) -> list[str]:
    """Drop blanks and repeats, keeping first-seen order."""
    seen: dict[str, None] = {}
    for name in names:
        if isinstance(name, str) and name.strip() and name not in seen:
            seen[name] = None
    return list(seen)


def _build_node(
    entity_type: EntityType,
    entity_id: str,
    canonical: str,
    evidence: dict[str, Any],
):
    node_cls = _NODE_CLASSES[entity_type]
    fields: dict[str, Any] = {"id": entity_id, "canonical_name": canonical}
    note = evidence.get(canonical)
    if isinstance(note, list):
        note = "; ".join(str(n) for n in note)
    if note and entity_type in (EntityType.COMPONENT, EntityType.STATE_MODEL, EntityType.DATA_FLOW):
        fields["description"] = str(note)
    return node_cls(**fields)


def _build_vocabulary(reply: DiscoveryMentions) -> dict[str, str]:
    """Raw variant -> canonical name, with explicit vocabulary winning."""
    vocabulary: dict[str, str] = {}
    for canonical, variants in reply.canonical_names.items():
        for variant in variants:
            if variant != canonical:
                vocabulary[variant] = canonical
    vocabulary.update(reply.vocabulary)
    return vocabulary
