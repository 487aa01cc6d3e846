"""
Cross-Reference Pass Orchestrator for StoryForge.

Pass 2: for each final artifact, extract its UI mapping, contract
dependencies, ownership and related artifacts against the final graph.
"""

from __future__ import annotations

from storyforge.agents.interconnection import InterconnectionAgent
from storyforge.core.event_bus import EventBus
from storyforge.core.events import TOPIC_PASS_COMPLETED, TOPIC_PASS_STARTED, create_pass_event
from storyforge.core.models.artifact import StoryArtifact
from storyforge.core.models.graph import SystemGraph
from storyforge.core.models.reports import StoryInterconnections
from storyforge.core.rendering import StoryRenderer
from storyforge.utils.logging import get_logger

logger = get_logger("interconnection")

PASS_NAME = "interconnection"


class InterconnectionOrchestrator:
    """Runs the cross-reference agent over every artifact, one at a time."""

    def __init__(
        self,
        agent: InterconnectionAgent,
        renderer: StoryRenderer | None = None,
        event_bus: EventBus | None = None,
    ):
        self.agent = agent
        self.renderer = renderer or StoryRenderer()
        self.event_bus = event_bus

    async def run(
        self,
        artifacts: dict[str, StoryArtifact],
        graph: SystemGraph,
    ) -> dict[str, StoryInterconnections]:
        """Extract cross-references for each artifact.

        Args:
            artifacts: Artifact ID -> final artifact
            graph: Final graph

        Returns:
            Artifact ID -> cross-reference metadata, in artifact order

        Raises:
            StructuredOutputError: If any reply is malformed
        """
        if self.event_bus is not None:
            await self.event_bus.publish(
                TOPIC_PASS_STARTED, create_pass_event(PASS_NAME, artifacts=len(artifacts)),
            )

        results: dict[str, StoryInterconnections] = {}
        all_ids = list(artifacts)
        known_contracts = graph.contract_ids()
        for artifact_id, artifact in artifacts.items():
            siblings = [other for other in all_ids if other != artifact_id]
            markdown = self.renderer.to_markdown(artifact)
            results[artifact_id] = await self.agent.extract(
                artifact_id, markdown, graph, siblings,
            )
            logger.debug(
                f"Cross-references for {artifact_id}: "
                f"{len(results[artifact_id].related_stories)} related, "
                f"{len(results[artifact_id].contract_dependencies)} contracts"
            )
            unknown = [
                contract for contract in results[artifact_id].contract_dependencies
                if contract not in known_contracts
            ]
            if unknown:
                logger.warning(
                    f"{artifact_id} depends on contracts missing from the graph: {', '.join(unknown)}"
                )

        if self.event_bus is not None:
            await self.event_bus.publish(
                TOPIC_PASS_COMPLETED, create_pass_event(PASS_NAME, artifacts=len(results)),
            )
        return results
