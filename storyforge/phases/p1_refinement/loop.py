"""
Refinement Loop for StoryForge.

Generates every artifact against the current graph, runs each through the
Quality Gate, and merges the high-confidence relationships the judge reports
back into the graph. Rounds repeat until a round merges nothing or the round
limit is reached. Artifacts and rounds are processed sequentially so the
graph has exactly one writer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from storyforge.agents.generator import GeneratorAgent
from storyforge.core.event_bus import EventBus
from storyforge.core.events import (
    TOPIC_ARTIFACT_GENERATED,
    TOPIC_GRAPH_UPDATED,
    TOPIC_PASS_COMPLETED,
    TOPIC_PASS_STARTED,
    create_artifact_event,
    create_graph_updated_event,
    create_pass_event,
)
from storyforge.core.models.artifact import StoryArtifact
from storyforge.core.models.graph import SystemGraph
from storyforge.core.models.relationship import MergeResult, Relationship
from storyforge.domain.graph.merger import RelationshipMerger
from storyforge.phases.p1_refinement.quality_gate import GateOutcome, QualityGate
from storyforge.utils.logging import get_logger, log_context

logger = get_logger("refinement")

PASS_NAME = "refinement"
DEFAULT_MAX_ROUNDS = 3
DEFAULT_MIN_CONFIDENCE = 0.75


class RefinementStatus(str, Enum):
    """Why the loop stopped."""
    CONVERGED = "converged"
    STALLED_ON_REVIEW = "stalled_on_review"
    MAX_ROUNDS = "max_rounds"


@dataclass
class RoundSummary:
    round_number: int
    generated: list[str] = field(default_factory=list)
    candidates: int = 0
    filtered_out: int = 0
    merge: MergeResult | None = None


@dataclass
class RefinementResult:
    """Artifacts, gate outcomes and the graph after the last round."""

    artifacts: dict[str, StoryArtifact]
    outcomes: dict[str, GateOutcome]
    graph: SystemGraph
    status: RefinementStatus
    rounds: list[RoundSummary] = field(default_factory=list)

    @property
    def rounds_completed(self) -> int:
        return len(self.rounds)

    @property
    def flagged(self) -> list[str]:
        return [aid for aid, outcome in self.outcomes.items() if outcome.flagged]


class RefinementLoop:
    """Multi-round generation with relationship feedback into the graph.

    Usage:
        loop = RefinementLoop(generator, QualityGate(judge, rewriter))
        result = await loop.run({"STORY-001": "As a user I want to log in"}, graph)
        print(result.status, result.rounds_completed)
    """

    def __init__(
        self,
        generator: GeneratorAgent,
        gate: QualityGate,
        merger: RelationshipMerger | None = None,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        event_bus: EventBus | None = None,
    ):
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.generator = generator
        self.gate = gate
        self.merger = merger or RelationshipMerger()
        self.max_rounds = max_rounds
        self.min_confidence = min_confidence
        self.event_bus = event_bus

    async def run(self, units: dict[str, str], graph: SystemGraph) -> RefinementResult:
        """Refine all units until convergence or the round limit.

        Args:
            units: Artifact ID -> unit description, in processing order
            graph: Graph from discovery (not mutated)

        Raises:
            StructuredOutputError: If any generation, judge or rewrite reply is malformed
        """
        artifacts: dict[str, StoryArtifact] = {}
        outcomes: dict[str, GateOutcome] = {}
        rounds: list[RoundSummary] = []
        status = RefinementStatus.MAX_ROUNDS
        await self._publish(TOPIC_PASS_STARTED, create_pass_event(PASS_NAME, artifacts=len(units)))

        for round_number in range(1, self.max_rounds + 1):
            summary = RoundSummary(round_number=round_number)
            rounds.append(summary)
            digest = graph.digest()
            candidates: list[Relationship] = []

            for artifact_id, description in units.items():
                current = artifacts.get(artifact_id)
                if current is not None and not current.is_stale(digest):
                    continue
                outcome = await self._generate_and_gate(artifact_id, description, graph)
                artifacts[artifact_id] = outcome.artifact
                outcomes[artifact_id] = outcome
                summary.generated.append(artifact_id)
                candidates.extend(self._high_confidence(outcome, summary))

            summary.candidates = len(candidates)
            merge = self.merger.merge(graph, candidates)
            summary.merge = merge

            if merge.merged_count == 0:
                if merge.manual_review:
                    status = RefinementStatus.STALLED_ON_REVIEW
                    logger.info(f"Refinement stalled on manual review after round {round_number}")
                else:
                    status = RefinementStatus.CONVERGED
                    logger.info(f"Refinement converged after round {round_number}")
                break

            graph = merge.updated_graph
            await self._publish(
                TOPIC_GRAPH_UPDATED,
                create_graph_updated_event(
                    {"nodes": graph.node_count, "edges": graph.edge_count},
                    round_number,
                ),
            )
        else:
            logger.warning(
                f"Refinement reached max rounds ({self.max_rounds}) without convergence"
            )

        await self._publish(TOPIC_PASS_COMPLETED, create_pass_event(
            PASS_NAME, rounds=len(rounds), status=status.value,
        ))
        return RefinementResult(
            artifacts=artifacts,
            outcomes=outcomes,
            graph=graph,
            status=status,
            rounds=rounds,
        )

    async def _generate_and_gate(
        self,
        artifact_id: str,
        description: str,
        graph: SystemGraph,
    ) -> GateOutcome:
        with log_context(artifact_id=artifact_id):
            artifact = await self.generator.generate(description, graph, artifact_id)
            await self._publish(TOPIC_ARTIFACT_GENERATED, create_artifact_event(artifact_id))
            return await self.gate.run(artifact, graph)

    def _high_confidence(self, outcome: GateOutcome, summary: RoundSummary) -> list[Relationship]:
        """Keep relationships from any judgment at or above the confidence floor."""
        kept = []
        for relationship, confidence in outcome.scored_relationships():
            if confidence >= self.min_confidence:
                kept.append(relationship)
            else:
                summary.filtered_out += 1
        return kept

    async def _publish(self, topic: str, payload: dict[str, Any]) -> None:
        if self.event_bus is not None:
            await self.event_bus.publish(topic, payload)
