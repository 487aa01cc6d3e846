"""
Quality Gate for StoryForge.

A per-artifact finite state machine with a hard cap of two judge calls and
one rewrite call:

    generated -> judged -> accepted
                        -> rewritten -> re-judged -> accepted
                                                  -> flagged

The rewrite never replaces the artifact wholesale. Its patches are applied
through the PatchOrchestrator and limited to the top sections.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from storyforge.agents.judge import JudgeAgent
from storyforge.agents.rewriter import RewriterAgent
from storyforge.core.event_bus import EventBus
from storyforge.core.events import TOPIC_ARTIFACT_FLAGGED, create_artifact_event
from storyforge.core.models.artifact import TOP_SECTION_PATHS, StoryArtifact
from storyforge.core.models.graph import SystemGraph
from storyforge.core.models.patch import PatchMetrics
from storyforge.core.models.relationship import Relationship
from storyforge.core.models.reports import JudgeRubric
from storyforge.core.rendering import StoryRenderer
from storyforge.domain.patching.orchestrator import PatchOrchestrator
from storyforge.utils.logging import get_logger

logger = get_logger("refinement.quality_gate")

DEFAULT_THRESHOLD = 3.5
LOW_QUALITY_REASON = "low-quality-after-rewrite"


class GateState(str, Enum):
    """States of the judge/rewrite state machine."""
    GENERATED = "generated"
    JUDGED = "judged"
    REWRITTEN = "rewritten"
    REJUDGED = "re-judged"
    ACCEPTED = "accepted"
    FLAGGED = "flagged"


@dataclass
class GateOutcome:
    """Terminal result of one pass through the gate."""

    artifact: StoryArtifact
    state: GateState
    rubrics: list[JudgeRubric] = field(default_factory=list)
    judge_calls: int = 0
    rewrite_calls: int = 0
    patch_metrics: PatchMetrics | None = None
    needs_manual_review: dict[str, Any] | None = None

    @property
    def accepted(self) -> bool:
        return self.state == GateState.ACCEPTED

    @property
    def flagged(self) -> bool:
        return self.state == GateState.FLAGGED

    @property
    def rubric(self) -> JudgeRubric | None:
        """The latest judgment."""
        return self.rubrics[-1] if self.rubrics else None

    @property
    def relationships(self) -> list[Relationship]:
        """Relationships reported by any judgment, first sighting first."""
        return [relationship for relationship, _ in self.scored_relationships()]

    def scored_relationships(self) -> list[tuple[Relationship, float]]:
        """Every relationship across all judgments with its effective confidence.

        A relationship reported by both judgments is kept once, at the higher
        of its two confidences.
        """
        scored: dict[str, tuple[Relationship, float]] = {}
        unkeyed: list[tuple[Relationship, float]] = []
        for rubric in self.rubrics:
            for relationship in rubric.new_relationships:
                confidence = rubric.effective_confidence(relationship)
                key = relationship.key()
                if not key:
                    unkeyed.append((relationship, confidence))
                elif key not in scored or confidence > scored[key][1]:
                    scored[key] = (relationship, confidence)
        return list(scored.values()) + unkeyed


class QualityGate:
    """Bounded judge -> rewrite -> re-judge protocol.

    Usage:
        gate = QualityGate(judge, rewriter)
        outcome = await gate.run(artifact, graph)
        if outcome.flagged:
            print(outcome.needs_manual_review)
    """

    def __init__(
        self,
        judge: JudgeAgent,
        rewriter: RewriterAgent,
        threshold: float = DEFAULT_THRESHOLD,
        patcher: PatchOrchestrator | None = None,
        renderer: StoryRenderer | None = None,
        event_bus: EventBus | None = None,
    ):
        self.judge = judge
        self.rewriter = rewriter
        self.threshold = threshold
        self.patcher = patcher or PatchOrchestrator()
        self.renderer = renderer or StoryRenderer()
        self.event_bus = event_bus

    async def run(self, artifact: StoryArtifact, graph: SystemGraph) -> GateOutcome:
        """Drive one generated artifact to a terminal state.

        Raises:
            StructuredOutputError: If a judge or rewrite reply is malformed
        """
        outcome = GateOutcome(artifact=artifact, state=GateState.GENERATED)

        # generated -> judged
        rubric = await self._judge(outcome, graph)
        outcome.state = GateState.JUDGED
        if rubric.overall_score >= self.threshold:
            outcome.state = GateState.ACCEPTED
            return outcome

        # judged -> rewritten
        patches = await self.rewriter.rewrite(outcome.artifact, rubric, graph)
        outcome.rewrite_calls += 1
        outcome.artifact, outcome.patch_metrics = self.patcher.apply(
            outcome.artifact, patches, TOP_SECTION_PATHS,
        )
        outcome.state = GateState.REWRITTEN
        logger.debug(
            f"Rewrite for {artifact.id}: {outcome.patch_metrics.applied}/"
            f"{outcome.patch_metrics.total_patches} patches applied"
        )

        # rewritten -> re-judged
        rubric = await self._judge(outcome, graph)
        outcome.state = GateState.REJUDGED
        if rubric.overall_score >= self.threshold:
            outcome.state = GateState.ACCEPTED
            return outcome

        outcome.state = GateState.FLAGGED
        outcome.needs_manual_review = {
            "reason": LOW_QUALITY_REASON,
            "score": rubric.overall_score,
        }
        logger.warning(
            f"Artifact {artifact.id} flagged for manual review "
            f"(score {rubric.overall_score} < {self.threshold} after rewrite)"
        )
        if self.event_bus is not None:
            await self.event_bus.publish(
                TOPIC_ARTIFACT_FLAGGED,
                create_artifact_event(artifact.id, rubric.overall_score, LOW_QUALITY_REASON),
            )
        return outcome

    async def _judge(self, outcome: GateOutcome, graph: SystemGraph) -> JudgeRubric:
        markdown = self.renderer.to_markdown(outcome.artifact)
        rubric = await self.judge.judge_story(markdown, graph)
        outcome.judge_calls += 1
        outcome.rubrics.append(rubric)
        return rubric
