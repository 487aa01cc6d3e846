"""
Pipeline Orchestrator for StoryForge.

Sequences the passes:

    discovery -> refinement (generation + quality gate rounds)
              -> cross-references -> global consistency

Each pass takes the latest graph and artifacts and returns new values, so a
failure in one pass never leaves a half-updated value behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from storyforge.agents.discovery import DiscoveryAgent
from storyforge.agents.generator import GeneratorAgent
from storyforge.agents.interconnection import InterconnectionAgent
from storyforge.agents.judge import JudgeAgent
from storyforge.agents.rewriter import RewriterAgent
from storyforge.app.config import StoryForgeConfig
from storyforge.core.event_bus import EventBus
from storyforge.core.models.artifact import StoryArtifact
from storyforge.core.models.graph import SystemGraph
from storyforge.core.models.reports import (
    ConsistencyReport,
    FixPatch,
    FlaggedFix,
    JudgeRubric,
    StoryInterconnections,
)
from storyforge.core.rendering import StoryRenderer
from storyforge.domain.patching.orchestrator import PatchOrchestrator
from storyforge.domain.patching.validator import PatchValidator
from storyforge.infrastructure.llm.base import LLMProvider
from storyforge.phases.p0_discovery.orchestrator import DiscoveryOrchestrator
from storyforge.phases.p1_refinement.loop import RefinementLoop
from storyforge.phases.p1_refinement.quality_gate import QualityGate
from storyforge.phases.p2_interconnection.orchestrator import InterconnectionOrchestrator
from storyforge.phases.p3_consistency.orchestrator import ConsistencyOrchestrator
from storyforge.utils.ids import IdRegistry
from storyforge.utils.logging import get_logger, log_context

logger = get_logger("pipeline")

ARTIFACT_ID_FORMAT = "STORY-{:03d}"


def artifact_id_for(index: int) -> str:
    """Artifact ID for the 1-based position of a unit description."""
    return ARTIFACT_ID_FORMAT.format(index)


@dataclass
class PipelineResult:
    """Everything the pipeline produced."""

    artifacts: dict[str, StoryArtifact]
    graph: SystemGraph
    interconnections: dict[str, StoryInterconnections] = field(default_factory=dict)
    judge_results: dict[str, list[JudgeRubric]] = field(default_factory=dict)
    manual_review: dict[str, dict[str, Any]] = field(default_factory=dict)
    consistency_report: ConsistencyReport | None = None
    applied_fixes: list[FixPatch] = field(default_factory=list)
    flagged_fixes: list[FlaggedFix] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def render(self, renderer: StoryRenderer | None = None) -> dict[str, str]:
        """Markdown for every artifact, including its cross-references."""
        renderer = renderer or StoryRenderer()
        return {
            artifact_id: renderer.to_markdown(artifact, self.interconnections.get(artifact_id))
            for artifact_id, artifact in self.artifacts.items()
        }

    def to_dict(self) -> dict[str, Any]:
        """Serializable view of the result."""
        return {
            "artifacts": {k: v.to_wire() for k, v in self.artifacts.items()},
            "graph": self.graph.to_wire(),
            "interconnections": {k: v.to_wire() for k, v in self.interconnections.items()},
            "judgeResults": {
                k: [r.to_wire() for r in rubrics] for k, rubrics in self.judge_results.items()
            },
            "manualReview": self.manual_review,
            "consistencyReport": (
                self.consistency_report.to_wire() if self.consistency_report else None
            ),
            "appliedFixes": [f.to_wire() for f in self.applied_fixes],
            "flaggedFixes": [f.to_wire() for f in self.flagged_fixes],
            "metadata": self.metadata,
        }


class PipelineOrchestrator:
    """Runs all passes against one LLM provider.

    Usage:
        async with OpenRouterProvider() as llm:
            pipeline = PipelineOrchestrator(llm, config)
            result = await pipeline.run(["As a user I want to log in"])
    """

    def __init__(
        self,
        llm: LLMProvider,
        config: StoryForgeConfig | None = None,
        registry: IdRegistry | None = None,
        event_bus: EventBus | None = None,
        stream: bool = False,
    ):
        self.config = config or StoryForgeConfig()
        self.registry = registry if registry is not None else IdRegistry()
        self.event_bus = event_bus

        llm_config = self.config.llm
        agent_kwargs: dict[str, Any] = {
            "model": llm_config.model,
            "temperature": llm_config.temperature,
            "max_tokens": llm_config.max_tokens,
            "event_bus": event_bus,
            "stream": stream,
        }
        patcher = PatchOrchestrator(PatchValidator(self.config.patch.max_text_length))
        renderer = StoryRenderer()
        judge = JudgeAgent(llm, **agent_kwargs)

        self.discovery = DiscoveryOrchestrator(
            DiscoveryAgent(llm, **agent_kwargs), self.registry, event_bus,
        )
        self.refinement = RefinementLoop(
            GeneratorAgent(llm, validator=patcher.validator, **agent_kwargs),
            QualityGate(
                judge,
                RewriterAgent(llm, **agent_kwargs),
                threshold=self.config.quality_gate.threshold,
                patcher=patcher,
                renderer=renderer,
                event_bus=event_bus,
            ),
            max_rounds=self.config.refinement.max_rounds,
            min_confidence=self.config.refinement.min_relationship_confidence,
            event_bus=event_bus,
        )
        self.interconnection = InterconnectionOrchestrator(
            InterconnectionAgent(llm, **agent_kwargs), renderer, event_bus,
        )
        self.consistency = ConsistencyOrchestrator(
            judge,
            auto_apply_threshold=self.config.consistency.auto_apply_threshold,
            safe_fix_types=self.config.consistency.safe_fix_types,
            patcher=patcher,
            renderer=renderer,
            event_bus=event_bus,
        )

    async def run(
        self,
        descriptions: list[str],
        reference_documents: list[str] | None = None,
        image_names: list[str] | None = None,
    ) -> PipelineResult:
        """Run every pass in order.

        Raises:
            InputValidationError: If the description list is empty or has a blank entry
            StructuredOutputError: If any collaborator reply is malformed
            LLMError: If a provider request fails
        """
        passes_completed = 0

        with log_context("discovery"):
            graph = await self.discovery.run(descriptions, reference_documents, image_names)
        passes_completed += 1

        units = {artifact_id_for(i): text for i, text in enumerate(descriptions, start=1)}
        with log_context("refinement"):
            refined = await self.refinement.run(units, graph)
        passes_completed += 1

        with log_context("interconnection"):
            interconnections = await self.interconnection.run(refined.artifacts, refined.graph)
        passes_completed += 1

        with log_context("consistency"):
            consistency = await self.consistency.run(
                refined.artifacts, interconnections, refined.graph,
            )
        passes_completed += 1

        result = PipelineResult(
            artifacts=consistency.artifacts,
            graph=refined.graph,
            interconnections=interconnections,
            judge_results={aid: o.rubrics for aid, o in refined.outcomes.items()},
            manual_review={
                aid: o.needs_manual_review
                for aid, o in refined.outcomes.items()
                if o.needs_manual_review is not None
            },
            consistency_report=consistency.report,
            applied_fixes=consistency.applied,
            flagged_fixes=consistency.flagged,
            metadata={
                "passes_completed": passes_completed,
                "refinement_rounds": refined.rounds_completed,
                "refinement_status": refined.status.value,
            },
        )
        logger.info(
            f"Pipeline complete: {len(result.artifacts)} artifact(s), "
            f"{len(result.manual_review)} flagged, "
            f"{len(result.applied_fixes)} fix(es) applied, "
            f"{len(result.flagged_fixes)} fix(es) flagged"
        )
        return result
