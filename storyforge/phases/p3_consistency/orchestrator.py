"""
Global Consistency Pass Orchestrator for StoryForge.

Pass 3: a single, non-iterating contradiction scan over the whole corpus.
A proposed fix is auto-applied only when its type is on the safe list and
its confidence is above the threshold; every other fix is flagged for
manual review with a reason. Nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from storyforge.agents.judge import JudgeAgent
from storyforge.core.event_bus import EventBus
from storyforge.core.events import TOPIC_PASS_COMPLETED, TOPIC_PASS_STARTED, create_pass_event
from storyforge.core.models.artifact import StoryArtifact
from storyforge.core.models.graph import SystemGraph
from storyforge.core.models.reports import (
    ConsistencyReport,
    FixPatch,
    FixType,
    FlaggedFix,
    StoryInterconnections,
)
from storyforge.core.rendering import StoryRenderer
from storyforge.domain.patching.orchestrator import PatchOrchestrator
from storyforge.utils.logging import get_logger

logger = get_logger("consistency")

PASS_NAME = "consistency"
DEFAULT_AUTO_APPLY_THRESHOLD = 0.8
SAFE_FIX_TYPES = frozenset(t.value for t in FixType)


@dataclass
class ConsistencyResult:
    """Report plus the corpus after auto-applied fixes."""

    report: ConsistencyReport
    artifacts: dict[str, StoryArtifact]
    applied: list[FixPatch] = field(default_factory=list)
    flagged: list[FlaggedFix] = field(default_factory=list)


class ConsistencyOrchestrator:
    """Runs the global judge once and gates its fixes.

    Usage:
        orchestrator = ConsistencyOrchestrator(judge)
        result = await orchestrator.run(artifacts, interconnections, graph)
        for flagged in result.flagged:
            print(flagged.reason, flagged.fix.artifact_id)
    """

    def __init__(
        self,
        judge: JudgeAgent,
        auto_apply_threshold: float = DEFAULT_AUTO_APPLY_THRESHOLD,
        safe_fix_types: frozenset[str] | set[str] | list[str] | None = None,
        patcher: PatchOrchestrator | None = None,
        renderer: StoryRenderer | None = None,
        event_bus: EventBus | None = None,
    ):
        self.judge = judge
        self.auto_apply_threshold = auto_apply_threshold
        self.safe_fix_types = SAFE_FIX_TYPES
        if safe_fix_types is not None:
            configured = frozenset(safe_fix_types)
            unknown = configured - SAFE_FIX_TYPES
            if unknown:
                logger.warning(
                    f"Ignoring fix types that are never auto-applied: {', '.join(sorted(unknown))}"
                )
            self.safe_fix_types = configured & SAFE_FIX_TYPES
        self.patcher = patcher or PatchOrchestrator()
        self.renderer = renderer or StoryRenderer()
        self.event_bus = event_bus

    async def run(
        self,
        artifacts: dict[str, StoryArtifact],
        interconnections: dict[str, StoryInterconnections],
        graph: SystemGraph,
    ) -> ConsistencyResult:
        """Scan the corpus and apply the safe, confident fixes.

        Args:
            artifacts: Artifact ID -> artifact (not mutated)
            interconnections: Artifact ID -> cross-reference metadata
            graph: Final graph

        Raises:
            StructuredOutputError: If the consistency reply is malformed
        """
        if self.event_bus is not None:
            await self.event_bus.publish(
                TOPIC_PASS_STARTED, create_pass_event(PASS_NAME, artifacts=len(artifacts)),
            )

        stories = {
            artifact_id: self.renderer.to_markdown(artifact, interconnections.get(artifact_id))
            for artifact_id, artifact in artifacts.items()
        }
        report = await self.judge.judge_global_consistency(stories, graph)
        logger.info(
            f"Consistency scan: {len(report.issues)} issue(s), {len(report.fixes)} fix(es) proposed"
        )

        result = self.apply_fixes(report, artifacts)

        if self.event_bus is not None:
            await self.event_bus.publish(
                TOPIC_PASS_COMPLETED,
                create_pass_event(
                    PASS_NAME, applied=len(result.applied), flagged=len(result.flagged),
                ),
            )
        return result

    def apply_fixes(
        self,
        report: ConsistencyReport,
        artifacts: dict[str, StoryArtifact],
    ) -> ConsistencyResult:
        """Gate and apply every fix in a report, each scoped to its artifact."""
        result = ConsistencyResult(report=report, artifacts=dict(artifacts))

        for fix in report.fixes:
            if fix.type not in self.safe_fix_types:
                self._flag(result, fix, "unsafe fix type")
                continue
            if fix.confidence <= self.auto_apply_threshold:
                self._flag(result, fix, "low confidence")
                continue

            target = result.artifacts.get(fix.artifact_id)
            if target is None:
                self._flag(result, fix, "artifact not found")
                continue

            updated, metrics = self.patcher.apply(target, [fix.to_patch()], [fix.path])
            if metrics.applied == 0:
                logger.debug(
                    f"Fix for {fix.artifact_id} rejected: {'; '.join(metrics.rejected_reasons)}"
                )
                self._flag(result, fix, "patch application failed")
                continue

            result.artifacts[fix.artifact_id] = updated
            result.applied.append(fix)
            logger.info(f"Auto-applied fix: {fix.type} to {fix.artifact_id}")

        return result

    def _flag(self, result: ConsistencyResult, fix: FixPatch, reason: str) -> None:
        result.flagged.append(FlaggedFix(fix=fix, reason=reason))
        logger.warning(
            f"Fix flagged for manual review: {fix.type} for {fix.artifact_id} ({reason})"
        )
