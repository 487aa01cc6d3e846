"""
Rewriter Agent - proposes patches that fix judge-reported violations.

The rewriter never returns a whole new artifact; its patches go through the
PatchOrchestrator like every other change, scoped to the top sections.
"""

from __future__ import annotations

from pydantic import Field, ValidationError

from storyforge.agents.base import Agent
from storyforge.core.errors import StructuredOutputError
from storyforge.core.models.artifact import TOP_SECTION_PATHS, StoryArtifact
from storyforge.core.models.base import WireModel
from storyforge.core.models.graph import SystemGraph
from storyforge.core.models.patch import (
    AddPatch,
    RemovePatch,
    ReplacePatch,
    parse_patches,
)
from storyforge.core.models.reports import JudgeRubric

REWRITER_ADVISOR_ID = "rewriter"


class RewriteReply(WireModel):
    patches: list[dict] = Field(default_factory=list)


class RewriterAgent(Agent):
    prompt_name = "rewrite"
    stage = "rewrite"

    async def rewrite(
        self,
        artifact: StoryArtifact,
        rubric: JudgeRubric,
        graph: SystemGraph,
    ) -> list[AddPatch | ReplacePatch | RemovePatch]:
        """Propose patches for the violations in a rubric.

        Raises:
            StructuredOutputError: If the reply is not a list of patches
        """
        reply = await self._generate_model(
            RewriteReply,
            artifact=artifact.to_wire(),
            violations=rubric.violation_summaries(),
            missing_elements=rubric.completeness.missing_elements,
            allowed_paths=[p.value for p in TOP_SECTION_PATHS],
            system_context=graph.summary(),
        )
        for raw in reply.patches:
            if not isinstance(raw.get("metadata"), dict):
                raw["metadata"] = {}
            raw["metadata"].setdefault("advisorId", REWRITER_ADVISOR_ID)
        try:
            return parse_patches(reply.patches)
        except ValidationError as exc:
            raise StructuredOutputError(self.stage, f"invalid patch in response: {exc}") from exc
