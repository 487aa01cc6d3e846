"""
Generator Agent - produces one StoryArtifact from a unit description.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from storyforge.agents.base import Agent
from storyforge.core.errors import StructuredOutputError
from storyforge.core.models.artifact import StoryArtifact
from storyforge.core.models.graph import SystemGraph
from storyforge.domain.patching.validator import PatchValidator
from storyforge.utils.logging import get_logger

logger = get_logger("agents.generator")


class GeneratorAgent(Agent):
    prompt_name = "generation"
    stage = "generation"

    def __init__(self, *args: Any, validator: PatchValidator | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.validator = validator or PatchValidator()

    async def generate(
        self,
        description: str,
        graph: SystemGraph,
        artifact_id: str,
    ) -> StoryArtifact:
        """Generate an artifact against a graph snapshot.

        The reply must hold a title, all three story lines and list items
        that meet the same ID and text rules patches are held to. The
        returned artifact carries the graph digest it was built against.

        Raises:
            StructuredOutputError: If the reply is not a valid artifact
        """
        artifact = await self._generate_model(
            StoryArtifact,
            description=description,
            system_context=graph.summary(),
            artifact_id=artifact_id,
        )
        check = self.validator.check_artifact(artifact)
        if not check.valid:
            logger.error(f"Generated {artifact_id} breaks the artifact contract: {check.errors}")
            raise StructuredOutputError(self.stage, "; ".join(check.errors))

        return artifact.model_copy(update={
            "id": artifact_id,
            "graph_digest": graph.digest(),
            "generated_at": datetime.now(UTC).isoformat(),
        })
