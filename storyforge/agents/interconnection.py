"""
Interconnection Agent - extracts cross-references for one artifact.
"""

from __future__ import annotations

from storyforge.agents.base import Agent
from storyforge.core.models.graph import SystemGraph
from storyforge.core.models.reports import StoryInterconnections


class InterconnectionAgent(Agent):
    prompt_name = "interconnection"
    stage = "interconnection"

    async def extract(
        self,
        artifact_id: str,
        markdown: str,
        graph: SystemGraph,
        sibling_ids: list[str],
    ) -> StoryInterconnections:
        """Map UI terms, contract dependencies, ownership and related artifacts.

        Raises:
            StructuredOutputError: If the reply is not valid cross-reference data
        """
        result = await self._generate_model(
            StoryInterconnections,
            artifact_id=artifact_id,
            story=markdown,
            system_context=graph.summary(),
            sibling_ids=sibling_ids,
        )
        return result.model_copy(update={"story_id": artifact_id})
