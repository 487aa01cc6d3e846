"""
Judge Agent - scores artifacts and scans the corpus for contradictions.
"""

from __future__ import annotations

from storyforge.agents.base import Agent
from storyforge.core.models.graph import SystemGraph
from storyforge.core.models.reports import ConsistencyReport, JudgeRubric


class JudgeAgent(Agent):
    """Per-artifact judge and the single global consistency judge."""

    prompt_name = "judge"
    stage = "judge"

    async def judge_story(self, markdown: str, graph: SystemGraph) -> JudgeRubric:
        """Score one rendered artifact and report newly implied relationships.

        Raises:
            StructuredOutputError: If the reply is not a valid rubric
        """
        return await self._generate_model(
            JudgeRubric,
            story=markdown,
            system_context=graph.summary(),
        )

    async def judge_global_consistency(
        self,
        stories: dict[str, str],
        graph: SystemGraph,
    ) -> ConsistencyReport:
        """Compare every artifact against the others and the graph.

        Args:
            stories: Artifact ID -> rendering including cross-reference metadata
            graph: Final graph

        Raises:
            StructuredOutputError: If the reply is not a valid report
        """
        return await self._generate_model(
            ConsistencyReport,
            "consistency",
            stories=stories,
            system_context=graph.summary(),
            vocabulary=graph.vocabulary,
        )
