"""
Discovery Agent - finds the entities mentioned across all unit descriptions.

The model only reports mentions and canonical names; it never invents IDs.
IDs are minted afterwards by the discovery pass through the caller's registry.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from storyforge.agents.base import Agent
from storyforge.core.models.base import WireModel


class Mentions(WireModel):
    components: list[str] = Field(default_factory=list)
    state_models: list[str] = Field(default_factory=list)
    events: list[str] = Field(default_factory=list)
    data_flows: list[str] = Field(default_factory=list)


class DiscoveryMentions(WireModel):
    """Raw discovery reply: mentions per type plus naming evidence."""

    mentions: Mentions
    canonical_names: dict[str, list[str]] = Field(default_factory=dict)
    evidence: dict[str, Any] = Field(default_factory=dict)
    vocabulary: dict[str, str] = Field(default_factory=dict)

    def canonical_for(self, mention: str) -> str:
        """Resolve a raw mention to its canonical name (itself if unlisted)."""
        if mention in self.canonical_names:
            return mention
        for canonical, variants in self.canonical_names.items():
            if mention in variants:
                return canonical
        return mention


class DiscoveryAgent(Agent):
    """Pass-0 agent: one call over the whole description set."""

    prompt_name = "discovery"
    stage = "discovery"

    async def discover(
        self,
        descriptions: list[str],
        reference_documents: list[str] | None = None,
        image_names: list[str] | None = None,
    ) -> DiscoveryMentions:
        """Extract mentions, canonical names and vocabulary.

        Raises:
            StructuredOutputError: If the reply is not a valid mentions object
        """
        return await self._generate_model(
            DiscoveryMentions,
            descriptions=descriptions,
            reference_documents=reference_documents or [],
            image_names=image_names or [],
        )
