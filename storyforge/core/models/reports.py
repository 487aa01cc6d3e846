"""
Judge, Cross-Reference and Consistency Report Models for StoryForge.

These are the contracts the external collaborator must satisfy. Responses are
validated into these models; anything that fails validation is a structural
failure of the enclosing pass.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import AliasChoices, Field, field_validator

from storyforge.core.models.artifact import Item
from storyforge.core.models.base import WireModel
from storyforge.core.models.patch import (
    AddPatch,
    PatchMatch,
    PatchMetadata,
    ReplacePatch,
)
from storyforge.core.models.relationship import Relationship

Confidence = Annotated[float, Field(ge=0, le=1)]

# ============================================================================
# Judge rubric
# ============================================================================


class SectionViolation(WireModel):
    section: str = ""
    quote: str = ""
    suggested_rewrite: str = ""


class SectionSeparationScore(WireModel):
    score: float = Field(ge=0, le=5)
    reasoning: str = ""
    violations: list[SectionViolation] = Field(default_factory=list)

    @field_validator("violations", mode="before")
    @classmethod
    def _coerce_string_violations(cls, value):
        # Plain strings are accepted as quote-only violations
        if isinstance(value, list):
            return [
                {"quote": v} if isinstance(v, str) else v
                for v in value
            ]
        return value


class CorrectnessScore(WireModel):
    score: float = Field(ge=0, le=5)
    reasoning: str = ""
    hallucinations: list[str] = Field(default_factory=list)


class DimensionScore(WireModel):
    score: float = Field(ge=0, le=5)
    reasoning: str = ""


class TestabilityScore(WireModel):
    outcome_ac: DimensionScore = Field(alias="outcomeAC")
    system_ac: DimensionScore = Field(alias="systemAC")


class CompletenessScore(WireModel):
    score: float = Field(ge=0, le=5)
    reasoning: str = ""
    missing_elements: list[str] = Field(default_factory=list)


class JudgeRubric(WireModel):
    """Judge verdict for one artifact, plus discovered relationships."""

    section_separation: SectionSeparationScore
    correctness_vs_system_context: CorrectnessScore
    testability: TestabilityScore
    completeness: CompletenessScore
    overall_score: float = Field(ge=0, le=5)
    recommendation: Literal["approve", "rewrite", "manual-review"] = "approve"
    new_relationships: list[Relationship] = Field(default_factory=list)
    needs_system_context_update: bool = False
    confidence_by_relationship: dict[str, Confidence] = Field(default_factory=dict)

    def effective_confidence(self, relationship: Relationship) -> float:
        """Relationship's own confidence, else the rubric map entry, else 0."""
        if relationship.confidence is not None:
            return relationship.confidence
        return self.confidence_by_relationship.get(relationship.key(), 0.0)

    def violation_summaries(self) -> list[str]:
        """Flattened violation descriptions for the rewriter."""
        summaries = []
        for violation in self.section_separation.violations:
            text = f"[{violation.section or 'unknown'}] {violation.quote}"
            if violation.suggested_rewrite:
                text += f" -> {violation.suggested_rewrite}"
            summaries.append(text)
        return summaries


# ============================================================================
# Cross-references
# ============================================================================


class Ownership(WireModel):
    owns_state: list[str] = Field(default_factory=list)
    consumes_state: list[str] = Field(default_factory=list)
    emits_events: list[str] = Field(default_factory=list)
    listens_to_events: list[str] = Field(default_factory=list)


class RelatedStory(WireModel):
    id: str = Field(validation_alias=AliasChoices("id", "storyId"))
    relationship: Literal["prerequisite", "parallel", "dependent", "related"]
    description: str = ""


class StoryInterconnections(WireModel):
    """Cross-reference metadata for one artifact."""

    story_id: str = ""
    ui_mapping: dict[str, str] = Field(default_factory=dict)
    contract_dependencies: list[str] = Field(default_factory=list)
    ownership: Ownership = Field(default_factory=Ownership)
    related_stories: list[RelatedStory] = Field(default_factory=list)


# ============================================================================
# Global consistency
# ============================================================================


class FixType(str, Enum):
    NORMALIZE_TERM_TO_VOCABULARY = "normalize-term-to-vocabulary"
    NORMALIZE_CONTRACT_ID = "normalize-contract-id"
    ADD_BIDIRECTIONAL_LINK = "add-bidirectional-link"


class ConsistencyIssue(WireModel):
    description: str
    suggested_fix_type: str = ""
    confidence: float = Field(default=0.0, ge=0, le=1)
    affected_artifacts: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("affectedArtifacts", "affectedStories", "affected_artifacts"),
    )


class FixPatch(WireModel):
    """A proposed fix: one patch against one artifact."""

    type: str
    artifact_id: str = Field(
        validation_alias=AliasChoices("artifactId", "storyId", "artifact_id"),
    )
    path: str
    operation: Literal["add", "replace"]
    item: Item | None = None
    match: PatchMatch | None = None
    confidence: float = Field(default=0.0, ge=0, le=1)
    reasoning: str = ""

    def to_patch(self) -> AddPatch | ReplacePatch:
        """Build the artifact patch this fix describes."""
        metadata = PatchMetadata(advisor_id="global-consistency", reasoning=self.reasoning)
        item = self.item or Item()
        if self.operation == "add":
            return AddPatch(path=self.path, item=item, metadata=metadata)
        return ReplacePatch(path=self.path, item=item, match=self.match, metadata=metadata)


class ConsistencyReport(WireModel):
    issues: list[ConsistencyIssue] = Field(default_factory=list)
    fixes: list[FixPatch] = Field(default_factory=list)


class FlaggedFix(WireModel):
    fix: FixPatch
    reason: Literal[
        "low confidence",
        "unsafe fix type",
        "artifact not found",
        "patch application failed",
    ]
