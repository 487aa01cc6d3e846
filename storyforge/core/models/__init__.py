"""StoryForge data models."""

from storyforge.core.models.artifact import (
    ImplementationNotes,
    Item,
    PatchPath,
    StoryArtifact,
    StoryLines,
)
from storyforge.core.models.base import WireModel
from storyforge.core.models.graph import (
    Component,
    ComponentRole,
    CompositionEdge,
    CoordinationEdge,
    DataFlow,
    Event,
    StandardState,
    StateModel,
    SystemGraph,
)
from storyforge.core.models.patch import (
    AddPatch,
    Patch,
    PatchMatch,
    PatchMetadata,
    PatchMetrics,
    RemovePatch,
    ReplacePatch,
    ValidationResult,
    parse_patch,
    parse_patches,
)
from storyforge.core.models.relationship import (
    ManualReviewItem,
    MergeResult,
    Relationship,
    RelationshipOperation,
    SkippedRelationship,
)
from storyforge.core.models.reports import (
    ConsistencyIssue,
    ConsistencyReport,
    FixPatch,
    FixType,
    FlaggedFix,
    JudgeRubric,
    Ownership,
    RelatedStory,
    StoryInterconnections,
)

__all__ = [
    "WireModel",
    # Artifact
    "ImplementationNotes",
    "Item",
    "PatchPath",
    "StoryArtifact",
    "StoryLines",
    # Graph
    "Component",
    "ComponentRole",
    "CompositionEdge",
    "CoordinationEdge",
    "DataFlow",
    "Event",
    "StandardState",
    "StateModel",
    "SystemGraph",
    # Patches
    "AddPatch",
    "Patch",
    "PatchMatch",
    "PatchMetadata",
    "PatchMetrics",
    "RemovePatch",
    "ReplacePatch",
    "ValidationResult",
    "parse_patch",
    "parse_patches",
    # Relationships
    "ManualReviewItem",
    "MergeResult",
    "Relationship",
    "RelationshipOperation",
    "SkippedRelationship",
    # Reports
    "ConsistencyIssue",
    "ConsistencyReport",
    "FixPatch",
    "FixType",
    "FlaggedFix",
    "JudgeRubric",
    "Ownership",
    "RelatedStory",
    "StoryInterconnections",
]
