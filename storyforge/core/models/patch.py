"""
Patch Models for StoryForge.

A patch is a single structured edit to a StoryArtifact. The `op` field is the
discriminator: each variant carries only the fields its operation needs, and
the payload is parsed into a concrete variant before any validation or
structural change happens.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter

from storyforge.core.models.artifact import Item
from storyforge.core.models.base import WireModel


# ============================================================================
# Patch parts
# ============================================================================


class PatchMatch(WireModel):
    """Selects the existing element a replace/remove targets."""

    id: str | None = None
    text_equals: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.id and self.text_equals is None


class PatchMetadata(WireModel):
    advisor_id: str = ""
    reasoning: str | None = None


# ============================================================================
# Variants
# ============================================================================


class AddPatch(WireModel):
    """Append a new item to a list section."""

    op: Literal["add"] = "add"
    path: str = ""
    item: Item = Field(default_factory=Item)
    metadata: PatchMetadata = Field(default_factory=PatchMetadata)


class ReplacePatch(WireModel):
    """Replace the matched item (or a story line) with new content."""

    op: Literal["replace"] = "replace"
    path: str = ""
    item: Item = Field(default_factory=Item)
    match: PatchMatch | None = None
    metadata: PatchMetadata = Field(default_factory=PatchMetadata)


class RemovePatch(WireModel):
    """Remove the matched item from a list section."""

    op: Literal["remove"] = "remove"
    path: str = ""
    match: PatchMatch | None = None
    metadata: PatchMetadata = Field(default_factory=PatchMetadata)


Patch = Annotated[Union[AddPatch, ReplacePatch, RemovePatch], Field(discriminator="op")]

_patch_adapter: TypeAdapter[Patch] = TypeAdapter(Patch)
_patch_list_adapter: TypeAdapter[list[Patch]] = TypeAdapter(list[Patch])


def parse_patch(data: dict[str, Any]) -> AddPatch | ReplacePatch | RemovePatch:
    """Parse a raw patch payload into its concrete variant.

    Raises:
        pydantic.ValidationError: If `op` is missing or unknown
    """
    return _patch_adapter.validate_python(data)


def parse_patches(data: list[dict[str, Any]]) -> list[AddPatch | ReplacePatch | RemovePatch]:
    """Parse a list of raw patch payloads."""
    return _patch_list_adapter.validate_python(data)


# ============================================================================
# Results
# ============================================================================


class ValidationResult(WireModel):
    """Outcome of validating a single patch."""

    valid: bool
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, *errors: str) -> "ValidationResult":
        return cls(valid=False, errors=list(errors))


class PatchMetrics(WireModel):
    """Cumulative counts for one orchestrator batch."""

    total_patches: int = 0
    applied: int = 0
    rejected_path: int = 0
    rejected_validation: int = 0
    rejected_reasons: list[str] = Field(default_factory=list)

    @property
    def rejected(self) -> int:
        return self.rejected_path + self.rejected_validation
