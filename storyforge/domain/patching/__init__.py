"""Validated, copy-on-write patching of StoryArtifacts."""

from storyforge.domain.patching.orchestrator import PatchOrchestrator
from storyforge.domain.patching.validator import MAX_TEXT_LENGTH, PatchValidator

__all__ = ["MAX_TEXT_LENGTH", "PatchOrchestrator", "PatchValidator"]
