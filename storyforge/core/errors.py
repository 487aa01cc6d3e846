"""
Exception hierarchy for StoryForge.

Structural failures of the external collaborator are exceptions and fail the
enclosing pass. Patch, merge and fix rejections are reported as values and
never raise.
"""

from __future__ import annotations


class StoryForgeError(Exception):
    """Base exception for all StoryForge errors."""
    pass


class StructuredOutputError(StoryForgeError):
    """A collaborator response had no parseable JSON or broke its contract."""

    def __init__(self, stage: str, message: str, raw: str | None = None):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.raw = raw


class InputValidationError(StoryForgeError):
    """Caller supplied unusable input (e.g. no unit descriptions)."""
    pass

