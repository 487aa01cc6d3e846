"""Core StoryForge types: models, errors, event bus, rendering."""

from storyforge.core.errors import (
    InputValidationError,
    StoryForgeError,
    StructuredOutputError,
)
from storyforge.core.event_bus import EventBus
from storyforge.core.rendering import StoryRenderer

__all__ = [
    "EventBus",
    "InputValidationError",
    "StoryForgeError",
    "StoryRenderer",
    "StructuredOutputError",
]
