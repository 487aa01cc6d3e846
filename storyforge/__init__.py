"""StoryForge package."""

from .core.event_bus import EventBus

__version__ = "0.1.0"

__all__ = ["EventBus", "__version__"]
