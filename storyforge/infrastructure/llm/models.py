"""
Data models for LLM interactions in StoryForge.

Defines message types and the streaming progress event.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


# ============================================================================
# Message Types
# ============================================================================


class MessageRole(str, Enum):
    """Message role in conversation."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass
class LLMMessage:
    """A single chat message."""

    role: MessageRole = MessageRole.USER
    content: str = ""

    def to_api_format(self) -> dict[str, str]:
        """Convert to OpenAI-compatible API format."""
        return {
            "role": self.role.value,
            "content": self.content,
        }


# ============================================================================
# Streaming
# ============================================================================


class StreamEventType(str, Enum):
    START = "start"
    CHUNK = "chunk"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class StreamEvent:
    """One progress event of a streamed request."""

    type: StreamEventType
    request_id: str
    content: str = ""
    error: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "request_id": self.request_id,
            "content": self.content,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }
