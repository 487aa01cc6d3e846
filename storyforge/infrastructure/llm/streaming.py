"""
Streaming progress reporting for LLM requests.

A StreamingHandler wraps one streamed request and publishes
start -> chunk* -> complete|error events on the EventBus. A failure is
published and then re-raised so it still fails the enclosing pass.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from storyforge.core.event_bus import EventBus
from storyforge.core.events import (
    TOPIC_STREAM_CHUNK,
    TOPIC_STREAM_COMPLETE,
    TOPIC_STREAM_ERROR,
    TOPIC_STREAM_START,
)
from storyforge.infrastructure.llm.models import StreamEvent, StreamEventType

_TOPICS = {
    StreamEventType.START: TOPIC_STREAM_START,
    StreamEventType.CHUNK: TOPIC_STREAM_CHUNK,
    StreamEventType.COMPLETE: TOPIC_STREAM_COMPLETE,
    StreamEventType.ERROR: TOPIC_STREAM_ERROR,
}


class StreamingHandler:
    """Accumulates a streamed response and publishes progress events."""

    def __init__(self, request_id: str, event_bus: EventBus | None = None):
        self.request_id = request_id
        self.event_bus = event_bus
        self.accumulated = ""
        self.events: list[StreamEvent] = []

    async def _emit(self, event: StreamEvent) -> None:
        self.events.append(event)
        if self.event_bus is not None:
            await self.event_bus.publish(_TOPICS[event.type], event.to_dict())

    async def start(self) -> None:
        await self._emit(StreamEvent(StreamEventType.START, self.request_id))

    async def chunk(self, content: str) -> None:
        self.accumulated += content
        await self._emit(StreamEvent(StreamEventType.CHUNK, self.request_id, content=content))

    async def complete(self) -> None:
        await self._emit(
            StreamEvent(StreamEventType.COMPLETE, self.request_id, content=self.accumulated)
        )

    async def error(self, exc: BaseException) -> None:
        await self._emit(StreamEvent(StreamEventType.ERROR, self.request_id, error=str(exc)))

    async def consume(self, stream: AsyncIterator[str]) -> str:
        """Drive a chunk stream to completion and return the full text."""
        await self.start()
        try:
            async for piece in stream:
                await self.chunk(piece)
        except Exception as exc:
            await self.error(exc)
            raise
        await self.complete()
        return self.accumulated
