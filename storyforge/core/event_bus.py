"""
Async publish/subscribe hub for StoryForge progress events.

Passes publish progress (pass started/completed, graph updated, artifact
flagged, stream chunks) without knowing who listens. Each handler runs as its
own task: a slow or failing subscriber never blocks or fails the publishing
pass, and `drain()` waits for everything dispatched so far.
"""

from __future__ import annotations

import asyncio
from collections import Counter, defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Set, TypeAlias

from storyforge.utils.logging import get_logger

EventPayload: TypeAlias = Dict[str, Any]
EventHandler: TypeAlias = Callable[[EventPayload], Awaitable[None]]

logger = get_logger("core.event_bus")


class EventBus:
    """Topic-keyed PubSub hub.

    Subscriptions are kept in registration order and a handler is registered
    at most once per topic. All methods must be called from the event loop
    that runs the pipeline.

    Usage:
        bus = EventBus()
        await bus.subscribe(TOPIC_PASS_STARTED, on_pass_started)
        ...
        await bus.drain()
        print(bus.published[TOPIC_PASS_STARTED])
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._pending: Set[asyncio.Task] = set()
        self.published: Counter[str] = Counter()
        self.failures = 0

    async def subscribe(self, topic: str, handler: EventHandler) -> None:
        """Register an async handler for a topic."""
        handlers = self._subscribers[topic]
        if handler not in handlers:
            handlers.append(handler)

    async def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        """Remove a handler from a topic; unknown handlers are ignored."""
        handlers = self._subscribers.get(topic)
        if handlers and handler in handlers:
            handlers.remove(handler)

    async def publish(self, topic: str, payload: EventPayload) -> None:
        """Schedule every subscriber of `topic` with the payload."""
        self.published[topic] += 1
        handlers = list(self._subscribers.get(topic, ()))
        if not handlers:
            logger.debug(f"No subscribers for topic '{topic}'")
            return

        for handler in handlers:
            task = asyncio.create_task(self._dispatch(topic, handler, payload))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait until every dispatched handler (and any it publishes) has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _dispatch(self, topic: str, handler: EventHandler, payload: EventPayload) -> None:
        try:
            await handler(payload)
        except Exception:
            self.failures += 1
            handler_name = getattr(handler, "__name__", repr(handler))
            logger.exception(f"EventBus handler '{handler_name}' failed on topic '{topic}'")

    def topics(self) -> list[str]:
        """Topics that currently have at least one subscriber."""
        return [topic for topic, handlers in self._subscribers.items() if handlers]

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._subscribers.clear()
