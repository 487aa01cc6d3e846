"""Canonical event definitions for StoryForge."""

from __future__ import annotations

from typing import Any, Dict

from .event_bus import EventPayload

# Streaming progress
TOPIC_STREAM_START = "stream.start"
TOPIC_STREAM_CHUNK = "stream.chunk"
TOPIC_STREAM_COMPLETE = "stream.complete"
TOPIC_STREAM_ERROR = "stream.error"

# Pipeline progress
TOPIC_PASS_STARTED = "pass.started"
TOPIC_PASS_COMPLETED = "pass.completed"
TOPIC_GRAPH_UPDATED = "graph.updated"
TOPIC_ARTIFACT_GENERATED = "artifact.generated"
TOPIC_ARTIFACT_FLAGGED = "artifact.flagged"


def create_pass_event(pass_name: str, **details: Any) -> EventPayload:
    """Create a pass started/completed event."""
    return {"pass": pass_name, **details}


def create_graph_updated_event(graph_stats: Dict[str, Any], round_number: int | None = None) -> EventPayload:
    """Create a graph updated event."""
    event: EventPayload = {"graph_stats": graph_stats}
    if round_number is not None:
        event["round"] = round_number
    return event


def create_artifact_event(artifact_id: str, score: float | None = None, reason: str | None = None) -> EventPayload:
    """Create an artifact generated/flagged event."""
    event: EventPayload = {"artifact_id": artifact_id}
    if score is not None:
        event["score"] = score
    if reason is not None:
        event["reason"] = reason
    return event
