"""Shared test doubles for StoryForge.

`ScriptedLLM` is an in-memory LLMProvider. It recognizes which agent is
calling from the system prompt and answers from a per-stage script, so
pipeline tests run without any network access.
"""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import AsyncGenerator
from typing import Any, Callable

import pytest

from storyforge.agents.prompts.manager import get_prompt_manager
from storyforge.core.models.artifact import StoryArtifact
from storyforge.core.models.graph import Component, SystemGraph
from storyforge.infrastructure.llm.base import LLMProvider

STAGES = ("discovery", "generation", "judge", "rewrite", "interconnection", "consistency")

Reply = str | dict | Callable[[int, list[dict]], Any]


class ScriptedLLM(LLMProvider):
    """Fake provider answering from per-stage scripts.

    A script is a single reply (reused for every call) or a list of replies
    consumed in order, where the last one repeats. A reply is a dict (sent as
    JSON), a raw string, or a callable `(call_index, messages) -> reply`.
    """

    def __init__(self, script: dict[str, Reply | list[Reply]] | None = None):
        super().__init__(api_key="test-key", base_url="http://fake.local/v1")
        self.default_model = "fake/model"
        self.script: dict[str, Reply | list[Reply]] = dict(script or {})
        self.calls: dict[str, int] = defaultdict(int)
        self.requests: list[tuple[str, list[dict]]] = []
        self.closed = False
        prompts = get_prompt_manager()
        self._stage_by_system = {
            prompts.render(f"{stage}.system_prompt"): stage for stage in STAGES
        }

    @property
    def provider_name(self) -> str:
        return "scripted"

    def stage_of(self, messages: list[dict]) -> str:
        return self._stage_by_system.get(messages[0]["content"], "unknown")

    def _reply_for(self, messages: list[dict]) -> str:
        stage = self.stage_of(messages)
        index = self.calls[stage]
        self.calls[stage] += 1
        self.requests.append((stage, messages))

        if stage not in self.script:
            raise AssertionError(f"No scripted reply for stage '{stage}'")
        entry = self.script[stage]
        if isinstance(entry, list):
            entry = entry[min(index, len(entry) - 1)]
        if callable(entry):
            entry = entry(index, messages)
        if isinstance(entry, (dict, list)):
            return json.dumps(entry)
        return str(entry)

    async def complete(
        self,
        messages: list[dict],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        top_p: float = 1.0,
    ) -> dict:
        content = self._reply_for(messages)
        return {
            "model": model,
            "choices": [{"message": {"role": "assistant", "content": content}}],
        }

    async def stream_complete(
        self,
        messages: list[dict],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        top_p: float = 1.0,
    ) -> AsyncGenerator[str, None]:
        content = self._reply_for(messages)
        middle = len(content) // 2
        for piece in (content[:middle], content[middle:]):
            if piece:
                yield piece

    async def close(self) -> None:
        self.closed = True


# ============================================================================
# Payload builders
# ============================================================================


def artifact_payload(title: str = "Log in") -> dict:
    """A well-formed generation reply."""
    return {
        "title": title,
        "story": {
            "asA": "returning customer",
            "iWant": "to log in with my email",
            "soThat": "I can see my orders",
        },
        "userVisibleBehavior": [
            {"id": "UVB-1", "text": "The sign-in form shows email and password fields"},
        ],
        "outcomeAcceptanceCriteria": [
            {"id": "AC-OUT-1", "text": "After signing in the customer sees their orders"},
        ],
        "systemAcceptanceCriteria": [
            {"id": "AC-SYS-1", "text": "COMP-LOGIN-FORM emits E-LOGIN-SUCCEEDED"},
        ],
        "implementationNotes": {
            "stateOwnership": [{"id": "IMPL-STATE-1", "text": "C-STATE-SESSION owned by COMP-LOGIN-FORM"}],
        },
        "uiMapping": [{"id": "UI-MAP-1", "text": "sign-in form | COMP-LOGIN-FORM"}],
        "edgeCases": [{"id": "EDGE-1", "text": "Wrong password shows an inline error"}],
    }


def rubric_payload(
    score: float,
    relationships: list[dict] | None = None,
    violations: list[dict] | None = None,
    confidence_map: dict[str, float] | None = None,
) -> dict:
    """A judge reply with every dimension set to `score`."""
    dimension = {"score": score, "reasoning": "ok"}
    return {
        "sectionSeparation": {"score": score, "reasoning": "ok", "violations": violations or []},
        "correctnessVsSystemContext": {"score": score, "reasoning": "ok", "hallucinations": []},
        "testability": {"outcomeAC": dimension, "systemAC": dimension},
        "completeness": {"score": score, "reasoning": "ok", "missingElements": []},
        "overallScore": score,
        "recommendation": "approve" if score >= 3.5 else "rewrite",
        "newRelationships": relationships or [],
        "needsSystemContextUpdate": bool(relationships),
        "confidenceByRelationship": confidence_map or {},
    }


def node_relationship(node_id: str, name: str, confidence: float | None = 0.9) -> dict:
    return {
        "id": node_id,
        "type": "component",
        "operation": "add_node",
        "canonicalName": name,
        "confidence": confidence,
        "evidence": "mentioned in story",
    }


def discovery_payload(components: list[str], **extra: Any) -> dict:
    payload = {
        "mentions": {"components": components, "stateModels": [], "events": []},
        "canonicalNames": {},
        "evidence": {},
        "vocabulary": {},
    }
    payload.update(extra)
    return payload


def make_graph() -> SystemGraph:
    return SystemGraph(
        components={
            "COMP-LOGIN-FORM": Component(id="COMP-LOGIN-FORM", canonical_name="Login Form"),
            "COMP-HEADER": Component(id="COMP-HEADER", canonical_name="Header"),
        },
        vocabulary={"sign-in": "Log in"},
    )


def make_artifact(artifact_id: str = "STORY-001") -> StoryArtifact:
    artifact = StoryArtifact.model_validate(artifact_payload())
    return artifact.model_copy(update={"id": artifact_id})


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def graph() -> SystemGraph:
    return make_graph()


@pytest.fixture
def artifact() -> StoryArtifact:
    return make_artifact()
