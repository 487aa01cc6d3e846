"""
Structured Artifact Models for StoryForge.

A StoryArtifact is the structured record of one unit description: a fixed
set of named sections, each either a single text line or an ordered list of
`{id, text}` items whose IDs carry a section-specific prefix. Artifacts are
created by generation and changed only through validated patches.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import Field

from storyforge.core.models.base import WireModel


# ============================================================================
# Section paths
# ============================================================================


class PatchPath(str, Enum):
    """Addressable sections of a StoryArtifact."""
    AS_A = "story.asA"
    I_WANT = "story.iWant"
    SO_THAT = "story.soThat"
    USER_VISIBLE_BEHAVIOR = "userVisibleBehavior"
    OUTCOME_ACCEPTANCE_CRITERIA = "outcomeAcceptanceCriteria"
    SYSTEM_ACCEPTANCE_CRITERIA = "systemAcceptanceCriteria"
    STATE_OWNERSHIP = "implementationNotes.stateOwnership"
    DATA_FLOW = "implementationNotes.dataFlow"
    API_CONTRACTS = "implementationNotes.apiContracts"
    LOADING_STATES = "implementationNotes.loadingStates"
    PERFORMANCE_NOTES = "implementationNotes.performanceNotes"
    SECURITY_NOTES = "implementationNotes.securityNotes"
    TELEMETRY_NOTES = "implementationNotes.telemetryNotes"
    UI_MAPPING = "uiMapping"
    OPEN_QUESTIONS = "openQuestions"
    EDGE_CASES = "edgeCases"
    NON_GOALS = "nonGoals"


# Single-value story lines: replace only, no item.id
LINE_PATHS: frozenset[PatchPath] = frozenset({
    PatchPath.AS_A,
    PatchPath.I_WANT,
    PatchPath.SO_THAT,
})

# Required item.id prefix per list path
PATH_ID_PREFIXES: dict[PatchPath, str] = {
    PatchPath.USER_VISIBLE_BEHAVIOR: "UVB-",
    PatchPath.OUTCOME_ACCEPTANCE_CRITERIA: "AC-OUT-",
    PatchPath.SYSTEM_ACCEPTANCE_CRITERIA: "AC-SYS-",
    PatchPath.STATE_OWNERSHIP: "IMPL-STATE-",
    PatchPath.DATA_FLOW: "IMPL-FLOW-",
    PatchPath.API_CONTRACTS: "IMPL-API-",
    PatchPath.LOADING_STATES: "IMPL-LOAD-",
    PatchPath.PERFORMANCE_NOTES: "IMPL-PERF-",
    PatchPath.SECURITY_NOTES: "IMPL-SEC-",
    PatchPath.TELEMETRY_NOTES: "IMPL-TEL-",
    PatchPath.UI_MAPPING: "UI-MAP-",
    PatchPath.OPEN_QUESTIONS: "QUESTION-",
    PatchPath.EDGE_CASES: "EDGE-",
    PatchPath.NON_GOALS: "NON-GOAL-",
}

ALL_PATHS: tuple[PatchPath, ...] = tuple(PatchPath)

# Sections the quality-gate rewrite may touch
TOP_SECTION_PATHS: tuple[PatchPath, ...] = (
    PatchPath.AS_A,
    PatchPath.I_WANT,
    PatchPath.SO_THAT,
    PatchPath.USER_VISIBLE_BEHAVIOR,
    PatchPath.OUTCOME_ACCEPTANCE_CRITERIA,
)


def is_line_path(path: PatchPath | str) -> bool:
    """True for single-value story lines (asA / iWant / soThat)."""
    try:
        return PatchPath(path) in LINE_PATHS
    except ValueError:
        return False


def expected_id_prefix(path: PatchPath | str) -> str | None:
    """Required item.id prefix for a path, or None for story lines."""
    try:
        return PATH_ID_PREFIXES.get(PatchPath(path))
    except ValueError:
        return None


# ============================================================================
# Sections
# ============================================================================


class Item(WireModel):
    """A list entry with a stable, prefixed ID."""

    id: str = ""
    text: str = ""
    tags: list[str] | None = None
    source_advisor: str | None = None


class StoryLines(WireModel):
    as_a: str = ""
    i_want: str = ""
    so_that: str = ""


class ImplementationNotes(WireModel):
    state_ownership: list[Item] = Field(default_factory=list)
    data_flow: list[Item] = Field(default_factory=list)
    api_contracts: list[Item] = Field(default_factory=list)
    loading_states: list[Item] = Field(default_factory=list)
    performance_notes: list[Item] = Field(default_factory=list)
    security_notes: list[Item] = Field(default_factory=list)
    telemetry_notes: list[Item] = Field(default_factory=list)


# ============================================================================
# Artifact
# ============================================================================


class StoryArtifact(WireModel):
    """One unit's structured record.

    Attributes:
        id: Artifact ID assigned by the pipeline (e.g. 'STORY-001')
        title: Short human-readable title
        story: The As a / I want / So that lines
        graph_digest: Digest of the SystemGraph this was generated against
        generated_at: ISO timestamp of generation
    """

    id: str = ""
    structure_version: str = "1"
    graph_digest: str = ""
    generated_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    title: str = ""
    story: StoryLines = Field(default_factory=StoryLines)
    user_visible_behavior: list[Item] = Field(default_factory=list)
    outcome_acceptance_criteria: list[Item] = Field(default_factory=list)
    system_acceptance_criteria: list[Item] = Field(default_factory=list)
    implementation_notes: ImplementationNotes = Field(default_factory=ImplementationNotes)
    ui_mapping: list[Item] = Field(default_factory=list)
    open_questions: list[Item] = Field(default_factory=list)
    edge_cases: list[Item] = Field(default_factory=list)
    non_goals: list[Item] = Field(default_factory=list)

    def __repr__(self) -> str:
        return f"<StoryArtifact id={self.id} title={self.title!r} digest={self.graph_digest}>"

    def is_stale(self, graph_digest: str) -> bool:
        """True if the artifact was built against a different graph."""
        return self.graph_digest != graph_digest

    def items_at(self, path: PatchPath | str) -> list[Item] | None:
        """Get the item list for a list path (None for story lines)."""
        container, attr = _resolve(self, PatchPath(path))
        if container is None:
            return None
        return getattr(container, attr)

    def line_at(self, path: PatchPath | str) -> str | None:
        """Get the text of a story line path (None for list paths)."""
        path = PatchPath(path)
        if path not in LINE_PATHS:
            return None
        return getattr(self.story, _LINE_ATTRS[path])

    def all_item_ids(self) -> list[str]:
        """Every item ID across all list sections."""
        ids: list[str] = []
        for path in PATH_ID_PREFIXES:
            ids.extend(item.id for item in self.items_at(path) or [])
        return ids


_LINE_ATTRS: dict[PatchPath, str] = {
    PatchPath.AS_A: "as_a",
    PatchPath.I_WANT: "i_want",
    PatchPath.SO_THAT: "so_that",
}

_TOP_LEVEL_ATTRS: dict[PatchPath, str] = {
    PatchPath.USER_VISIBLE_BEHAVIOR: "user_visible_behavior",
    PatchPath.OUTCOME_ACCEPTANCE_CRITERIA: "outcome_acceptance_criteria",
    PatchPath.SYSTEM_ACCEPTANCE_CRITERIA: "system_acceptance_criteria",
    PatchPath.UI_MAPPING: "ui_mapping",
    PatchPath.OPEN_QUESTIONS: "open_questions",
    PatchPath.EDGE_CASES: "edge_cases",
    PatchPath.NON_GOALS: "non_goals",
}

_NOTES_ATTRS: dict[PatchPath, str] = {
    PatchPath.STATE_OWNERSHIP: "state_ownership",
    PatchPath.DATA_FLOW: "data_flow",
    PatchPath.API_CONTRACTS: "api_contracts",
    PatchPath.LOADING_STATES: "loading_states",
    PatchPath.PERFORMANCE_NOTES: "performance_notes",
    PatchPath.SECURITY_NOTES: "security_notes",
    PatchPath.TELEMETRY_NOTES: "telemetry_notes",
}


def _resolve(artifact: StoryArtifact, path: PatchPath) -> tuple[object | None, str]:
    """Map a list path to (owning model, attribute name)."""
    if path in _TOP_LEVEL_ATTRS:
        return artifact, _TOP_LEVEL_ATTRS[path]
    if path in _NOTES_ATTRS:
        return artifact.implementation_notes, _NOTES_ATTRS[path]
    return None, ""


def set_line(artifact: StoryArtifact, path: PatchPath, text: str) -> None:
    """Set a story line in place (callers pass a copy)."""
    setattr(artifact.story, _LINE_ATTRS[path], text)


def set_items(artifact: StoryArtifact, path: PatchPath, items: list[Item]) -> None:
    """Replace a list section in place (callers pass a copy)."""
    container, attr = _resolve(artifact, path)
    if container is None:
        raise KeyError(f"Not a list path: {path.value}")
    setattr(container, attr, items)
