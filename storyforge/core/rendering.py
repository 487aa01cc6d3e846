"""
Deterministic markdown rendering of StoryArtifacts.

Pure function of the structure: section order and formatting are fixed so the
same artifact always renders to the same text.
"""

from __future__ import annotations

import re

from storyforge.core.models.artifact import Item, StoryArtifact
from storyforge.core.models.reports import StoryInterconnections

_NOTES_ORDER: list[tuple[str, str]] = [
    ("state_ownership", "State ownership"),
    ("data_flow", "Data flow"),
    ("api_contracts", "API contracts"),
    ("loading_states", "Loading states"),
    ("performance_notes", "Performance"),
    ("security_notes", "Security"),
    ("telemetry_notes", "Telemetry"),
]

_OPTIONAL_SECTIONS: list[tuple[str, str]] = [
    ("open_questions", "Open Questions"),
    ("edge_cases", "Edge Cases"),
    ("non_goals", "Non-Goals"),
]

_RELATED_ORDER: list[tuple[str, str]] = [
    ("prerequisite", "Prerequisites"),
    ("parallel", "Parallel"),
    ("dependent", "Dependent"),
    ("related", "Related"),
]


class StoryRenderer:
    """Renders a StoryArtifact to canonical markdown."""

    def to_markdown(
        self,
        artifact: StoryArtifact,
        interconnections: StoryInterconnections | None = None,
    ) -> str:
        lines: list[str] = [
            f"# {_heading(artifact.title)}",
            "",
            f"As a {_inline(artifact.story.as_a)}",
            f"I want {_inline(artifact.story.i_want)}",
            f"So that {_inline(artifact.story.so_that)}",
            "",
            "## User-Visible Behavior",
            "",
            *_items(artifact.user_visible_behavior),
            "",
            "## Acceptance Criteria (Outcome)",
            "",
            *_items(artifact.outcome_acceptance_criteria),
            "",
            "## Acceptance Criteria (System)",
            "",
            *_items(artifact.system_acceptance_criteria),
            "",
            "## Implementation Notes",
            "",
        ]

        for attr, label in _NOTES_ORDER:
            notes = getattr(artifact.implementation_notes, attr)
            if notes:
                lines.extend([f"### {label}", "", *_items(notes), ""])

        if artifact.ui_mapping:
            lines.extend(["## UI Mapping", "", *_ui_mapping(artifact.ui_mapping), ""])

        for attr, label in _OPTIONAL_SECTIONS:
            section = getattr(artifact, attr)
            if section:
                lines.extend([f"## {label}", "", *_items(section), ""])

        if interconnections is not None:
            lines.extend(_interconnection_lines(interconnections))

        text = "\n".join(lines)
        return re.sub(r"\n{3,}", "\n\n", text).rstrip()


def _interconnection_lines(data: StoryInterconnections) -> list[str]:
    lines: list[str] = []

    if data.contract_dependencies:
        lines.extend(["## Contract Dependencies", ""])
        lines.extend(f"- {cid}" for cid in data.contract_dependencies)
        lines.append("")

    ownership = data.ownership
    labelled = [
        ("Owns State", ownership.owns_state),
        ("Consumes State", ownership.consumes_state),
        ("Emits Events", ownership.emits_events),
        ("Listens To", ownership.listens_to_events),
    ]
    if any(values for _, values in labelled):
        lines.extend(["## Ownership", ""])
        lines.extend(f"**{label}**: {', '.join(values)}" for label, values in labelled if values)
        lines.append("")

    if data.related_stories:
        lines.extend(["## Related Stories", ""])
        for kind, label in _RELATED_ORDER:
            group = [r for r in data.related_stories if r.relationship == kind]
            if not group:
                continue
            lines.append(f"**{label}**:")
            for related in group:
                suffix = f": {_inline(related.description)}" if related.description else ""
                lines.append(f"- {related.id}{suffix}")
            lines.append("")

    return lines


def _items(items: list[Item]) -> list[str]:
    return [
        (f"- [{item.id}] " if item.id else "- ") + _inline(item.text)
        for item in items
    ]


def _ui_mapping(items: list[Item]) -> list[str]:
    rendered = []
    for item in items:
        term, _, component = item.text.partition("|")
        if component:
            rendered.append(f"- [{item.id}] **{_inline(term.strip())}**: {_inline(component.strip())}")
        else:
            rendered.append(f"- [{item.id}] {_inline(item.text)}")
    return rendered


def _heading(text: str) -> str:
    return text.replace("#", "").strip()


def _inline(text: str) -> str:
    return " ".join(text.split())
