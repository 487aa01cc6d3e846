"""
Patch Validator - mechanical checks for a single artifact patch.

Validation is pure inspection: the artifact is never touched and failures
come back as a ValidationResult, never as an exception.
"""

from __future__ import annotations

import re
from collections import Counter

from storyforge.core.models.artifact import (
    PATH_ID_PREFIXES,
    Item,
    PatchPath,
    StoryArtifact,
    expected_id_prefix,
    is_line_path,
)
from storyforge.core.models.patch import (
    AddPatch,
    PatchMatch,
    RemovePatch,
    ReplacePatch,
    ValidationResult,
)


MAX_TEXT_LENGTH = 500

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

LINE_PATHS_IN_ORDER = (PatchPath.AS_A, PatchPath.I_WANT, PatchPath.SO_THAT)


def item_matches(item: Item, match: PatchMatch | None) -> bool:
    """Check whether an item is selected by a match clause."""
    if match is None:
        return False
    if match.id and item.id == match.id:
        return True
    if match.text_equals is not None and item.text == match.text_equals:
        return True
    return False


class PatchValidator:
    """Validates one patch against the artifact it would be applied to.

    Checks, in order:
    - path and metadata.advisorId are present and the path is known
    - add/replace carry item text (and item.id for list paths) within bounds
    - list item IDs use the path's prefix and only [A-Za-z0-9_-]
    - add does not duplicate an existing item.id
    - replace/remove on list paths select an element that exists
    - remove is never allowed on a story line
    """

    def __init__(self, max_text_length: int = MAX_TEXT_LENGTH):
        self.max_text_length = max_text_length

    def validate(
        self,
        patch: AddPatch | ReplacePatch | RemovePatch,
        artifact: StoryArtifact,
    ) -> ValidationResult:
        if not patch.path or not patch.metadata.advisor_id:
            return ValidationResult.fail("Patch must have path and metadata.advisorId")

        try:
            path = PatchPath(patch.path)
        except ValueError:
            return ValidationResult.fail(
                f'Path "{patch.path}" does not refer to a list section or story line'
            )

        line = is_line_path(path)
        errors: list[str] = []

        if isinstance(patch, (AddPatch, ReplacePatch)):
            item = patch.item
            if not item.text.strip():
                return ValidationResult.fail(
                    "Story line patch must provide item.text"
                    if line else "add/replace patches must provide item.text"
                )
            if len(item.text) > self.max_text_length:
                errors.append(f"item.text must be at most {self.max_text_length} characters")

            if line and isinstance(patch, AddPatch):
                return ValidationResult.fail(
                    f"add operation not supported on story line path {path.value} (use replace instead)"
                )

            if not line:
                if not item.id.strip():
                    return ValidationResult.fail(
                        "add/replace patches for list paths must provide item.id"
                    )
                errors.extend(_id_errors(path, item.id))
                if isinstance(patch, AddPatch) and item.id in _ids(artifact, path):
                    errors.append(f'Duplicate id "{item.id}" in {path.value}')

        if isinstance(patch, (ReplacePatch, RemovePatch)):
            if line:
                if isinstance(patch, RemovePatch):
                    return ValidationResult.fail(
                        "remove operation not supported on story line paths (use replace instead)"
                    )
            else:
                if patch.match is None or patch.match.is_empty:
                    return ValidationResult.fail(
                        "replace/remove must specify match.id or match.textEquals"
                    )
                items = artifact.items_at(path) or []
                if not any(item_matches(item, patch.match) for item in items):
                    errors.append(f"No matching item to {patch.op} in {path.value}")

        if errors:
            return ValidationResult(valid=False, errors=errors)
        return ValidationResult.ok()

    def check_artifact(self, artifact: StoryArtifact) -> ValidationResult:
        """Hold a whole artifact to the rules every patch is held to.

        A title and all three story lines must be present; every list item
        needs a well-formed, correctly prefixed ID that is unique within the
        artifact, and non-blank text within the length bound.
        """
        errors: list[str] = []
        if not artifact.title.strip():
            errors.append("artifact must have a title")

        for path in LINE_PATHS_IN_ORDER:
            text = artifact.line_at(path) or ""
            if not text.strip():
                errors.append(f"{path.value} must not be blank")
            elif len(text) > self.max_text_length:
                errors.append(f"{path.value} must be at most {self.max_text_length} characters")

        for path in PATH_ID_PREFIXES:
            for position, item in enumerate(artifact.items_at(path) or [], start=1):
                where = f"{path.value}[{position}]"
                if not item.id.strip():
                    errors.append(f"{where} must have an id")
                else:
                    errors.extend(f"{where}: {error}" for error in _id_errors(path, item.id))
                if not item.text.strip():
                    errors.append(f"{where} must have text")
                elif len(item.text) > self.max_text_length:
                    errors.append(f"{where} text must be at most {self.max_text_length} characters")

        counts = Counter(item_id for item_id in artifact.all_item_ids() if item_id)
        errors.extend(f'Duplicate id "{item_id}"' for item_id, n in counts.items() if n > 1)

        if errors:
            return ValidationResult(valid=False, errors=errors)
        return ValidationResult.ok()


def _id_errors(path: PatchPath, item_id: str) -> list[str]:
    """Charset and prefix problems with a list item ID."""
    errors = []
    if not _ID_PATTERN.match(item_id):
        errors.append("item.id must be alphanumeric, underscore, or hyphen")
    prefix = expected_id_prefix(path)
    if prefix and not item_id.startswith(prefix):
        errors.append(f'item.id must start with "{prefix}" for path {path.value}')
    return errors


def _ids(artifact: StoryArtifact, path: PatchPath) -> set[str]:
    return {item.id for item in artifact.items_at(path) or []}
