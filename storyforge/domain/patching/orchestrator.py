"""
Patch Orchestrator - applies patch batches under a path allow-list.

The input artifact is never mutated. Each accepted patch is applied to a deep
copy, and a batch with nothing applied returns a value equal to the input.
"""

from __future__ import annotations

from collections.abc import Iterable

from storyforge.core.models.artifact import (
    PatchPath,
    StoryArtifact,
    is_line_path,
    set_items,
    set_line,
)
from storyforge.core.models.patch import (
    AddPatch,
    PatchMetrics,
    RemovePatch,
    ReplacePatch,
)
from storyforge.domain.patching.validator import PatchValidator, item_matches
from storyforge.utils.logging import get_logger

logger = get_logger("domain.patching.orchestrator")

AnyPatch = AddPatch | ReplacePatch | RemovePatch


class PatchOrchestrator:
    """Applies patches whose paths are allowed and which pass validation.

    Usage:
        orchestrator = PatchOrchestrator()
        result, metrics = orchestrator.apply(artifact, patches, ["userVisibleBehavior"])
    """

    def __init__(self, validator: PatchValidator | None = None):
        self.validator = validator or PatchValidator()

    def apply(
        self,
        artifact: StoryArtifact,
        patches: list[AnyPatch],
        allowed_paths: Iterable[PatchPath | str],
    ) -> tuple[StoryArtifact, PatchMetrics]:
        """Apply a batch of patches to a copy of the artifact.

        Args:
            artifact: Current artifact (not mutated)
            patches: Parsed patches, applied in order
            allowed_paths: Paths this call site may touch

        Returns:
            Tuple of (new artifact, cumulative metrics)
        """
        allowed = {p.value if isinstance(p, PatchPath) else str(p) for p in allowed_paths}
        metrics = PatchMetrics(total_patches=len(patches))
        current = artifact.model_copy(deep=True)

        for patch in patches:
            advisor = patch.metadata.advisor_id or "unknown"
            if patch.path not in allowed:
                metrics.rejected_path += 1
                metrics.rejected_reasons.append(f"Path not allowed: {patch.path}")
                logger.debug(f"Patch rejected (path): {patch.path} by {advisor}")
                continue

            validation = self.validator.validate(patch, current)
            if not validation.valid:
                metrics.rejected_validation += 1
                metrics.rejected_reasons.extend(validation.errors)
                logger.debug(
                    f"Patch rejected (validation): {patch.path} - {'; '.join(validation.errors)}"
                )
                continue

            current = _apply_one(current, patch)
            metrics.applied += 1

        if metrics.rejected:
            logger.debug(
                f"PatchOrchestrator: applied={metrics.applied}, "
                f"rejectedPath={metrics.rejected_path}, "
                f"rejectedValidation={metrics.rejected_validation}"
            )

        return current, metrics


def _apply_one(artifact: StoryArtifact, patch: AnyPatch) -> StoryArtifact:
    """Apply one validated patch, returning a new artifact."""
    nxt = artifact.model_copy(deep=True)
    path = PatchPath(patch.path)

    if is_line_path(path):
        # Only replace reaches here for story lines
        set_line(nxt, path, patch.item.text)
        return nxt

    items = list(nxt.items_at(path) or [])

    if isinstance(patch, AddPatch):
        items.append(patch.item.model_copy(deep=True))
    elif isinstance(patch, ReplacePatch):
        for index, existing in enumerate(items):
            if item_matches(existing, patch.match):
                items[index] = patch.item.model_copy(deep=True)
                break
    else:
        items = [item for item in items if not item_matches(item, patch.match)]

    set_items(nxt, path, items)
    return nxt
