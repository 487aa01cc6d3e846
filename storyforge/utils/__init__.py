"""Shared utilities: stable IDs, logging, JSON extraction."""

from storyforge.utils.ids import (
    EntityType,
    IdRegistry,
    get_prefix,
    mint_stable_id,
    normalize_canonical_name,
)
from storyforge.utils.json_utils import extract_json
from storyforge.utils.logging import get_logger, log_context, setup_logging

__all__ = [
    "EntityType",
    "IdRegistry",
    "get_prefix",
    "mint_stable_id",
    "normalize_canonical_name",
    "extract_json",
    "get_logger",
    "log_context",
    "setup_logging",
]
