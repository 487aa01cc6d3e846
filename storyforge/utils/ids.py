"""
Stable ID minting for StoryForge.

Graph entities get deterministic, collision-safe IDs derived from their
canonical names. The registry is an explicit value owned by whoever runs
discovery; nothing here is process-global.
"""

from __future__ import annotations

import re
from enum import Enum


# ============================================================================
# Entity Types
# ============================================================================


class EntityType(str, Enum):
    """Graph node types that receive minted IDs."""
    COMPONENT = "component"
    STATE_MODEL = "stateModel"
    EVENT = "event"
    DATA_FLOW = "dataFlow"


ENTITY_PREFIXES: dict[EntityType, str] = {
    EntityType.COMPONENT: "COMP-",
    EntityType.STATE_MODEL: "C-STATE-",
    EntityType.EVENT: "E-",
    EntityType.DATA_FLOW: "DF-",
}

_NON_ALNUM = re.compile(r"[^A-Z0-9]+")


# ============================================================================
# Normalization
# ============================================================================


def normalize_canonical_name(canonical_name: str | None) -> str:
    """Normalize a canonical name to an uppercase SNAKE_CASE key.

    Every run of separators or other non-alphanumerics becomes a single
    underscore; leading and trailing underscores are trimmed.

    Example:
        >>> normalize_canonical_name("login  button")
        'LOGIN_BUTTON'
    """
    if not canonical_name or not isinstance(canonical_name, str):
        return ""
    collapsed = _NON_ALNUM.sub("_", canonical_name.strip().upper())
    return collapsed.strip("_")


def get_prefix(entity_type: EntityType | str) -> str:
    """Get the literal ID prefix for an entity type."""
    return ENTITY_PREFIXES[EntityType(entity_type)]


def base_id_for(normalized: str, entity_type: EntityType | str) -> str:
    """Build the unsuffixed ID for a normalized key."""
    prefix = get_prefix(entity_type)
    if not normalized:
        return prefix.rstrip("-")
    return f"{prefix}{normalized.replace('_', '-')}"


def has_entity_prefix(entity_id: str, entity_type: EntityType | str) -> bool:
    """Check if an ID carries the prefix of the given entity type."""
    return entity_id.startswith(get_prefix(entity_type))


# ============================================================================
# Registry
# ============================================================================


class IdRegistry:
    """Append-only memo of minted IDs.

    Keyed by (entity type, normalized key); each key remembers every distinct
    raw name seen in first-seen order, together with the ID it was given.
    """

    def __init__(self) -> None:
        self._keys: dict[tuple[EntityType, str], dict[str, str]] = {}

    def get(self, entity_type: EntityType, normalized: str, raw_name: str) -> str | None:
        """Get the ID already minted for this raw name, if any."""
        return self._keys.get((entity_type, normalized), {}).get(raw_name)

    def count_for_key(self, entity_type: EntityType | str, normalized: str) -> int:
        """Number of distinct raw names minted under a key."""
        return len(self._keys.get((EntityType(entity_type), normalized), {}))

    def record(
        self,
        entity_type: EntityType,
        normalized: str,
        raw_name: str,
        base_id: str,
    ) -> str:
        """Record a new raw name under its key and return its ID."""
        by_raw = self._keys.setdefault((entity_type, normalized), {})
        suffix_index = len(by_raw) + 1
        minted = base_id if suffix_index == 1 else f"{base_id}_{suffix_index}"
        by_raw[raw_name] = minted
        return minted

    def snapshot(self) -> dict[str, dict[str, str]]:
        """Copy of the registry as `{"type:KEY": {raw: id}}` for serialization."""
        return {
            f"{entity_type.value}:{normalized}": dict(by_raw)
            for (entity_type, normalized), by_raw in self._keys.items()
        }

    def __len__(self) -> int:
        return sum(len(by_raw) for by_raw in self._keys.values())


def mint_stable_id(
    canonical_name: str,
    entity_type: EntityType | str,
    registry: IdRegistry,
) -> str:
    """Mint (or recall) the stable ID for a canonical name.

    The first raw string for a key gets the bare ``PREFIX-KEY``; later,
    different raw strings that normalize to the same key get ``_2``, ``_3``
    in first-seen order. Re-submitting a raw string returns its original ID.

    Example:
        >>> registry = IdRegistry()
        >>> mint_stable_id("Login Button", EntityType.COMPONENT, registry)
        'COMP-LOGIN-BUTTON'
        >>> mint_stable_id("login  button", EntityType.COMPONENT, registry)
        'COMP-LOGIN-BUTTON_2'
    """
    entity_type = EntityType(entity_type)
    raw_name = canonical_name if isinstance(canonical_name, str) else ""
    normalized = normalize_canonical_name(raw_name)

    existing = registry.get(entity_type, normalized, raw_name)
    if existing is not None:
        return existing

    return registry.record(
        entity_type,
        normalized,
        raw_name,
        base_id_for(normalized, entity_type),
    )
