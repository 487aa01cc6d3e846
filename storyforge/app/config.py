"""
StoryForge Configuration.

Central configuration management for StoryForge.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal


# ============================================================================
# Default Paths
# ============================================================================


def get_default_data_dir() -> Path:
    """Get the default data directory for StoryForge."""
    if env_path := os.environ.get("STORYFORGE_DATA_DIR"):
        return Path(env_path)
    return Path.home() / ".storyforge"


def get_default_config_path() -> Path:
    return get_default_data_dir() / "storyforge_config.json"


# ============================================================================
# Configuration Classes
# ============================================================================


@dataclass
class LLMConfig:
    """Configuration for LLM providers."""

    provider: Literal["openrouter", "lm_studio", "lm_proxy"] = "openrouter"
    model: str = "openai/gpt-4.1-mini"
    api_key: str | None = None  # Falls back to environment variable
    base_url: str | None = None
    temperature: float = 0.3
    max_tokens: int = 4096
    timeout: float = 120.0
    max_retries: int = 3

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LLMConfig":
        return cls(
            provider=data.get("provider", "openrouter"),
            model=data.get("model", "openai/gpt-4.1-mini"),
            api_key=data.get("api_key"),
            base_url=data.get("base_url"),
            temperature=data.get("temperature", 0.3),
            max_tokens=data.get("max_tokens", 4096),
            timeout=data.get("timeout", 120.0),
            max_retries=data.get("max_retries", 3),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "base_url": self.base_url,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            # Don't serialize API key for security
        }


@dataclass
class QualityGateConfig:
    """Judge threshold on the 0-5 overall score."""

    threshold: float = 3.5

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QualityGateConfig":
        return cls(**{k: v for k, v in data.items() if hasattr(cls, k)})

    def to_dict(self) -> dict[str, Any]:
        return {"threshold": self.threshold}


@dataclass
class RefinementConfig:
    """Bounds of the multi-round refinement loop."""

    max_rounds: int = 3
    min_relationship_confidence: float = 0.75

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RefinementConfig":
        return cls(**{k: v for k, v in data.items() if hasattr(cls, k)})

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_rounds": self.max_rounds,
            "min_relationship_confidence": self.min_relationship_confidence,
        }


DEFAULT_SAFE_FIX_TYPES: tuple[str, ...] = (
    "normalize-term-to-vocabulary",
    "normalize-contract-id",
    "add-bidirectional-link",
)


@dataclass
class ConsistencyConfig:
    """Gate for auto-applying global consistency fixes."""

    auto_apply_threshold: float = 0.8
    safe_fix_types: list[str] = field(default_factory=lambda: list(DEFAULT_SAFE_FIX_TYPES))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConsistencyConfig":
        return cls(
            auto_apply_threshold=data.get("auto_apply_threshold", 0.8),
            safe_fix_types=list(data.get("safe_fix_types", DEFAULT_SAFE_FIX_TYPES)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "auto_apply_threshold": self.auto_apply_threshold,
            "safe_fix_types": list(self.safe_fix_types),
        }


@dataclass
class PatchConfig:
    max_text_length: int = 500

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PatchConfig":
        return cls(**{k: v for k, v in data.items() if hasattr(cls, k)})

    def to_dict(self) -> dict[str, Any]:
        return {"max_text_length": self.max_text_length}


@dataclass
class StoryForgeConfig:
    """Main configuration for StoryForge.

    Aggregates all sub-configurations and provides load/save functionality.
    """

    data_dir: Path = field(default_factory=get_default_data_dir)

    # Sub-configs
    llm: LLMConfig = field(default_factory=LLMConfig)
    quality_gate: QualityGateConfig = field(default_factory=QualityGateConfig)
    refinement: RefinementConfig = field(default_factory=RefinementConfig)
    consistency: ConsistencyConfig = field(default_factory=ConsistencyConfig)
    patch: PatchConfig = field(default_factory=PatchConfig)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    def __post_init__(self):
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "StoryForgeConfig":
        """Load configuration from a JSON file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            StoryForgeConfig instance (defaults if the file does not exist)
        """
        if config_path is None:
            config_path = get_default_config_path()

        config_path = Path(config_path)

        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoryForgeConfig":
        """Create config from dictionary."""
        return cls(
            data_dir=Path(data.get("data_dir", get_default_data_dir())),
            llm=LLMConfig.from_dict(data.get("llm", {})),
            quality_gate=QualityGateConfig.from_dict(data.get("quality_gate", {})),
            refinement=RefinementConfig.from_dict(data.get("refinement", {})),
            consistency=ConsistencyConfig.from_dict(data.get("consistency", {})),
            patch=PatchConfig.from_dict(data.get("patch", {})),
            log_level=data.get("log_level", "INFO"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "data_dir": str(self.data_dir),
            "llm": self.llm.to_dict(),
            "quality_gate": self.quality_gate.to_dict(),
            "refinement": self.refinement.to_dict(),
            "consistency": self.consistency.to_dict(),
            "patch": self.patch.to_dict(),
            "log_level": self.log_level,
        }

    def save(self, config_path: str | Path | None = None) -> Path:
        """Save configuration to a JSON file.

        Args:
            config_path: Path to save to. If None, uses default location.

        Returns:
            Path to saved file
        """
        if config_path is None:
            config_path = self.data_dir / "storyforge_config.json"

        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

        return config_path


# ============================================================================
# Global Config Instance
# ============================================================================


_global_config: StoryForgeConfig | None = None


def get_config() -> StoryForgeConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = StoryForgeConfig.load()
    return _global_config


def set_config(config: StoryForgeConfig) -> None:
    """Replace the global configuration instance."""
    global _global_config
    _global_config = config


def reload_config(config_path: str | Path | None = None) -> StoryForgeConfig:
    """Reload the global configuration from disk."""
    global _global_config
    _global_config = StoryForgeConfig.load(config_path)
    return _global_config
