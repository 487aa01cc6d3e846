"""
StoryForge App - configuration and command-line entry point.
"""

from storyforge.app.config import (
    ConsistencyConfig,
    LLMConfig,
    PatchConfig,
    QualityGateConfig,
    RefinementConfig,
    StoryForgeConfig,
    get_config,
    reload_config,
    set_config,
)
from storyforge.app.main import main

__all__ = [
    # Config
    "ConsistencyConfig",
    "LLMConfig",
    "PatchConfig",
    "QualityGateConfig",
    "RefinementConfig",
    "StoryForgeConfig",
    "get_config",
    "reload_config",
    "set_config",
    # Entry point
    "main",
]
