"""Prompt templates for StoryForge agents."""

from storyforge.agents.prompts.manager import (
    TEMPLATES_DIR,
    PromptManager,
    get_prompt_manager,
)

__all__ = ["TEMPLATES_DIR", "PromptManager", "get_prompt_manager"]
