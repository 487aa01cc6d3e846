"""LLM-backed agents for StoryForge passes."""

from storyforge.agents.base import Agent
from storyforge.agents.discovery import DiscoveryAgent, DiscoveryMentions
from storyforge.agents.generator import GeneratorAgent
from storyforge.agents.interconnection import InterconnectionAgent
from storyforge.agents.judge import JudgeAgent
from storyforge.agents.rewriter import RewriterAgent

__all__ = [
    "Agent",
    "DiscoveryAgent",
    "DiscoveryMentions",
    "GeneratorAgent",
    "InterconnectionAgent",
    "JudgeAgent",
    "RewriterAgent",
]
