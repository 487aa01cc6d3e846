"""
Prompt templates for StoryForge agents.

Each stage ships one YAML file holding a `system_prompt` and a
`user_prompt_template`; `judge.yaml` registers `judge.system_prompt` and
`judge.user_prompt_template`. Templates are compiled once, with Jinja2's
StrictUndefined so a missing variable fails loudly instead of rendering blank.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, StrictUndefined, Template

from storyforge.utils.logging import get_logger

logger = get_logger("prompts.manager")

TEMPLATES_DIR = Path(__file__).parent / "templates"

SYSTEM_KEY = "system_prompt"
USER_KEY = "user_prompt_template"


@dataclass
class _Prompt:
    source: str
    compiled: Template
    metadata: dict = field(default_factory=dict)


class PromptManager:
    """Registry of compiled prompt templates.

    Usage:
        manager = PromptManager()
        manager.load_directory(TEMPLATES_DIR)
        system, user = manager.render_pair("judge", story=markdown, graph=summary)
    """

    def __init__(self) -> None:
        self._prompts: dict[str, _Prompt] = {}
        self._env = Environment(
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def register(self, name: str, template: str, metadata: dict | None = None) -> None:
        """Compile and register a template under `name`."""
        self._prompts[name] = _Prompt(template, self._env.from_string(template), dict(metadata or {}))
        logger.debug(f"Registered prompt: {name}")

    def get(self, name: str) -> str | None:
        prompt = self._prompts.get(name)
        return prompt.source if prompt else None

    def get_metadata(self, name: str) -> dict:
        prompt = self._prompts.get(name)
        return prompt.metadata if prompt else {}

    def list_prompts(self) -> list[str]:
        return list(self._prompts)

    def render(self, name: str, **variables: Any) -> str:
        """Render one template.

        Raises:
            KeyError: If no template is registered under `name`
            jinja2.UndefinedError: If the template uses a variable not passed in
        """
        try:
            prompt = self._prompts[name]
        except KeyError:
            raise KeyError(f"Prompt template not found: {name}") from None
        return prompt.compiled.render(**variables)

    def render_pair(self, stage: str, **variables: Any) -> tuple[str, str]:
        """Render a stage's system prompt and user prompt together."""
        return (
            self.render(f"{stage}.{SYSTEM_KEY}"),
            self.render(f"{stage}.{USER_KEY}", **variables),
        )

    def load_file(self, file_path: str | Path) -> int:
        """Register the two prompts of one stage file; returns how many were added.

        Raises:
            ValueError: If the file is not a mapping or lacks either prompt
        """
        path = Path(file_path)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Prompt file must contain a mapping: {path}")

        missing = [key for key in (SYSTEM_KEY, USER_KEY) if not data.get(key)]
        if missing:
            raise ValueError(f"Prompt file {path.name} is missing {', '.join(missing)}")

        metadata = {k: v for k, v in data.items() if k not in (SYSTEM_KEY, USER_KEY)}
        for key in (SYSTEM_KEY, USER_KEY):
            self.register(f"{path.stem}.{key}", data[key], metadata)
        return 2

    def load_directory(self, dir_path: str | Path) -> int:
        """Load every `*.yaml` stage file in a directory, in name order."""
        directory = Path(dir_path)
        if not directory.is_dir():
            logger.warning(f"Prompt directory not found: {directory}")
            return 0

        count = sum(self.load_file(path) for path in sorted(directory.glob("*.yaml")))
        logger.debug(f"Loaded {count} prompts from {directory}")
        return count


_shared: PromptManager | None = None


def get_prompt_manager() -> PromptManager:
    """Shared manager with the packaged templates loaded."""
    global _shared
    if _shared is None:
        _shared = PromptManager()
        _shared.load_directory(TEMPLATES_DIR)
    return _shared
