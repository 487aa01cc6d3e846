"""
Base Agent Framework for StoryForge.

An agent is an LLM-backed worker for one structured call: it renders its
prompt pair, sends one bounded request, and turns the reply into a validated
pydantic model. Any reply without parseable JSON, or with JSON that breaks the
contract, raises StructuredOutputError.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from storyforge.agents.prompts.manager import PromptManager, get_prompt_manager
from storyforge.core.errors import StructuredOutputError
from storyforge.core.event_bus import EventBus
from storyforge.infrastructure.llm.base import LLMProvider
from storyforge.infrastructure.llm.models import LLMMessage, MessageRole
from storyforge.infrastructure.llm.streaming import StreamingHandler
from storyforge.utils.json_utils import extract_json
from storyforge.utils.logging import get_logger

logger = get_logger("agents.base")

ModelT = TypeVar("ModelT", bound=BaseModel)


class Agent:
    """Base class for all StoryForge agents.

    Subclasses set `prompt_name` (the YAML template stem) and `stage` (used in
    error messages), then call `_generate_model` from their public method.

    Usage:
        class JudgeAgent(Agent):
            prompt_name = "judge"
            stage = "judge"

            async def judge_story(self, markdown: str) -> JudgeRubric:
                return await self._generate_model(JudgeRubric, story=markdown)
    """

    prompt_name: str = ""
    stage: str = "agent"

    def __init__(
        self,
        llm: LLMProvider,
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
        prompts: PromptManager | None = None,
        event_bus: EventBus | None = None,
        stream: bool = False,
    ):
        """Initialize the agent.

        Args:
            llm: Provider used for every call
            model: Model to use (default: the provider's default model)
            temperature: Generation temperature
            max_tokens: Maximum tokens per reply
            prompts: Prompt manager (default: packaged templates)
            event_bus: Bus for streaming progress events
            stream: Stream replies and publish start/chunk/complete events
        """
        self.llm = llm
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.prompts = prompts or get_prompt_manager()
        self.event_bus = event_bus
        self.stream = stream
        self._request_count = 0

    def _build_messages(self, template: str | None = None, **template_vars: Any) -> list[dict]:
        system_prompt, user_prompt = self.prompts.render_pair(
            template or self.prompt_name, **template_vars
        )
        return [
            LLMMessage(role=MessageRole.SYSTEM, content=system_prompt).to_api_format(),
            LLMMessage(role=MessageRole.USER, content=user_prompt).to_api_format(),
        ]

    async def _generate(self, template: str | None = None, **template_vars: Any) -> str:
        """Send one request and return the reply text."""
        messages = self._build_messages(template, **template_vars)
        model = self.model or self.llm.default_model
        if model is None:
            raise ValueError(f"{self.stage}: no model specified and no default model set")

        self._request_count += 1
        if self.stream:
            handler = StreamingHandler(f"{self.stage}-{self._request_count}", self.event_bus)
            return await handler.consume(
                self.llm.stream_complete(messages, model, self.temperature, self.max_tokens)
            )

        response = await self.llm.complete(messages, model, self.temperature, self.max_tokens)
        choices = response.get("choices") or []
        if not choices:
            raise StructuredOutputError(self.stage, "response contained no choices")
        return choices[0].get("message", {}).get("content") or ""

    async def _generate_json(self, template: str | None = None, **template_vars: Any) -> Any:
        """Send one request and return the parsed JSON reply."""
        stage = template or self.stage
        content = await self._generate(template, **template_vars)
        data = extract_json(content)
        if data is None:
            logger.error(f"[{stage}] reply had no parseable JSON")
            raise StructuredOutputError(stage, "no parseable JSON in response", raw=content)
        return data

    async def _generate_model(
        self,
        model_cls: type[ModelT],
        template: str | None = None,
        **template_vars: Any,
    ) -> ModelT:
        """Send one request and validate the reply against a model."""
        data = await self._generate_json(template, **template_vars)
        return self._validate(model_cls, data, stage=template)

    def _validate(self, model_cls: type[ModelT], data: Any, stage: str | None = None) -> ModelT:
        stage = stage or self.stage
        if not isinstance(data, dict):
            raise StructuredOutputError(
                stage, f"expected a JSON object, got {type(data).__name__}"
            )
        try:
            return model_cls.model_validate(data)
        except ValidationError as exc:
            logger.error(f"[{stage}] reply failed {model_cls.__name__} validation")
            raise StructuredOutputError(
                stage, f"response does not match {model_cls.__name__}: {exc}"
            ) from exc
