"""
Provider factory for StoryForge.

Every supported backend speaks the OpenAI-compatible chat API, so they all
map onto `OpenRouterProvider`; what differs is where the key, base URL and
default model come from.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from storyforge.infrastructure.llm.base import LLMProvider
from storyforge.infrastructure.llm.openrouter_provider import OpenRouterProvider
from storyforge.infrastructure.llm.retry import RetryPolicy
from storyforge.utils.logging import get_logger

if TYPE_CHECKING:
    from storyforge.app.config import LLMConfig

load_dotenv()

logger = get_logger("infrastructure.llm.factory")


class ProviderType(str, Enum):
    """Supported LLM provider types."""
    OPENROUTER = "openrouter"
    LM_PROXY = "lm_proxy"
    LM_STUDIO = "lm_studio"

    @classmethod
    def parse(cls, value: "ProviderType | str") -> "ProviderType":
        """Accept enum members and loose spellings like 'LM-Studio'."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value.strip().lower().replace("-", "_"))
        except ValueError:
            raise ValueError(
                f"Unsupported provider type: {value}. Supported: {[p.value for p in cls]}"
            ) from None


@dataclass(frozen=True)
class ProviderDefaults:
    """Where a provider's settings come from when not given explicitly."""

    api_key_env: str
    base_url_env: str
    model_envs: tuple[str, ...]
    base_url: str
    requires_key: bool = True


PROVIDERS: dict[ProviderType, ProviderDefaults] = {
    ProviderType.OPENROUTER: ProviderDefaults(
        api_key_env="OPENROUTER_API_KEY",
        base_url_env="OPENROUTER_BASE_URL",
        model_envs=("OPENROUTER_MODEL", "OPENROUTER_DEFAULT_MODEL"),
        base_url=OpenRouterProvider.DEFAULT_BASE_URL,
    ),
    ProviderType.LM_PROXY: ProviderDefaults(
        api_key_env="LM_PROXY_API_KEY",
        base_url_env="LM_PROXY_BASE_URL",
        model_envs=("LM_PROXY_MODEL",),
        base_url="http://localhost:4000/openai/v1",
        requires_key=False,
    ),
    ProviderType.LM_STUDIO: ProviderDefaults(
        api_key_env="LM_STUDIO_API_KEY",
        base_url_env="LM_STUDIO_BASE_URL",
        model_envs=("LM_STUDIO_MODEL",),
        base_url="http://localhost:1234/v1",
        requires_key=False,
    ),
}


class ProviderFactory:
    """Builds providers from explicit values, a config or the environment."""

    @staticmethod
    def get_default_provider_name() -> str:
        """Provider named by DEFAULT_PROVIDER, else openrouter."""
        env_name = os.getenv("DEFAULT_PROVIDER")
        if not env_name:
            return ProviderType.OPENROUTER.value
        return env_name.strip().lower().replace("-", "_")

    @staticmethod
    def get_default_model(provider_name: str | None = None) -> str | None:
        """First model environment variable set for the provider."""
        provider = ProviderType.parse(provider_name or ProviderFactory.get_default_provider_name())
        for var in PROVIDERS[provider].model_envs:
            if value := os.getenv(var):
                return value
        return None

    @staticmethod
    def create(
        provider_type: ProviderType | str,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        app_name: str = "StoryForge",
        default_model: str | None = None,
        max_retries: int | None = None,
    ) -> LLMProvider:
        """Create a provider.

        OpenRouter reads OPENROUTER_API_KEY when no key is given; local
        servers need no key.

        Raises:
            ValueError: If the provider type is unknown or a required key is missing
        """
        provider = ProviderType.parse(provider_type)
        defaults = PROVIDERS[provider]
        if api_key is None and not defaults.requires_key:
            api_key = "not-needed"

        return OpenRouterProvider(
            api_key=api_key,
            base_url=base_url or defaults.base_url,
            timeout=timeout,
            app_name=app_name,
            default_model=default_model,
            retry=RetryPolicy(max_retries=max_retries),
        )

    @staticmethod
    def from_config(config: "LLMConfig") -> LLMProvider:
        """Create the provider described by an LLMConfig.

        Unset key and base URL fall back to the provider's environment
        variables.
        """
        provider = ProviderType.parse(config.provider)
        defaults = PROVIDERS[provider]
        return ProviderFactory.create(
            provider,
            api_key=config.api_key or os.getenv(defaults.api_key_env),
            base_url=config.base_url or os.getenv(defaults.base_url_env),
            timeout=config.timeout,
            default_model=config.model,
            max_retries=config.max_retries,
        )

    @staticmethod
    def create_from_env(
        timeout: float = 60.0,
        app_name: str = "StoryForge",
    ) -> tuple[LLMProvider, str | None]:
        """Create the provider named by DEFAULT_PROVIDER from environment variables.

        Returns:
            Tuple of (provider, default model or None)
        """
        provider_type = ProviderType.parse(ProviderFactory.get_default_provider_name())
        defaults = PROVIDERS[provider_type]
        model = ProviderFactory.get_default_model(provider_type.value)

        provider = ProviderFactory.create(
            provider_type,
            api_key=os.getenv(defaults.api_key_env),
            base_url=os.getenv(defaults.base_url_env),
            timeout=timeout,
            app_name=app_name,
            default_model=model,
        )
        logger.info(f"Using provider '{provider_type.value}' with default model '{model}'")
        return provider, model
