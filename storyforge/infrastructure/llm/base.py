"""
LLM provider contract for StoryForge.

Every agent talks to the external text-generation collaborator through an
`LLMProvider`: one bounded chat-completion request per call, optionally
streamed. HTTP failures surface as the typed `LLMError` family below.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator


# ============================================================================
# Errors
# ============================================================================


class LLMError(Exception):
    """A provider request failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: dict | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class AuthenticationError(LLMError):
    """The API key was rejected."""


class RateLimitError(LLMError):
    """The provider asked us to slow down."""


class ModelNotFoundError(LLMError):
    """The requested model does not exist on the provider."""


class LLMTimeoutError(LLMError):
    """A single request exceeded its timeout; other requests are unaffected."""


class LLMConnectionError(LLMError):
    """The provider could not be reached."""


_STATUS_ERRORS: dict[int, tuple[type[LLMError], str]] = {
    401: (AuthenticationError, "Authentication failed"),
    403: (AuthenticationError, "Authentication failed"),
    404: (ModelNotFoundError, "Model not found"),
    429: (RateLimitError, "Rate limit exceeded"),
}


def error_for_status(status_code: int, detail: str, response: dict | None = None) -> LLMError:
    """Typed error for an HTTP error status."""
    error_cls, label = _STATUS_ERRORS.get(status_code, (LLMError, "API error"))
    return error_cls(f"{label}: {detail}", status_code=status_code, response=response)


# ============================================================================
# Provider
# ============================================================================


class LLMProvider(ABC):
    """Chat-completion provider used by every agent.

    Subclasses implement `complete`, `stream_complete` and `close`. Providers
    are async context managers that close their HTTP resources on exit.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 60.0,
        app_name: str = "StoryForge",
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.app_name = app_name
        self.default_model: str | None = None

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short provider identifier, e.g. 'openrouter'."""

    @abstractmethod
    async def complete(
        self,
        messages: list[dict],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        top_p: float = 1.0,
    ) -> dict:
        """Send one chat request and return the raw response body."""

    @abstractmethod
    def stream_complete(
        self,
        messages: list[dict],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        top_p: float = 1.0,
    ) -> AsyncGenerator[str, None]:
        """Send one streamed chat request, yielding content chunks."""

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""

    async def complete_simple(
        self,
        prompt: str,
        model: str | None = None,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        """One-shot prompt helper returning only the reply text.

        Raises:
            ValueError: If no model is given and the provider has no default
        """
        model = model or self.default_model
        if model is None:
            raise ValueError("No model specified and no default model set")

        messages = [{"role": "user", "content": prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})

        response = await self.complete(messages, model, temperature, max_tokens)
        choices = response.get("choices") or []
        if not choices:
            return ""
        return choices[0].get("message", {}).get("content") or ""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
