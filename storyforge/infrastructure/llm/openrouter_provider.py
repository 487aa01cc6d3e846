"""
OpenAI-compatible chat provider for StoryForge.

OpenRouter is the default endpoint. LM Studio and LM Proxy expose the same
`/chat/completions` API, so the factory reuses this class for them with a
different base URL.
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any

import httpx
from dotenv import load_dotenv

from storyforge.infrastructure.llm.base import (
    LLMConnectionError,
    LLMError,
    LLMProvider,
    LLMTimeoutError,
    error_for_status,
)
from storyforge.infrastructure.llm.retry import RetryPolicy
from storyforge.utils.logging import get_logger

load_dotenv()

logger = get_logger("infrastructure.llm.openrouter")

CHAT_ENDPOINT = "/chat/completions"
SSE_PREFIX = "data: "
SSE_DONE = "[DONE]"

_HTML_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


# ============================================================================
# Response helpers
# ============================================================================


def describe_error(response: httpx.Response) -> str:
    """Readable detail for a failed response (JSON error, HTML page or text)."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message", str(body))
    if body is not None:
        return str(body)

    text = response.text or ""
    looks_html = (
        "text/html" in response.headers.get("content-type", "").lower()
        or text.lstrip().startswith(("<!DOCTYPE", "<html"))
    )
    if looks_html:
        match = _HTML_TITLE.search(text)
        return match.group(1).strip() if match else f"HTTP {response.status_code}: HTML error page"
    return text[:500] or f"HTTP {response.status_code}"


async def iter_sse_data(lines: AsyncIterator[str]) -> AsyncGenerator[str, None]:
    """Yield `data:` payloads from a server-sent event stream until [DONE]."""
    async for line in lines:
        if not line.startswith(SSE_PREFIX):
            continue
        payload = line[len(SSE_PREFIX):]
        if payload.strip() == SSE_DONE:
            return
        yield payload


def delta_content(payload: str) -> str:
    """Content delta of one streamed chunk; empty for keep-alives and junk."""
    try:
        chunk = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug(f"Skipping non-JSON stream line: {payload[:80]}")
        return ""
    choices = chunk.get("choices") or []
    if not choices:
        return ""
    return choices[0].get("delta", {}).get("content") or ""


# ============================================================================
# Provider
# ============================================================================


class OpenRouterProvider(LLMProvider):
    """Chat completions over httpx, streamed or not.

    The HTTP client is created lazily and reused until `close()`. Pass a
    `transport` to route requests somewhere other than the network, and a
    `retry` policy to change how transient failures are retried.
    """

    DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        app_name: str = "StoryForge",
        default_model: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry: RetryPolicy | None = None,
    ):
        api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        if not api_key:
            raise ValueError("OPENROUTER_API_KEY not provided and not found in environment")

        super().__init__(api_key, base_url, timeout, app_name)
        self.default_model = (
            default_model or os.getenv("OPENROUTER_MODEL") or os.getenv("OPENROUTER_DEFAULT_MODEL")
        )
        self._transport = transport
        self.retry = retry or RetryPolicy()
        self._client: httpx.AsyncClient | None = None

        if self.default_model is None:
            logger.warning(f"No default model configured for {self.base_url}")

    @property
    def provider_name(self) -> str:
        return "openrouter"

    def _client_or_new(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "HTTP-Referer": "https://github.com/storyforge",
                    "X-Title": self.app_name,
                    "Content-Type": "application/json",
                },
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_connections=20, max_keepalive_connections=5),
                transport=self._transport,
            )
        return self._client

    @staticmethod
    def _payload(
        messages: list[dict],
        model: str,
        temperature: float,
        max_tokens: int | None,
        top_p: float,
        stream: bool = False,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "top_p": top_p,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if stream:
            payload["stream"] = True
        return payload

    async def complete(
        self,
        messages: list[dict],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        top_p: float = 1.0,
    ) -> dict:
        """Send one chat request and return the decoded response body.

        Transient failures are retried under the provider's RetryPolicy.

        Raises:
            LLMTimeoutError: If the request kept timing out
            LLMError: For any HTTP error status (typed by status code) or a
                body that is not a JSON object
        """
        payload = self._payload(messages, model, temperature, max_tokens, top_p)
        logger.debug(f"POST {CHAT_ENDPOINT} model={model} messages={len(messages)}")
        body = await self.retry.execute_with_retry(lambda: self._post_chat(payload))

        served_by = body.get("model")
        if served_by and served_by != model:
            logger.warning(f"Requested model '{model}' but response came from '{served_by}'")
        return body

    async def _post_chat(self, payload: dict[str, Any]) -> dict:
        try:
            response = await self._client_or_new().post(CHAT_ENDPOINT, json=payload)
        except httpx.TimeoutException as exc:
            raise LLMTimeoutError(f"Chat request timed out after {self.timeout}s") from exc
        except httpx.TransportError as exc:
            raise LLMConnectionError(f"Could not reach {self.base_url}: {exc}") from exc

        if response.is_error:
            raise error_for_status(response.status_code, describe_error(response))

        try:
            body = response.json()
        except ValueError as exc:
            raise LLMError(
                f"Response body is not JSON: {response.text[:200]}",
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, dict):
            raise LLMError("Response body is not a JSON object", status_code=response.status_code)
        return body

    async def stream_complete(
        self,
        messages: list[dict],
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        top_p: float = 1.0,
    ) -> AsyncGenerator[str, None]:
        """Stream one chat request, yielding non-empty content deltas.

        A failure before the first delta is retried like `complete`; once
        content has been yielded the error is raised as is.
        """
        payload = self._payload(messages, model, temperature, max_tokens, top_p, stream=True)
        attempt = 0
        while True:
            started = False
            try:
                async for content in self._stream_chat(payload):
                    started = True
                    yield content
                return
            except LLMError as exc:
                if started or not self.retry.should_retry(exc, attempt):
                    raise
                await self.retry.wait_before_retry(exc, attempt)
                attempt += 1

    async def _stream_chat(self, payload: dict[str, Any]) -> AsyncGenerator[str, None]:
        client = self._client_or_new()
        try:
            async with client.stream("POST", CHAT_ENDPOINT, json=payload) as response:
                if response.is_error:
                    await response.aread()
                    raise error_for_status(response.status_code, describe_error(response))
                async for data in iter_sse_data(response.aiter_lines()):
                    if content := delta_content(data):
                        yield content
        except httpx.TimeoutException as exc:
            raise LLMTimeoutError(f"Chat stream timed out after {self.timeout}s") from exc
        except httpx.TransportError as exc:
            raise LLMConnectionError(f"Could not reach {self.base_url}: {exc}") from exc

    async def close(self) -> None:
        """Close the HTTP client; the next request opens a new one."""
        if self._client is not None:
            if not self._client.is_closed:
                await self._client.aclose()
            self._client = None
