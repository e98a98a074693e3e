"""LLM client protocol and vendor implementations.

The strategy oracle depends on the LLMClient protocol via dependency
injection. No module directly instantiates any vendor SDK.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

from smartpress.core.config import LLMConfig
from smartpress.core.errors import ConfigError, LLMError

logger = logging.getLogger(__name__)


async def _with_retries(
    call: Callable[[], Awaitable[str]],
    max_retries: int,
    vendor: str,
) -> str:
    """Await call up to max_retries times with exponential backoff.

    Raises:
        LLMError: After the last attempt fails.
    """
    last_error: Optional[Exception] = None
    for attempt in range(max_retries):
        try:
            return await call()
        except Exception as e:
            last_error = e
            logger.debug("%s attempt %d failed: %s", vendor, attempt + 1, e)
            if attempt < max_retries - 1:
                await asyncio.sleep(2**attempt)
    raise LLMError(f"{vendor} call failed after {max_retries} retries: {last_error}")


@runtime_checkable
class LLMClient(Protocol):
    """Protocol for LLM API calls.

    The oracle depends on this, not on a vendor SDK directly.
    Enables testing with MockLLMClient.
    """

    async def complete(
        self,
        system: str,
        user: str,
        model: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        json_mode: bool = False,
    ) -> str:
        """Return the text content of the LLM response."""
        ...


class AnthropicClient:
    """LLMClient implementation using the Anthropic API.

    Owns its own auth and model defaults. LLMConfig provides
    vendor-neutral call parameters (retries, temperature, max_tokens).
    """

    def __init__(
        self,
        config: LLMConfig,
        api_key: str = "",
        default_model: str = "claude-sonnet-4-5-20250929",
    ) -> None:
        self.config = config
        self.default_model = default_model
        # Lazy import: anthropic is an optional dependency
        try:
            import anthropic
        except ImportError as e:
            raise LLMError(
                "anthropic package not installed. "
                "Install with: pip install smartpress[llm]"
            ) from e
        self._client = anthropic.AsyncAnthropic(api_key=api_key or None)

    async def complete(
        self,
        system: str,
        user: str,
        model: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        json_mode: bool = False,
    ) -> str:
        # No native JSON mode; the prompt asks for a JSON object.
        async def call() -> str:
            response = await self._client.messages.create(
                model=model or self.default_model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
            return response.content[0].text

        return await _with_retries(call, self.config.max_retries, "Anthropic")


class GeminiClient:
    """LLMClient implementation using the Google Gemini API.

    Uses the google-genai SDK. json_mode maps to the
    application/json response MIME type.
    """

    def __init__(
        self,
        config: LLMConfig,
        api_key: str = "",
        default_model: str = "gemini-2.0-flash",
    ) -> None:
        self.config = config
        self.default_model = default_model
        try:
            from google import genai
        except ImportError as e:
            raise LLMError(
                "google-genai package not installed. "
                "Install with: pip install smartpress[gemini]"
            ) from e
        self._client = genai.Client(api_key=api_key or None)

    async def complete(
        self,
        system: str,
        user: str,
        model: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        json_mode: bool = False,
    ) -> str:
        from google.genai import types

        generation = types.GenerateContentConfig(
            system_instruction=system,
            temperature=temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json" if json_mode else None,
        )

        async def call() -> str:
            response = await self._client.aio.models.generate_content(
                model=model or self.default_model,
                contents=user,
                config=generation,
            )
            return response.text or ""

        return await _with_retries(call, self.config.max_retries, "Gemini")


_PROVIDERS = {
    "anthropic": AnthropicClient,
    "gemini": GeminiClient,
}


def create_llm_client(
    provider: str,
    config: Optional[LLMConfig] = None,
    api_key: str = "",
    model: Optional[str] = None,
) -> LLMClient:
    """Instantiate the client for a provider name.

    An empty api_key lets the vendor SDK read its own environment variable.
    """
    try:
        cls = _PROVIDERS[provider]
    except KeyError:
        raise ConfigError(
            f"Unknown LLM provider '{provider}'. Valid: {sorted(_PROVIDERS)}"
        ) from None
    kwargs = {"api_key": api_key}
    if model:
        kwargs["default_model"] = model
    return cls(config or LLMConfig(), **kwargs)
