"""Generative-AI client built on litellm with tenacity retry.

The client only returns raw response text. Callers never trust it to be
valid JSON, even when a ``response_schema`` was requested: the text always
goes through ``parse_repaired_json`` and ``normalize``.
"""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any

import litellm
import structlog
from pydantic import BaseModel, Field
from tenacity import (
    RetryError,
    retry,
    stop_after_attempt,
    wait_exponential,
)

from tube_insight.exceptions import ConfigurationError, GenerationError

if TYPE_CHECKING:
    from tube_insight.config import Settings
    from tube_insight.storage import CredentialStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_BACKOFF_MIN_SECONDS = 1
_BACKOFF_MAX_SECONDS = 10

_PROVIDER_PREFIX: dict[str, str] = {
    "google": "gemini",
    "openai": "openai",
    "anthropic": "anthropic",
}

# Tool shorthands accepted by ``generate(tools=...)``
WEB_SEARCH_TOOL: dict[str, Any] = {"googleSearch": {}}


class ImageInput(BaseModel):
    """An inline image attached to a prompt."""

    data: bytes = Field(description="Raw image bytes.")
    mime_type: str = "image/png"

    def data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


def resolve_model_id(provider: str, model: str) -> str:
    """Build a provider-prefixed litellm model identifier.

    Raises:
        ConfigurationError: If the provider is not supported.
    """
    if "/" in model:
        return model
    prefix = _PROVIDER_PREFIX.get(provider)
    if prefix is None:
        raise ConfigurationError(f"Unsupported LLM provider: {provider!r}")
    return f"{prefix}/{model}"


def build_messages(prompt: str, image: ImageInput | None = None) -> list[dict[str, Any]]:
    if image is None:
        return [{"role": "user", "content": prompt}]
    return [
        {
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": image.data_uri()}},
                {"type": "text", "text": prompt},
            ],
        }
    ]


def _response_format(schema: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {"name": "result", "schema": schema},
    }


def _extract_text(response: Any) -> str:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


class GenerativeClient:
    """Single-call wrapper around ``litellm.acompletion``.

    Attributes:
        model_id: The litellm model identifier, e.g. ``gemini/gemini-2.5-flash``.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        provider: str = "google",
        model: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        max_tokens: int = 8192,
        retries: int = 3,
    ) -> None:
        self._api_key = api_key
        self.model_id = resolve_model_id(provider, model)
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._retries = retries

    @classmethod
    def from_settings(
        cls, settings: Settings, credentials: CredentialStore | None = None
    ) -> GenerativeClient:
        api_key = (
            credentials.resolve_llm_api_key(settings)
            if credentials is not None
            else settings.llm.api_key
        )
        llm = settings.llm
        return cls(
            api_key,
            provider=llm.provider,
            model=llm.model,
            temperature=llm.temperature,
            max_tokens=llm.max_tokens,
            retries=llm.retries,
        )

    @property
    def has_key(self) -> bool:
        return bool(self._api_key)

    def require_key(self) -> str:
        if not self._api_key:
            raise ConfigurationError(
                "Generative AI API key is not set. Run `tube-insight keys set llm <KEY>` "
                "or set TUBE_INSIGHT_LLM__API_KEY."
            )
        return self._api_key

    async def _call_with_retry(self, **kwargs: Any) -> Any:
        @retry(
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(min=_BACKOFF_MIN_SECONDS, max=_BACKOFF_MAX_SECONDS),
            reraise=False,
        )
        async def _do_call() -> Any:
            return await litellm.acompletion(**kwargs)

        return await _do_call()

    async def generate(
        self,
        prompt: str,
        *,
        response_schema: dict[str, Any] | None = None,
        tools: list[dict[str, Any]] | None = None,
        image: ImageInput | None = None,
    ) -> str:
        """Send one prompt and return the raw response text.

        Args:
            prompt: The full prompt text.
            response_schema: Optional JSON schema requested from the model.
            tools: Optional provider tool declarations (e.g. web search).
            image: Optional inline image for vision prompts.

        Returns:
            The response text, or ``""`` when the model returned no text.

        Raises:
            ConfigurationError: If no API key is configured (before any call).
            GenerationError: If every retry attempt fails.
        """
        api_key = self.require_key()
        kwargs: dict[str, Any] = {
            "model": self.model_id,
            "messages": build_messages(prompt, image),
            "api_key": api_key,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        if response_schema is not None:
            kwargs["response_format"] = _response_format(response_schema)
        if tools:
            kwargs["tools"] = tools

        try:
            response = await self._call_with_retry(**kwargs)
        except RetryError as exc:
            last_err = exc.last_attempt.exception() if exc.last_attempt else exc
            logger.warning(
                "llm_retries_exhausted",
                model_id=self.model_id,
                error=str(last_err),
            )
            raise GenerationError(f"AI request failed: {last_err}") from last_err

        text = _extract_text(response)
        logger.info(
            "llm_generate_ok",
            model_id=self.model_id,
            chars=len(text),
            schema=response_schema is not None,
            image=image is not None,
        )
        return text

    async def validate_key(self) -> bool:
        """Send a trivial prompt to check the configured key."""
        try:
            await self.generate("Test connection")
        except (ConfigurationError, GenerationError) as exc:
            logger.info("llm_key_invalid", error=str(exc))
            return False
        return True
