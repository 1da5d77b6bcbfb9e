"""
Chat completion invocation for the Mentor Gateway.

``ChatInvoker`` wraps a single call to the LLM chat completion service with
the configured model and a default temperature. ``run_json_chat`` builds the
two-message JSON-mode prompt used by most mentor features and parses the
reply defensively.
"""

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from openai import AsyncOpenAI

from .config import GatewaySettings
from .errors import LLMNotConfiguredError
from .models import ChatMessage
from .sanitize import safe_json_parse

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.4
DEFAULT_JSON_MAX_TOKENS = 400
JSON_RESPONSE_FORMAT = {"type": "json_object"}


@dataclass(frozen=True)
class ChatResult:
    """Reply text and token usage of one completion."""

    text: str
    usage: dict[str, Any] | None = None


@dataclass(frozen=True)
class JsonModeResult:
    """Parsed JSON object and token usage of one JSON-mode completion."""

    json: dict[str, Any]
    usage: dict[str, Any] | None = None


def merge_options(
    base: Mapping[str, Any],
    overrides: Mapping[str, Any],
    messages: Sequence[ChatMessage],
) -> dict[str, Any]:
    """
    Build the completion request payload.

    Precedence, lowest to highest: ``base``, then every ``overrides`` value
    that is not None, then ``messages``, which always come from the call.
    """
    payload = dict(base)
    for key, value in overrides.items():
        if value is not None:
            payload[key] = value
    payload["messages"] = [message.model_dump() for message in messages]
    return payload


def _usage_dict(usage: Any) -> dict[str, Any] | None:
    if usage is None:
        return None
    if hasattr(usage, "model_dump"):
        return usage.model_dump()
    if isinstance(usage, Mapping):
        return dict(usage)
    return None


def _reply_text(response: Any) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) if message is not None else None
    return content or ""


class ChatInvoker:
    """
    Calls the chat completion service with gateway defaults.

    The ``client`` is an ``AsyncOpenAI`` instance, or any object exposing a
    compatible ``chat.completions.create`` coroutine. A None client means the
    LLM was never configured: every call fails before reaching the network.
    """

    def __init__(
        self,
        client: Any | None,
        model: str,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> "ChatInvoker":
        client = None
        if settings.llm_configured:
            client = AsyncOpenAI(
                api_key=settings.openai_api_key, base_url=settings.openai_base_url
            )
        return cls(client, model=settings.openai_model)

    @property
    def available(self) -> bool:
        return self._client is not None

    async def run_chat(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        response_format: Mapping[str, Any] | None = None,
    ) -> ChatResult:
        """
        Send ``messages`` to the model and return its reply.

        Raises:
            LLMNotConfiguredError: when no client was configured
        """
        if self._client is None:
            raise LLMNotConfiguredError()

        payload = merge_options(
            {"model": self.model, "temperature": self.temperature},
            {
                "max_tokens": max_tokens,
                "temperature": temperature,
                "response_format": dict(response_format) if response_format else None,
            },
            messages,
        )
        response = await self._client.chat.completions.create(**payload)
        return ChatResult(
            text=_reply_text(response),
            usage=_usage_dict(getattr(response, "usage", None)),
        )

    async def run_json_chat(
        self,
        system_prompt: str,
        user_payload: Any,
        *,
        max_tokens: int = DEFAULT_JSON_MAX_TOKENS,
        temperature: float | None = None,
    ) -> JsonModeResult:
        """
        Ask the model for a single JSON object.

        ``user_payload`` is sent as is when it is a string and serialized to
        JSON otherwise. Failures of the completion call propagate; a reply that
        is not a JSON object yields an empty dict.
        """
        if isinstance(user_payload, str):
            content = user_payload
        else:
            content = json.dumps(user_payload, default=str)

        result = await self.run_chat(
            [
                ChatMessage(role="system", content=system_prompt),
                ChatMessage(role="user", content=content),
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            response_format=JSON_RESPONSE_FORMAT,
        )
        parsed = safe_json_parse(result.text or "{}")
        if not isinstance(parsed, dict):
            logger.debug("Model returned JSON that is not an object")
            parsed = {}
        return JsonModeResult(json=parsed, usage=result.usage)

    async def aclose(self) -> None:
        """Release the client's connection pool."""
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()
