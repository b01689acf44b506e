"""Generation backend: prompt in, structured pet reply out."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import anthropic
from pydantic import BaseModel, ValidationError

from src.config import settings
from src.llm.models import LARGE, ModelManager

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """The backend could not produce a usable reply."""


class MalformedReplyError(GenerationError):
    """The backend answered, but not with a usable reply object."""


class GeneratedReply(BaseModel):
    """The reply object the prompt asks the model for."""

    speaker: str = ""
    text: str
    action: str = "CONTINUE"


class GenerationBackend(ABC):
    """Opaque text generation capability."""

    @abstractmethod
    async def generate(self, prompt: str, model_tier: str = LARGE) -> GeneratedReply:
        """Return a reply for *prompt* or raise :class:`GenerationError`."""


def _extract_json(text: str) -> dict[str, Any]:
    """Parse a JSON object, tolerating markdown fences and surrounding prose."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            msg = "No JSON object in reply"
            raise MalformedReplyError(msg) from None
        try:
            data = json.loads(text[start:end])
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON in reply: {exc}"
            raise MalformedReplyError(msg) from exc

    if not isinstance(data, dict):
        msg = "Reply is not a JSON object"
        raise MalformedReplyError(msg)
    return data


def parse_reply(text: str) -> GeneratedReply:
    """Turn raw model output into a :class:`GeneratedReply`.

    Accepts ``user`` as an alias for ``speaker``. Empty text is malformed.
    """
    if not text or not text.strip():
        msg = "Empty reply"
        raise MalformedReplyError(msg)

    data = _extract_json(text)
    if "speaker" not in data and "user" in data:
        data["speaker"] = data.pop("user")
    try:
        reply = GeneratedReply.model_validate(data)
    except ValidationError as exc:
        msg = f"Reply object failed validation: {exc.error_count()} error(s)"
        raise MalformedReplyError(msg) from exc

    if not reply.text.strip():
        msg = "Reply text is empty"
        raise MalformedReplyError(msg)
    return reply


class AnthropicBackend(GenerationBackend):
    """Claude-backed generation. The client is created lazily."""

    def __init__(
        self,
        models: ModelManager | None = None,
        client: anthropic.AsyncAnthropic | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self._models = models or ModelManager()
        self._client = client
        self._max_tokens = max_tokens or settings.generation_max_tokens

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        return self._client

    async def generate(self, prompt: str, model_tier: str = LARGE) -> GeneratedReply:
        client = self._get_client()
        model = self._models.model_for(model_tier)
        try:
            response = await client.messages.create(
                model=model,
                max_tokens=self._max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as exc:
            msg = f"Generation request failed: {exc}"
            raise GenerationError(msg) from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        logger.debug("Generation (%s) returned %d chars", model, len(text))
        return parse_reply(text)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
