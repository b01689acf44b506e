"""ConversationOrchestrator — one chat turn from user text to pet reply."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from src.config import settings
from src.llm.client import GeneratedReply
from src.llm.models import LARGE
from src.llm.prompt import build_turn_context, render_prompt, turn_snapshot
from src.llm.retry import RetryError, linear_backoff, retry_async

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from src.agents.registry import RuntimeRegistry
    from src.agents.runtime import PersonaRuntime
    from src.llm.client import GenerationBackend
    from src.profiles.models import PetProfile
    from src.profiles.store import ProfileStore
    from src.sensors.models import Reading

logger = logging.getLogger(__name__)

ERROR_REPLY = (
    "I apologize, but I'm experiencing some technical difficulties. "
    "Please try again in a moment."
)
RETRY_EXHAUSTED_REPLY = (
    "I apologize, but I'm having trouble formulating a response right now. "
    "Could you please try rephrasing your message?"
)


class ConversationOrchestrator:
    """Runs chat turns. Holds no per-turn state between calls.

    Args:
        registry: Supplies the pet's runtime (persona, memory, sensor).
        profiles: Profile store for the health profile block.
        backend: Generation backend.
        window_size: How many recent messages go into the prompt.
        max_attempts: Generation attempts before the apology reply.
        backoff_seconds: Base delay; attempt *n* waits ``n * base``.
        sleep: Injected for tests.
    """

    def __init__(
        self,
        registry: RuntimeRegistry,
        profiles: ProfileStore,
        backend: GenerationBackend,
        *,
        window_size: int | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._registry = registry
        self._profiles = profiles
        self._backend = backend
        self._window_size = window_size or settings.conversation_window_size
        self._max_attempts = max_attempts or settings.generation_max_attempts
        self._backoff = linear_backoff(
            settings.generation_backoff_seconds if backoff_seconds is None else backoff_seconds
        )
        self._sleep = sleep

    async def send_message(self, subject_id: str, text: str) -> str:
        """Handle one user message for a pet. Always returns reply text."""
        logger.info("Message for pet %s: %s", subject_id, text[:80])
        try:
            runtime = await self._registry.get_runtime(subject_id)
            reading, profile = await self._fetch_context(runtime)

            # The user turn is stored before generation so it survives a failure.
            await runtime.messages.append(
                text, role="user", metadata=turn_snapshot(reading, profile)
            )
            history = await runtime.messages.recent(self._window_size)
            context = build_turn_context(
                subject_id,
                runtime.persona,
                text,
                reading=reading,
                profile=profile,
                history=history,
            )
            prompt = render_prompt(context)

            reply = await self._generate(prompt)

            await runtime.messages.append(
                reply.text,
                role="subject",
                metadata={**context.snapshot(), "action": reply.action},
            )
            return reply.text
        except Exception:
            logger.exception("Error processing message for pet %s", subject_id)
            return ERROR_REPLY

    async def _fetch_context(
        self, runtime: PersonaRuntime
    ) -> tuple[Reading | None, PetProfile | None]:
        """Reading and profile, fetched together. Failures become None."""
        reading, profile = await asyncio.gather(
            runtime.sensor.get(),
            self._profiles.get(runtime.subject_id),
            return_exceptions=True,
        )
        if isinstance(reading, Exception):
            logger.warning("Reading unavailable for pet %s: %s", runtime.subject_id, reading)
            reading = None
        if isinstance(profile, Exception):
            logger.warning("Profile unavailable for pet %s: %s", runtime.subject_id, profile)
            profile = None
        return reading, profile

    async def _generate(self, prompt: str) -> GeneratedReply:
        """Generate with bounded retries; exhaustion yields the apology reply."""
        try:
            return await retry_async(
                lambda: self._backend.generate(prompt, LARGE),
                max_attempts=self._max_attempts,
                backoff=self._backoff,
                sleep=self._sleep,
            )
        except RetryError as exc:
            logger.error("Generation failed after %d attempt(s): %s", exc.attempts, exc.last_error)
            return GeneratedReply(text=RETRY_EXHAUSTED_REPLY, action="CONTINUE")
