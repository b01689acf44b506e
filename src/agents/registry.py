"""RuntimeRegistry — lazily builds and caches one PersonaRuntime per pet."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from src.agents.runtime import PersonaRuntime
from src.persona.builder import build_persona, default_persona

if TYPE_CHECKING:
    from src.memory.store import MemoryStore
    from src.persona.models import Persona
    from src.persona.store import PersonaStore
    from src.profiles.store import ProfileStore
    from src.sensors.monitor import SubjectMonitor

logger = logging.getLogger(__name__)


class RuntimeRegistry:
    """Maps pet IDs to cached runtimes.

    Concurrent first requests for the same pet share a single build: the
    cache fill is guarded by a per-pet lock and re-checked inside it.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        personas: PersonaStore,
        memory: MemoryStore,
        monitor: SubjectMonitor,
    ) -> None:
        self._profiles = profiles
        self._personas = personas
        self._memory = memory
        self._monitor = monitor
        self._runtimes: dict[str, PersonaRuntime] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __contains__(self, pet_id: str) -> bool:
        return pet_id in self._runtimes

    def __len__(self) -> int:
        return len(self._runtimes)

    def peek(self, pet_id: str) -> PersonaRuntime | None:
        """Return the cached runtime without building one."""
        return self._runtimes.get(pet_id)

    async def get_runtime(self, pet_id: str) -> PersonaRuntime:
        """Return the cached runtime for *pet_id*, building it on first use."""
        runtime = self._runtimes.get(pet_id)
        if runtime is not None:
            return runtime

        lock = self._locks.setdefault(pet_id, asyncio.Lock())
        async with lock:
            runtime = self._runtimes.get(pet_id)
            if runtime is None:
                persona = await self.get_persona(pet_id)
                runtime = PersonaRuntime.build(pet_id, persona, self._memory, self._monitor)
                self._runtimes[pet_id] = runtime
                logger.info("Created runtime for pet %s (persona=%s)", pet_id, persona.name)
        return runtime

    async def load(self, pet_id: str) -> PersonaRuntime:
        """Explicitly build (or fetch) a runtime ahead of the first chat turn."""
        return await self.get_runtime(pet_id)

    async def get_persona(self, pet_id: str) -> Persona:
        """Persona file if present, else derived from the profile, else default."""
        persona = await self._personas.load(pet_id)
        if persona is not None:
            return persona

        profile = await self._profiles.get(pet_id)
        if profile is not None:
            return build_persona(profile)

        logger.warning("No persona or profile for pet %s, using default persona", pet_id)
        return default_persona()

    async def replace_persona(self, pet_id: str, persona: Persona) -> None:
        """Persist a new persona and drop the cached runtime so it is rebuilt."""
        await self._personas.save(pet_id, persona)
        await self.invalidate(pet_id)

    async def invalidate(self, pet_id: str) -> bool:
        """Close and forget the cached runtime. Returns True if one existed."""
        lock = self._locks.setdefault(pet_id, asyncio.Lock())
        async with lock:
            runtime = self._runtimes.pop(pet_id, None)
        self._locks.pop(pet_id, None)
        if runtime is None:
            return False
        await runtime.close()
        return True

    async def close_all(self) -> None:
        """Release every runtime (process shutdown)."""
        runtimes = list(self._runtimes.values())
        self._runtimes.clear()
        self._locks.clear()
        for runtime in runtimes:
            await runtime.close()
        if runtimes:
            logger.info("Closed %d runtime(s)", len(runtimes))
