"""PetApp — the process-wide ownership root.

Every long-lived component is constructed exactly once here and passed by
reference to the pieces that need it. The HTTP layer and the entry point
talk only to this class.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from src.agents.registry import RuntimeRegistry
from src.chat.orchestrator import ConversationOrchestrator
from src.llm.client import AnthropicBackend
from src.memory.store import MemoryStore
from src.persona.store import PersonaStore
from src.profiles.service import ProfileService
from src.profiles.store import ProfileStore
from src.sensors.health import evaluate
from src.sensors.monitor import SubjectMonitor

if TYPE_CHECKING:
    from pathlib import Path

    from src.llm.client import GenerationBackend
    from src.profiles.models import PetProfile, ProfileCreate, ProfileUpdate
    from src.sensors.models import HealthStatus, Reading

logger = logging.getLogger(__name__)


class PetApp:
    """Wires stores, monitor, registry, and orchestrator together.

    Args:
        db_path: Local database file override (tests).
        persona_dir: Persona directory override (tests).
        backend: Generation backend (default: Anthropic).
        monitor: Pre-built monitor (tests pass one with a seeded rng).
        orchestrator_options: Extra keyword arguments for the orchestrator.
    """

    def __init__(
        self,
        *,
        db_path: Path | None = None,
        persona_dir: Path | None = None,
        backend: GenerationBackend | None = None,
        monitor: SubjectMonitor | None = None,
        **orchestrator_options: Any,
    ) -> None:
        self.memory = MemoryStore(db_path=db_path)
        self.profile_store = ProfileStore(db_path=db_path)
        self.personas = PersonaStore(root=persona_dir)
        self.monitor = monitor or SubjectMonitor(memory=self.memory)
        self.registry = RuntimeRegistry(
            profiles=self.profile_store,
            personas=self.personas,
            memory=self.memory,
            monitor=self.monitor,
        )
        self.profiles = ProfileService(
            store=self.profile_store,
            personas=self.personas,
            monitor=self.monitor,
            memory=self.memory,
            registry=self.registry,
        )
        self.backend = backend or AnthropicBackend()
        self.orchestrator = ConversationOrchestrator(
            registry=self.registry,
            profiles=self.profile_store,
            backend=self.backend,
            **orchestrator_options,
        )
        self.monitor.add_listener(self._on_reading)
        self._started = False
        self._stopped = False

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Resume monitoring for every stored pet and start the scheduler."""
        if self._started:
            return
        profiles = await self.profile_store.list()
        for profile in profiles:
            await self.monitor.start_monitoring(profile.id)
        await self.monitor.start()
        self._started = True
        self._stopped = False
        logger.info("ArchieTag started with %d pet(s)", len(profiles))

    async def stop(self) -> None:
        """Drain refresh jobs and release every runtime. Safe to call twice."""
        if self._stopped:
            return
        self._stopped = True
        self._started = False
        await self.monitor.shutdown()
        await self.registry.close_all()
        close = getattr(self.backend, "close", None)
        if close is not None:
            await close()
        logger.info("ArchieTag stopped")

    # -- Operations exposed to the HTTP layer ----------------------------------

    async def create_profile(self, fields: ProfileCreate | dict[str, Any]) -> str:
        return await self.profiles.create_profile(fields)

    async def get_profile(self, pet_id: str) -> PetProfile | None:
        return await self.profiles.get_profile(pet_id)

    async def list_profiles(self) -> list[PetProfile]:
        return await self.profiles.list_profiles()

    async def update_profile(
        self, pet_id: str, changes: ProfileUpdate | dict[str, Any]
    ) -> PetProfile | None:
        return await self.profiles.update_profile(pet_id, changes)

    async def delete_profile(self, pet_id: str) -> bool:
        return await self.profiles.delete_profile(pet_id)

    async def get_current_reading(self, pet_id: str) -> Reading | None:
        return await self.monitor.get_current_data(pet_id)

    async def get_health_status(self, pet_id: str) -> HealthStatus | None:
        reading = await self.monitor.get_current_data(pet_id)
        return evaluate(reading) if reading else None

    async def get_recent_readings(self, pet_id: str, minutes: float = 30) -> list[Reading]:
        return await self.monitor.get_recent_data(pet_id, minutes)

    async def check_health(self, pet_id: str) -> dict[str, Any] | None:
        return await self.monitor.check_health_status(pet_id)

    async def save_snapshot(self, pet_id: str) -> None:
        await self.monitor.save_snapshot(pet_id)

    async def send_message(self, pet_id: str, text: str) -> str:
        return await self.orchestrator.send_message(pet_id, text)

    # -- Side pipeline ---------------------------------------------------------

    async def _on_reading(self, pet_id: str, reading: Reading) -> None:
        """Feed every refreshed reading through the pet's evaluator and actions."""
        if not self.monitor.is_monitoring(pet_id):
            return
        runtime = await self.registry.get_runtime(pet_id)
        # Stopped while the runtime was being built.
        if not self.monitor.is_monitoring(pet_id):
            return
        await runtime.process_reading(reading)
