"""ProfileService — profile lifecycle across store, persona, monitor, memory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from src.persona.builder import build_persona
from src.profiles.models import InvalidProfileError, ProfileCreate, ProfileUpdate

if TYPE_CHECKING:
    from src.agents.registry import RuntimeRegistry
    from src.memory.store import MemoryStore
    from src.persona.store import PersonaStore
    from src.profiles.models import PetProfile
    from src.profiles.store import ProfileStore
    from src.sensors.monitor import SubjectMonitor

logger = logging.getLogger(__name__)

_NULLABLE = frozenset(
    name for name, field in ProfileCreate.model_fields.items() if field.default is None
)


def _validate(model: type[ProfileCreate] | type[ProfileUpdate], fields: Any):
    if isinstance(fields, model):
        return fields
    try:
        return model.model_validate(fields)
    except ValidationError as exc:
        msg = f"Invalid profile: {exc.errors(include_url=False)}"
        raise InvalidProfileError(msg) from exc


class ProfileService:
    """Creates, updates, and deletes pets, keeping every dependent piece in step.

    Creating a pet writes its persona file and starts sensor monitoring.
    Updating rewrites the persona and drops the cached runtime. Deleting
    stops monitoring and removes the row, memories, and persona files.
    """

    def __init__(
        self,
        store: ProfileStore,
        personas: PersonaStore,
        monitor: SubjectMonitor,
        memory: MemoryStore,
        registry: RuntimeRegistry,
    ) -> None:
        self._store = store
        self._personas = personas
        self._monitor = monitor
        self._memory = memory
        self._registry = registry

    async def create_profile(self, fields: ProfileCreate | dict[str, Any]) -> str:
        """Validate, persist, derive the persona, start monitoring. Returns the new ID.

        Raises:
            InvalidProfileError: before anything is written.
        """
        data = _validate(ProfileCreate, fields)
        profile = await self._store.create(data)
        await self._personas.save(profile.id, build_persona(profile))
        await self._monitor.start_monitoring(profile.id)
        logger.info("Created profile and persona for pet: %s", profile.name)
        return profile.id

    async def get_profile(self, pet_id: str) -> PetProfile | None:
        return await self._store.get(pet_id)

    async def list_profiles(self) -> list[PetProfile]:
        return await self._store.list()

    async def update_profile(
        self, pet_id: str, changes: ProfileUpdate | dict[str, Any]
    ) -> PetProfile | None:
        """Apply a partial update. Returns None if the pet does not exist."""
        update = _validate(ProfileUpdate, changes)
        # An explicit null on a required field means "leave unchanged".
        values = {
            key: value
            for key, value in update.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE
        }

        try:
            profile = await self._store.update(pet_id, values)
        except ValidationError as exc:
            msg = f"Invalid profile: {exc.errors(include_url=False)}"
            raise InvalidProfileError(msg) from exc
        if profile is None:
            return None
        await self._registry.replace_persona(pet_id, build_persona(profile))
        return profile

    async def delete_profile(self, pet_id: str) -> bool:
        """Remove a pet and everything derived from it."""
        await self._monitor.stop_monitoring(pet_id)
        await self._registry.invalidate(pet_id)
        removed = await self._store.delete(pet_id)
        if removed:
            await self._memory.clear_subject(pet_id)
            await self._personas.remove(pet_id)
        return removed
