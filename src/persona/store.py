"""PersonaStore — one JSON persona file per pet on local disk."""

from __future__ import annotations

import asyncio
import logging
import shutil
from typing import TYPE_CHECKING

from pydantic import ValidationError

from src.config import settings
from src.persona.models import Persona

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

PERSONA_FILENAME = "persona.json"


class PersonaStore:
    """Reads and writes ``<root>/<pet_id>/persona.json``.

    Pass an explicit *root* for test isolation.
    """

    def __init__(self, root: Path | None = None) -> None:
        self._root = root or settings.persona_dir

    def pet_dir(self, pet_id: str) -> Path:
        """The pet's own directory, which must sit directly under the root.

        Raises:
            ValueError: for ids such as ``""``, ``".."`` or ``"a/b"``.
        """
        path = self._root / pet_id
        if not pet_id or path.resolve().parent != self._root.resolve():
            msg = f"Invalid pet id for persona storage: {pet_id!r}"
            raise ValueError(msg)
        return path

    def path_for(self, pet_id: str) -> Path:
        return self.pet_dir(pet_id) / PERSONA_FILENAME

    async def load(self, pet_id: str) -> Persona | None:
        """Return the stored persona, or None if missing or unreadable."""
        try:
            path = self.path_for(pet_id)
        except ValueError:
            logger.warning("Ignoring persona lookup for invalid pet id %r", pet_id)
            return None
        if not path.exists():
            return None
        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
            return Persona.model_validate_json(raw)
        except (OSError, ValidationError):
            logger.exception("Error loading persona for pet %s", pet_id)
            return None

    async def save(self, pet_id: str, persona: Persona) -> None:
        path = self.path_for(pet_id)
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(
            path.write_text, persona.model_dump_json(indent=2), encoding="utf-8"
        )
        logger.debug("Saved persona for pet %s", pet_id)

    async def remove(self, pet_id: str) -> None:
        """Delete the pet's directory and everything in it."""
        await asyncio.to_thread(shutil.rmtree, self.pet_dir(pet_id), ignore_errors=True)
