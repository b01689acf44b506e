"""ProfileStore — CRUD for pet_profiles via libsql."""

from __future__ import annotations

import contextlib
import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from src.db import connect
from src.profiles.models import PetProfile, ProfileCreate

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS pet_profiles (
    id                   TEXT PRIMARY KEY,
    name                 TEXT NOT NULL,
    breed                TEXT,
    age                  INTEGER,
    personality          TEXT,
    weight               REAL,
    health_conditions    TEXT,
    medications          TEXT,
    vaccination_status   TEXT,
    dietary_restrictions TEXT,
    created_at           TEXT NOT NULL,
    updated_at           TEXT NOT NULL
)
"""

_COLUMNS = (
    "id, name, breed, age, personality, weight, health_conditions, medications, "
    "vaccination_status, dietary_restrictions, created_at, updated_at"
)


def make_pet_id() -> str:
    """Generate a new pet ID."""
    return uuid.uuid4().hex


class ProfileStore:
    """Persists pet profiles in SQLite / Turso.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path
        self._initialised = False

    # -- Internal helpers ------------------------------------------------------

    @contextlib.asynccontextmanager
    async def _connect(self) -> AsyncIterator[Any]:
        schema = () if self._initialised else (_CREATE_TABLE,)
        async with connect(schema=schema, local_path_override=self._db_path) as db:
            self._initialised = True
            yield db

    # -- CRUD ------------------------------------------------------------------

    async def create(self, fields: ProfileCreate, pet_id: str | None = None) -> PetProfile:
        """Insert a new profile. Returns the stored profile with its new ID."""
        now = datetime.now(UTC).isoformat()
        profile = PetProfile(
            id=pet_id or make_pet_id(),
            created_at=now,
            updated_at=now,
            **fields.model_dump(),
        )
        async with self._connect() as db:
            await db.execute(
                f"INSERT INTO pet_profiles ({_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                profile.to_row(),
            )
        logger.info("Profile created for pet: %s (%s)", profile.name, profile.id)
        return profile

    async def get(self, pet_id: str) -> PetProfile | None:
        """Fetch a profile by ID, or None if not found."""
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM pet_profiles WHERE id = ?", (pet_id,)
            )
            row = await cursor.fetchone()
        return PetProfile.from_row(row) if row else None

    async def update(self, pet_id: str, changes: dict[str, Any]) -> PetProfile | None:
        """Apply a partial update. Returns the updated profile or None if missing.

        ``id`` and ``created_at`` are never overwritten.
        """
        existing = await self.get(pet_id)
        if existing is None:
            return None

        changes = {k: v for k, v in changes.items() if k not in {"id", "created_at"}}
        merged = existing.model_dump() | changes | {
            "id": pet_id,
            "updated_at": datetime.now(UTC).isoformat(),
        }
        updated = PetProfile.model_validate(merged)
        row = updated.to_row()
        async with self._connect() as db:
            await db.execute(
                """
                UPDATE pet_profiles SET
                    name = ?, breed = ?, age = ?, personality = ?, weight = ?,
                    health_conditions = ?, medications = ?, vaccination_status = ?,
                    dietary_restrictions = ?, updated_at = ?
                WHERE id = ?
                """,
                (*row[1:10], updated.updated_at, pet_id),
            )
        logger.info("Profile updated for pet: %s", pet_id)
        return updated

    async def list(self) -> list[PetProfile]:
        """Return every profile, newest first."""
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM pet_profiles ORDER BY created_at DESC"
            )
            rows = await cursor.fetchall()
        return [PetProfile.from_row(row) for row in rows]

    async def delete(self, pet_id: str) -> bool:
        """Delete a profile. Returns True if a row was removed."""
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM pet_profiles WHERE id = ?", (pet_id,))
            removed = cursor.rowcount > 0
        if removed:
            logger.info("Profile deleted for pet: %s", pet_id)
        return removed
