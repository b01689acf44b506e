"""Pet profile models."""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, Field


class InvalidProfileError(ValueError):
    """Raised when profile input fails validation (before any side effect)."""


def _require_name(value: str) -> str:
    value = value.strip()
    if not value:
        msg = "name must not be empty"
        raise ValueError(msg)
    return value


Name = Annotated[str, AfterValidator(_require_name)]


class ProfileCreate(BaseModel):
    """Fields accepted when creating a profile."""

    name: Name
    breed: str | None = None
    age: int | None = Field(default=None, ge=0)
    weight: float | None = Field(default=None, gt=0)
    personality: str | None = None
    health_conditions: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    dietary_restrictions: list[str] = Field(default_factory=list)
    vaccination_status: str | None = None


class ProfileUpdate(BaseModel):
    """Partial update — only the fields that were sent are applied."""

    name: Name | None = None
    breed: str | None = None
    age: int | None = Field(default=None, ge=0)
    weight: float | None = Field(default=None, gt=0)
    personality: str | None = None
    health_conditions: list[str] | None = None
    medications: list[str] | None = None
    dietary_restrictions: list[str] | None = None
    vaccination_status: str | None = None


class PetProfile(ProfileCreate):
    """A stored profile. ``id`` is assigned at creation and never changes."""

    id: str
    created_at: str
    updated_at: str

    # -- Serialization ---------------------------------------------------------

    def to_row(self) -> tuple:
        """Serialize to a tuple matching the ``pet_profiles`` column order."""
        return (
            self.id,
            self.name,
            self.breed,
            self.age,
            self.personality,
            self.weight,
            json.dumps(self.health_conditions),
            json.dumps(self.medications),
            self.vaccination_status,
            json.dumps(self.dietary_restrictions),
            self.created_at,
            self.updated_at,
        )

    @classmethod
    def from_row(cls, row: tuple) -> PetProfile:
        """Deserialize from a SQLite row tuple."""
        return cls(
            id=row[0],
            name=row[1],
            breed=row[2],
            age=row[3],
            personality=row[4],
            weight=row[5],
            health_conditions=json.loads(row[6]) if row[6] else [],
            medications=json.loads(row[7]) if row[7] else [],
            vaccination_status=row[8],
            dietary_restrictions=json.loads(row[9]) if row[9] else [],
            created_at=row[10],
            updated_at=row[11],
        )

    def snapshot(self) -> dict[str, Any]:
        """The health-relevant fields attached to conversation turns."""
        return self.model_dump(
            include={
                "name",
                "breed",
                "age",
                "weight",
                "health_conditions",
                "medications",
                "dietary_restrictions",
                "vaccination_status",
            }
        )
