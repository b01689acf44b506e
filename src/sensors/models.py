"""Data models for sensor readings and derived health status."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Activity = Literal["sleeping", "active", "eating", "resting"]
Severity = Literal["normal", "warning", "critical"]

ACTIVITIES: tuple[Activity, ...] = ("sleeping", "active", "eating", "resting")
LOCATIONS: tuple[str, ...] = ("living room", "bedroom", "kitchen", "bathroom", "window")


class Reading(BaseModel):
    """A single simulated collar sample."""

    model_config = ConfigDict(frozen=True)

    temperature: float
    activity: Activity
    location: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def describe(self) -> str:
        return f"{self.temperature}°C, {self.activity}, {self.location}"


class HealthStatus(BaseModel):
    """Outcome of evaluating one reading. Derived fresh on every evaluation."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    temperature: float
    activity: str
    location: str
    timestamp: datetime
    concerns: tuple[str, ...] = ()

    @property
    def needs_alert(self) -> bool:
        return self.severity in ("warning", "critical")
