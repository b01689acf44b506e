"""Capabilities bound to a pet runtime: providers, evaluators, actions.

The set is closed. Every runtime binds exactly one of each concrete class
below, scoped to its own pet.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.sensors.health import evaluate

if TYPE_CHECKING:
    from src.memory.store import MemoryPartition
    from src.sensors.models import HealthStatus, Reading
    from src.sensors.monitor import SubjectMonitor

logger = logging.getLogger(__name__)

HEALTH_ALERT = "health_alert"


@dataclass(frozen=True)
class ReadingEvent:
    """A reading observed for one pet."""

    subject_id: str
    reading: Reading


class Provider(ABC):
    """Supplies context for a conversation turn."""

    name: str = ""

    @abstractmethod
    async def get(self) -> Reading | None: ...


class Evaluator(ABC):
    """Derives a status from an event."""

    name: str = ""

    @abstractmethod
    def validate(self, event: ReadingEvent) -> bool: ...

    @abstractmethod
    def evaluate(self, event: ReadingEvent) -> HealthStatus: ...


class Action(ABC):
    """Side effect triggered by an evaluated status."""

    name: str = ""

    @abstractmethod
    def validate(self, event: ReadingEvent, status: HealthStatus) -> bool: ...

    @abstractmethod
    async def handle(self, event: ReadingEvent, status: HealthStatus) -> bool: ...


# -- Concrete capabilities -----------------------------------------------------


class SensorProvider(Provider):
    """Current collar reading for one pet."""

    name = "SENSOR"

    def __init__(self, subject_id: str, monitor: SubjectMonitor) -> None:
        self.subject_id = subject_id
        self._monitor = monitor

    async def get(self) -> Reading | None:
        return await self._monitor.get_current_data(self.subject_id)


class HealthStatusEvaluator(Evaluator):
    """Threshold evaluation, restricted to its own pet's events."""

    name = "HEALTH_STATUS"

    def __init__(self, subject_id: str) -> None:
        self.subject_id = subject_id

    def validate(self, event: ReadingEvent) -> bool:
        return event.subject_id == self.subject_id

    def evaluate(self, event: ReadingEvent) -> HealthStatus:
        return evaluate(event.reading)


class HealthAlertAction(Action):
    """Persists an alert for every warning or critical evaluation.

    Repeated alerts across refresh cycles are not deduplicated.
    """

    name = "HEALTH_ALERT"

    def __init__(self, subject_id: str, messages: MemoryPartition) -> None:
        self.subject_id = subject_id
        self._messages = messages

    def validate(self, event: ReadingEvent, status: HealthStatus) -> bool:
        if event.subject_id != self.subject_id:
            return False
        return status.needs_alert

    async def handle(self, event: ReadingEvent, status: HealthStatus) -> bool:
        await self._messages.append(
            alert_message(status),
            role="subject",
            kind=HEALTH_ALERT,
            metadata={"status": status.model_dump(mode="json")},
        )
        logger.warning(
            "%s health alert for pet %s: %s",
            status.severity,
            self.subject_id,
            "; ".join(status.concerns),
        )
        return True


def alert_message(status: HealthStatus) -> str:
    severity = "Critical" if status.severity == "critical" else "Warning"
    return f"{severity} Health Alert:\n" + "\n".join(status.concerns)
