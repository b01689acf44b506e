"""PersonaRuntime — one conversational runtime per pet."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.agents.capabilities import (
    HealthAlertAction,
    HealthStatusEvaluator,
    ReadingEvent,
    SensorProvider,
)
from src.memory.models import ANALYSIS, BEHAVIOR, HEALTH, MESSAGES
from src.memory.store import MemoryPartition

if TYPE_CHECKING:
    from src.agents.capabilities import Action, Evaluator, Provider
    from src.memory.store import MemoryStore
    from src.persona.models import Persona
    from src.sensors.models import HealthStatus, Reading
    from src.sensors.monitor import SubjectMonitor

logger = logging.getLogger(__name__)


@dataclass
class PersonaRuntime:
    """A pet's persona, memory partitions, and bound capabilities.

    Attributes:
        subject_id: The pet this runtime belongs to.
        persona: Persona used to render prompts.
        partitions: Memory partitions keyed by name.
        sensor: Provider for the current reading.
        evaluators: Bound evaluators, run in order.
        actions: Bound actions, run in order after evaluation.
    """

    subject_id: str
    persona: Persona
    partitions: dict[str, MemoryPartition]
    sensor: Provider
    evaluators: list[Evaluator] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    closed: bool = False

    @classmethod
    def build(
        cls,
        subject_id: str,
        persona: Persona,
        memory: MemoryStore,
        monitor: SubjectMonitor,
    ) -> PersonaRuntime:
        """Wire the standard capability set for one pet."""
        partitions = {
            name: MemoryPartition(memory, subject_id, name)
            for name in (MESSAGES, HEALTH, BEHAVIOR, ANALYSIS)
        }
        return cls(
            subject_id=subject_id,
            persona=persona,
            partitions=partitions,
            sensor=SensorProvider(subject_id, monitor),
            evaluators=[HealthStatusEvaluator(subject_id)],
            actions=[HealthAlertAction(subject_id, partitions[MESSAGES])],
        )

    @property
    def messages(self) -> MemoryPartition:
        return self.partitions[MESSAGES]

    async def process_reading(self, reading: Reading) -> list[HealthStatus]:
        """Run every evaluator once, then every action that accepts the result."""
        event = ReadingEvent(subject_id=self.subject_id, reading=reading)
        statuses: list[HealthStatus] = []
        for evaluator in self.evaluators:
            if not evaluator.validate(event):
                continue
            status = evaluator.evaluate(event)
            statuses.append(status)
            for action in self.actions:
                if action.validate(event, status):
                    await action.handle(event, status)
        return statuses

    async def close(self) -> None:
        """Release the runtime. Capabilities stop being driven after this."""
        if not self.closed:
            self.closed = True
            self.evaluators.clear()
            self.actions.clear()
            logger.info("Closed runtime for pet %s", self.subject_id)
