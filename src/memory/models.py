"""Data models for per-pet conversation memory."""

from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["user", "subject"]

# Memory partitions bound to every pet runtime.
MESSAGES = "messages"
HEALTH = "health"
BEHAVIOR = "behavior"
ANALYSIS = "analysis"
PARTITIONS: tuple[str, ...] = (MESSAGES, HEALTH, BEHAVIOR, ANALYSIS)


class MemoryRecord(BaseModel):
    """A single append-only memory row.

    Conversation turns are records with ``kind="turn"``; health alerts and
    sensor snapshots are tagged with their own kind.
    """

    id: str
    subject_id: str
    partition: str = MESSAGES
    kind: str = "turn"
    role: Role
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: str

    @property
    def is_alert(self) -> bool:
        return self.kind == "health_alert"
