"""MemoryStore — append-only conversation and event memory via libsql.

Every record belongs to one pet (``subject_id``) and one partition
(messages, health, behavior, analysis). Ordering is insertion order per pet.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from src.db import connect
from src.memory.models import MESSAGES, MemoryRecord, Role

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS memories (
    seq        INTEGER PRIMARY KEY AUTOINCREMENT,
    id         TEXT NOT NULL UNIQUE,
    subject_id TEXT NOT NULL,
    partition_name TEXT NOT NULL,
    kind       TEXT NOT NULL,
    role       TEXT NOT NULL,
    content    TEXT NOT NULL,
    metadata   TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL
)
"""

_CREATE_INDEX = """
CREATE INDEX IF NOT EXISTS idx_memories_subject
    ON memories (subject_id, partition_name, seq)
"""

_COLUMNS = "id, subject_id, partition_name, kind, role, content, metadata, created_at"


def _row_to_record(row: tuple) -> MemoryRecord:
    return MemoryRecord(
        id=row[0],
        subject_id=row[1],
        partition=row[2],
        kind=row[3],
        role=row[4],
        content=row[5],
        metadata=json.loads(row[6] or "{}"),
        created_at=row[7],
    )


class MemoryStore:
    """Persists conversation turns and tagged events per pet.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    Writes are serialized so concurrent appends never interleave.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path
        self._initialised = False
        self._write_lock = asyncio.Lock()

    # -- Internal helpers ------------------------------------------------------

    @contextlib.asynccontextmanager
    async def _connect(self) -> AsyncIterator[Any]:
        schema = () if self._initialised else (_CREATE_TABLE, _CREATE_INDEX)
        async with connect(schema=schema, local_path_override=self._db_path) as db:
            self._initialised = True
            yield db

    # -- Write -----------------------------------------------------------------

    async def append(
        self,
        subject_id: str,
        content: str,
        *,
        role: Role = "subject",
        partition: str = MESSAGES,
        kind: str = "turn",
        metadata: dict[str, Any] | None = None,
    ) -> MemoryRecord:
        """Append one record and return it."""
        record = MemoryRecord(
            id=uuid.uuid4().hex,
            subject_id=subject_id,
            partition=partition,
            kind=kind,
            role=role,
            content=content,
            metadata=metadata or {},
            created_at=datetime.now(UTC).isoformat(),
        )
        async with self._write_lock, self._connect() as db:
            await db.execute(
                f"INSERT INTO memories ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.subject_id,
                    record.partition,
                    record.kind,
                    record.role,
                    record.content,
                    json.dumps(record.metadata, default=str),
                    record.created_at,
                ),
            )
        logger.debug(
            "Stored memory [%s/%s/%s]: %s", subject_id, partition, kind, content[:80]
        )
        return record

    async def append_turn(
        self,
        subject_id: str,
        role: Role,
        text: str,
        metadata: dict[str, Any] | None = None,
    ) -> MemoryRecord:
        """Append a conversation turn to the messages partition."""
        return await self.append(
            subject_id, text, role=role, partition=MESSAGES, kind="turn", metadata=metadata
        )

    async def append_event(
        self,
        subject_id: str,
        kind: str,
        text: str,
        *,
        partition: str = MESSAGES,
        metadata: dict[str, Any] | None = None,
    ) -> MemoryRecord:
        """Append a tagged, pet-authored record (alerts, sensor snapshots)."""
        return await self.append(
            subject_id, text, role="subject", partition=partition, kind=kind, metadata=metadata
        )

    # -- Read ------------------------------------------------------------------

    async def recent(
        self, subject_id: str, partition: str = MESSAGES, limit: int = 32
    ) -> list[MemoryRecord]:
        """Return the last *limit* records of a partition, oldest first."""
        async with self._connect() as db:
            cursor = await db.execute(
                f"""
                SELECT {_COLUMNS} FROM memories
                WHERE subject_id = ? AND partition_name = ?
                ORDER BY seq DESC
                LIMIT ?
                """,
                (subject_id, partition, limit),
            )
            rows = await cursor.fetchall()
        return [_row_to_record(row) for row in reversed(rows)]

    async def recent_turns(self, subject_id: str, limit: int = 32) -> list[MemoryRecord]:
        return await self.recent(subject_id, MESSAGES, limit)

    async def list_kind(self, subject_id: str, kind: str) -> list[MemoryRecord]:
        """Return every record of one kind for a pet, oldest first."""
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM memories WHERE subject_id = ? AND kind = ? ORDER BY seq",
                (subject_id, kind),
            )
            rows = await cursor.fetchall()
        return [_row_to_record(row) for row in rows]

    # -- Delete ----------------------------------------------------------------

    async def clear_subject(self, subject_id: str) -> int:
        """Delete every record for a pet. Returns the number removed."""
        async with self._write_lock, self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM memories WHERE subject_id = ?", (subject_id,)
            )
            removed = cursor.rowcount
        logger.info("Cleared %d memories for pet %s", removed, subject_id)
        return removed


class MemoryPartition:
    """A view of one pet's partition, bound at runtime construction."""

    def __init__(self, store: MemoryStore, subject_id: str, name: str) -> None:
        self._store = store
        self.subject_id = subject_id
        self.name = name

    async def append(
        self,
        content: str,
        *,
        role: Role = "subject",
        kind: str = "turn",
        metadata: dict[str, Any] | None = None,
    ) -> MemoryRecord:
        return await self._store.append(
            self.subject_id,
            content,
            role=role,
            partition=self.name,
            kind=kind,
            metadata=metadata,
        )

    async def recent(self, limit: int = 32) -> list[MemoryRecord]:
        return await self._store.recent(self.subject_id, self.name, limit)
