"""Shared test fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from src.app import PetApp
from src.llm.client import GeneratedReply, GenerationBackend


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("src.config.settings.turso_database_url", "")


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def backend() -> AsyncMock:
    """A generation backend that always answers with a fixed reply."""
    mock = AsyncMock(spec=GenerationBackend)
    mock.generate.return_value = GeneratedReply(
        speaker="Mochi", text="Purr... I feel great today!", action="CONTINUE"
    )
    return mock


@pytest.fixture
async def pets(tmp_path: Path, db_path: Path, backend: AsyncMock, _no_turso):
    """A fully wired PetApp on temp storage with a no-wait retry sleep."""
    app = PetApp(
        db_path=db_path,
        persona_dir=tmp_path / "pets",
        backend=backend,
        sleep=AsyncMock(),
    )
    yield app
    await app.stop()
