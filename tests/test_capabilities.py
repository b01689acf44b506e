"""Tests for runtime capabilities and PersonaRuntime reading processing."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from src.agents.capabilities import (
    HEALTH_ALERT,
    HealthAlertAction,
    HealthStatusEvaluator,
    ReadingEvent,
    SensorProvider,
    alert_message,
)
from src.agents.runtime import PersonaRuntime
from src.memory.store import MemoryStore
from src.persona.builder import default_persona
from src.sensors.health import evaluate
from src.sensors.models import Reading
from src.sensors.monitor import SubjectMonitor

pytestmark = pytest.mark.usefixtures("_no_turso")


def _reading(
    temperature: float = 38.0, activity: str = "resting", location: str = "kitchen"
) -> Reading:
    return Reading(temperature=temperature, activity=activity, location=location)


@pytest.fixture
def memory(tmp_path: Path) -> MemoryStore:
    return MemoryStore(db_path=tmp_path / "test.db")


@pytest.fixture
async def runtime(memory: MemoryStore):
    monitor = SubjectMonitor(memory=memory)
    yield PersonaRuntime.build("cat1", default_persona(), memory, monitor)
    await monitor.shutdown()


# -- Provider / Evaluator ------------------------------------------------------


async def test_sensor_provider_reads_monitor() -> None:
    monitor = AsyncMock()
    monitor.get_current_data.return_value = _reading()

    reading = await SensorProvider("cat1", monitor).get()

    assert reading.temperature == 38.0
    monitor.get_current_data.assert_awaited_once_with("cat1")


def test_evaluator_only_accepts_own_pet() -> None:
    evaluator = HealthStatusEvaluator("cat1")
    assert evaluator.validate(ReadingEvent("cat1", _reading()))
    assert not evaluator.validate(ReadingEvent("cat2", _reading()))


# -- HealthAlertAction ---------------------------------------------------------


async def test_alert_action_appends_alert() -> None:
    messages = AsyncMock()
    action = HealthAlertAction("cat1", messages)
    event = ReadingEvent("cat1", _reading(40.0, "active"))
    status = evaluate(event.reading)

    assert action.validate(event, status)
    assert await action.handle(event, status) is True

    messages.append.assert_awaited_once()
    text = messages.append.call_args.args[0]
    assert text.startswith("Critical Health Alert:\n")
    assert messages.append.call_args.kwargs["kind"] == HEALTH_ALERT


def test_alert_action_ignores_normal_and_other_pets() -> None:
    action = HealthAlertAction("cat1", AsyncMock())
    normal = ReadingEvent("cat1", _reading(38.0))
    fever = ReadingEvent("cat2", _reading(40.0))

    assert not action.validate(normal, evaluate(normal.reading))
    assert not action.validate(fever, evaluate(fever.reading))


def test_alert_message_for_warning() -> None:
    status = evaluate(_reading(39.1, "sleeping"))
    assert alert_message(status) == "Warning Health Alert:\nelevated temperature while sleeping"


# -- PersonaRuntime.process_reading --------------------------------------------


async def test_process_reading_normal_persists_nothing(
    runtime: PersonaRuntime, memory: MemoryStore
) -> None:
    statuses = await runtime.process_reading(_reading(38.2))

    assert [s.severity for s in statuses] == ["normal"]
    assert await memory.list_kind("cat1", HEALTH_ALERT) == []


async def test_repeated_abnormal_readings_are_not_deduplicated(
    runtime: PersonaRuntime, memory: MemoryStore
) -> None:
    await runtime.process_reading(_reading(40.0, "active"))
    await runtime.process_reading(_reading(40.0, "active"))

    alerts = await memory.list_kind("cat1", HEALTH_ALERT)
    assert len(alerts) == 2
    assert all(a.partition == "messages" for a in alerts)


async def test_closed_runtime_stops_acting(runtime: PersonaRuntime, memory: MemoryStore) -> None:
    await runtime.close()
    assert runtime.closed

    assert await runtime.process_reading(_reading(40.0)) == []
    assert await memory.list_kind("cat1", HEALTH_ALERT) == []


def test_runtime_binds_all_partitions(runtime: PersonaRuntime) -> None:
    assert set(runtime.partitions) == {"messages", "health", "behavior", "analysis"}
    assert runtime.messages.subject_id == "cat1"
