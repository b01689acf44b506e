"""Tests for SubjectMonitor — reading cache and APScheduler refresh jobs."""

import random
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from src.memory.models import HEALTH
from src.memory.store import MemoryStore
from src.sensors.models import Reading
from src.sensors.monitor import SubjectMonitor

pytestmark = pytest.mark.usefixtures("_no_turso")


@pytest.fixture
def memory(tmp_path: Path) -> MemoryStore:
    return MemoryStore(db_path=tmp_path / "test.db")


@pytest.fixture
async def monitor(memory: MemoryStore):
    m = SubjectMonitor(memory=memory, interval_seconds=30, rng=random.Random(5))
    yield m
    await m.shutdown()


def _job_ids(monitor: SubjectMonitor) -> list[str]:
    return [job.id for job in monitor._scheduler.get_jobs()]


# -- Lifecycle -----------------------------------------------------------------


async def test_start_and_shutdown(monitor: SubjectMonitor) -> None:
    await monitor.start()
    assert monitor.running is True

    await monitor.shutdown()
    assert monitor.running is False


async def test_shutdown_is_idempotent(monitor: SubjectMonitor) -> None:
    await monitor.start()
    await monitor.start_monitoring("cat1")

    await monitor.shutdown()
    await monitor.shutdown()
    assert monitor.running is False
    assert not monitor.is_monitoring("cat1")


async def test_shutdown_clears_readings(monitor: SubjectMonitor) -> None:
    await monitor.start_monitoring("cat1")
    await monitor.shutdown()
    assert monitor._readings == {}


# -- start_monitoring / stop_monitoring ----------------------------------------


async def test_start_monitoring_seeds_reading_and_job(monitor: SubjectMonitor) -> None:
    await monitor.start()
    await monitor.start_monitoring("cat1")

    assert monitor.is_monitoring("cat1")
    assert _job_ids(monitor) == ["cat1"]
    assert isinstance(await monitor.get_current_data("cat1"), Reading)


async def test_start_monitoring_twice_keeps_one_job(monitor: SubjectMonitor) -> None:
    await monitor.start()
    await monitor.start_monitoring("cat1")
    first = await monitor.get_current_data("cat1")

    await monitor.start_monitoring("cat1")

    assert _job_ids(monitor) == ["cat1"]
    # Existing reading is not reseeded.
    assert await monitor.get_current_data("cat1") is first


async def test_jobs_added_before_start_are_kept(monitor: SubjectMonitor) -> None:
    await monitor.start_monitoring("cat1")
    await monitor.start_monitoring("cat1")
    assert _job_ids(monitor) == ["cat1"]

    await monitor.start()
    assert _job_ids(monitor) == ["cat1"]


async def test_stop_monitoring_removes_job_and_reading(monitor: SubjectMonitor) -> None:
    await monitor.start()
    await monitor.start_monitoring("cat1")
    await monitor.start_monitoring("cat2")

    await monitor.stop_monitoring("cat1")

    assert not monitor.is_monitoring("cat1")
    assert "cat1" not in monitor._readings
    assert _job_ids(monitor) == ["cat2"]


async def test_stop_monitoring_unknown_is_noop(monitor: SubjectMonitor) -> None:
    await monitor.stop_monitoring("ghost")
    assert _job_ids(monitor) == []


# -- get_current_data ----------------------------------------------------------


async def test_get_current_data_bootstraps_monitoring(monitor: SubjectMonitor) -> None:
    reading = await monitor.get_current_data("new-cat")
    assert reading is not None
    assert monitor.is_monitoring("new-cat")
    assert _job_ids(monitor) == ["new-cat"]


async def test_seed_reading_within_baseline_band(monitor: SubjectMonitor) -> None:
    reading = await monitor.get_current_data("cat1")
    assert 37.5 <= reading.temperature <= 38.5


# -- _refresh ------------------------------------------------------------------


async def test_refresh_replaces_reading(monitor: SubjectMonitor) -> None:
    await monitor.start_monitoring("cat1")
    replacement = Reading(temperature=38.9, activity="eating", location="kitchen")

    with patch("src.sensors.monitor.sample", return_value=replacement) as mock_sample:
        await monitor._refresh("cat1")

    assert await monitor.get_current_data("cat1") is replacement
    previous = mock_sample.call_args.args[0]
    assert isinstance(previous, Reading)


async def test_refresh_after_stop_is_noop(monitor: SubjectMonitor) -> None:
    listener = AsyncMock()
    monitor.add_listener(listener)
    await monitor.start_monitoring("cat1")
    await monitor.stop_monitoring("cat1")

    await monitor._refresh("cat1")

    assert "cat1" not in monitor._readings
    listener.assert_not_awaited()


async def test_refresh_notifies_listeners(monitor: SubjectMonitor) -> None:
    listener = AsyncMock()
    monitor.add_listener(listener)
    await monitor.start_monitoring("cat1")

    await monitor._refresh("cat1")

    current = await monitor.get_current_data("cat1")
    listener.assert_awaited_once_with("cat1", current)


async def test_failing_listener_does_not_stop_others(monitor: SubjectMonitor) -> None:
    broken = AsyncMock(side_effect=RuntimeError("boom"))
    healthy = AsyncMock()
    monitor.add_listener(broken)
    monitor.add_listener(healthy)
    await monitor.start_monitoring("cat1")

    await monitor._refresh("cat1")

    healthy.assert_awaited_once()


async def test_monitors_pets_independently(monitor: SubjectMonitor) -> None:
    await monitor.start_monitoring("cat1")
    await monitor.start_monitoring("cat2")
    untouched = await monitor.get_current_data("cat2")

    await monitor._refresh("cat1")

    assert await monitor.get_current_data("cat2") is untouched


# -- History and health --------------------------------------------------------


async def test_recent_data_is_chronological(monitor: SubjectMonitor) -> None:
    history = await monitor.get_recent_data("cat1", minutes=5)

    assert len(history) == 10
    timestamps = [r.timestamp for r in history]
    assert timestamps == sorted(timestamps)
    assert history[-1] is await monitor.get_current_data("cat1")


async def test_recent_data_returns_at_least_one(monitor: SubjectMonitor) -> None:
    history = await monitor.get_recent_data("cat1", minutes=0)
    assert len(history) == 1


async def test_check_health_status(monitor: SubjectMonitor) -> None:
    await monitor.start_monitoring("cat1")
    monitor._readings["cat1"] = Reading(temperature=39.6, activity="active", location="window")

    status = await monitor.check_health_status("cat1")

    assert status == {"is_temperature_normal": False, "temperature": 39.6, "activity": "active"}


# -- save_snapshot -------------------------------------------------------------


async def test_save_snapshot_writes_health_memory(
    monitor: SubjectMonitor, memory: MemoryStore
) -> None:
    reading = await monitor.get_current_data("cat1")

    await monitor.save_snapshot("cat1")

    records = await memory.recent("cat1", HEALTH)
    assert len(records) == 1
    assert records[0].kind == "sensor_data"
    assert records[0].content == f"Sensor data: {reading.describe()}"
    assert records[0].metadata["temperature"] == reading.temperature


async def test_save_snapshot_failure_leaves_cache_untouched(
    monitor: SubjectMonitor, memory: MemoryStore
) -> None:
    reading = await monitor.get_current_data("cat1")

    with (
        patch.object(memory, "append_event", AsyncMock(side_effect=OSError("disk full"))),
        pytest.raises(OSError, match="disk full"),
    ):
        await monitor.save_snapshot("cat1")

    assert await monitor.get_current_data("cat1") is reading


async def test_save_snapshot_without_memory_raises() -> None:
    monitor = SubjectMonitor()
    with pytest.raises(RuntimeError):
        await monitor.save_snapshot("cat1")
