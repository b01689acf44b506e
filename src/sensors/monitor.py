"""SubjectMonitor — live reading cache and periodic refresh per pet."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.config import settings
from src.memory.models import HEALTH
from src.sensors.generator import sample
from src.sensors.health import is_temperature_normal

if TYPE_CHECKING:
    import random
    from collections.abc import Awaitable, Callable

    from src.memory.store import MemoryStore
    from src.sensors.models import Reading

    ReadingListener = Callable[[str, Reading], Awaitable[None]]

logger = logging.getLogger(__name__)


class SubjectMonitor:
    """Owns the current reading for each monitored pet.

    Each monitored pet gets one APScheduler interval job (job id = pet id)
    that replaces the current reading with a freshly smoothed sample and
    then notifies listeners.

    Args:
        memory: MemoryStore used by :meth:`save_snapshot`.
        interval_seconds: Refresh period (default from settings).
        rng: Randomness source for the generator (tests pass a seeded one).
    """

    def __init__(
        self,
        memory: MemoryStore | None = None,
        interval_seconds: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._memory = memory
        self._interval = interval_seconds or settings.sensor_refresh_seconds
        self._rng = rng
        self._readings: dict[str, Reading] = {}
        self._monitored: set[str] = set()
        self._listeners: list[ReadingListener] = []
        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def is_monitoring(self, subject_id: str) -> bool:
        return subject_id in self._monitored

    def add_listener(self, listener: ReadingListener) -> None:
        """Register an async callback run after every refresh."""
        self._listeners.append(listener)

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Start firing refresh jobs (jobs added earlier are picked up)."""
        if not self._running:
            self._scheduler.start()
            self._running = True
            logger.info(
                "Sensor monitor started (%d pet(s), interval=%ss)",
                len(self._monitored),
                self._interval,
            )

    async def shutdown(self) -> None:
        """Cancel every refresh job and drop all readings. Safe to call twice."""
        for subject_id in list(self._monitored):
            self._remove_job(subject_id)
        self._monitored.clear()
        self._readings.clear()
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Sensor monitor stopped")

    # -- Monitoring ------------------------------------------------------------

    async def start_monitoring(self, subject_id: str) -> None:
        """Seed a reading if absent and (re)arm the refresh job."""
        if subject_id not in self._readings:
            self._readings[subject_id] = sample(rng=self._rng)

        # Cancel-and-replace so a pet never has two competing jobs.
        self._remove_job(subject_id)
        self._scheduler.add_job(
            self._refresh,
            trigger=IntervalTrigger(seconds=self._interval),
            id=subject_id,
            name=f"sensor:{subject_id}",
            args=[subject_id],
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._monitored.add(subject_id)
        logger.info("Started monitoring pet: %s", subject_id)

    async def stop_monitoring(self, subject_id: str) -> None:
        """Cancel the refresh job, then discard the cached reading."""
        if subject_id not in self._monitored and subject_id not in self._readings:
            return
        self._remove_job(subject_id)
        self._monitored.discard(subject_id)
        self._readings.pop(subject_id, None)
        logger.info("Stopped monitoring pet: %s", subject_id)

    async def get_current_data(self, subject_id: str) -> Reading | None:
        """Return the current reading, bootstrapping monitoring if needed."""
        reading = self._readings.get(subject_id)
        if reading is None:
            await self.start_monitoring(subject_id)
            reading = self._readings.get(subject_id)
        return reading

    async def get_recent_data(self, subject_id: str, minutes: float = 30) -> list[Reading]:
        """Synthesize a short history ending at the current reading.

        One sample per refresh interval, oldest first.
        """
        current = await self.get_current_data(subject_id)
        if current is None:
            return []

        count = max(int(minutes * 60 // self._interval), 1)
        now = datetime.now(UTC)
        history: list[Reading] = []
        previous = current
        for i in range(count):
            ts = now - timedelta(seconds=i * self._interval)
            previous = current if i == 0 else sample(previous, rng=self._rng, timestamp=ts)
            history.append(previous)
        history.sort(key=lambda r: r.timestamp)
        return history

    async def check_health_status(self, subject_id: str) -> dict[str, Any] | None:
        """Quick normal-band check on the current reading."""
        reading = await self.get_current_data(subject_id)
        if reading is None:
            return None
        return {
            "is_temperature_normal": is_temperature_normal(reading.temperature),
            "temperature": reading.temperature,
            "activity": reading.activity,
        }

    async def save_snapshot(self, subject_id: str, reading: Reading | None = None) -> None:
        """Persist a reading to the pet's health memory.

        Storage errors propagate; the live cache is never modified here.
        """
        if self._memory is None:
            msg = "No memory store configured for sensor snapshots"
            raise RuntimeError(msg)
        reading = reading or await self.get_current_data(subject_id)
        if reading is None:
            return
        await self._memory.append_event(
            subject_id,
            "sensor_data",
            f"Sensor data: {reading.describe()}",
            partition=HEALTH,
            metadata=reading.model_dump(mode="json"),
        )

    # -- Internal --------------------------------------------------------------

    def _remove_job(self, subject_id: str) -> None:
        try:
            self._scheduler.remove_job(subject_id)
        except JobLookupError:
            logger.debug("No refresh job for pet %s", subject_id)

    async def _refresh(self, subject_id: str) -> None:
        """Callback invoked by APScheduler on every tick."""
        if subject_id not in self._monitored:
            return

        reading = sample(self._readings.get(subject_id), rng=self._rng)
        self._readings[subject_id] = reading
        logger.debug("Refreshed pet %s: %s", subject_id, reading.describe())

        for listener in list(self._listeners):
            try:
                await listener(subject_id, reading)
            except Exception:
                logger.exception("Reading listener failed for pet %s", subject_id)
