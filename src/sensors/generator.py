"""Simulated collar readings with temporal smoothing."""

from __future__ import annotations

import random
from datetime import UTC, datetime

from src.sensors.models import ACTIVITIES, LOCATIONS, Reading

BASELINE_TEMPERATURE = 38.0
TEMPERATURE_VARIANCE = 0.5

# Weight of the previous reading when smoothing a fresh sample.
SMOOTHING_WEIGHT = 0.7


def smooth(previous: float, fresh: float) -> float:
    """Blend a fresh temperature into the previous one, rounded to 0.1."""
    return round(previous * SMOOTHING_WEIGHT + fresh * (1 - SMOOTHING_WEIGHT), 1)


def sample(
    previous: Reading | None = None,
    rng: random.Random | None = None,
    timestamp: datetime | None = None,
) -> Reading:
    """Produce a plausible reading, smoothed against *previous* when given."""
    rng = rng or random
    variance = rng.uniform(-1.0, 1.0)
    temperature = round(BASELINE_TEMPERATURE + variance * TEMPERATURE_VARIANCE, 1)
    if previous is not None:
        temperature = smooth(previous.temperature, temperature)

    return Reading(
        temperature=temperature,
        activity=rng.choice(ACTIVITIES),
        location=rng.choice(LOCATIONS),
        timestamp=timestamp or datetime.now(UTC),
    )
