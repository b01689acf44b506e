"""Threshold-based health evaluation of a single reading."""

from __future__ import annotations

from src.sensors.models import HealthStatus, Reading, Severity

# Temperature bands in °C.
CRITICAL_LOW = 37.0
CRITICAL_HIGH = 39.7
NORMAL_LOW = 37.5
NORMAL_HIGH = 39.2
SLEEPING_HIGH = 39.0

_RANK: dict[Severity, int] = {"normal": 0, "warning": 1, "critical": 2}


def _escalate(current: Severity, candidate: Severity) -> Severity:
    return candidate if _RANK[candidate] > _RANK[current] else current


def is_temperature_normal(temperature: float) -> bool:
    return NORMAL_LOW <= temperature <= NORMAL_HIGH


def evaluate(reading: Reading) -> HealthStatus:
    """Classify *reading* into a severity with human-readable concerns.

    Severity starts at ``normal`` and only ever escalates.
    """
    severity: Severity = "normal"
    concerns: list[str] = []
    temp = reading.temperature

    if temp < CRITICAL_LOW or temp > CRITICAL_HIGH:
        severity = _escalate(severity, "critical")
        concerns.append(f"critical temperature: {temp}°C")
    elif not is_temperature_normal(temp):
        severity = _escalate(severity, "warning")
        concerns.append(f"abnormal temperature: {temp}°C")

    if reading.activity == "sleeping" and temp > SLEEPING_HIGH:
        concerns.append("elevated temperature while sleeping")
        severity = _escalate(severity, "warning")

    return HealthStatus(
        severity=severity,
        temperature=temp,
        activity=reading.activity,
        location=reading.location,
        timestamp=reading.timestamp,
        concerns=tuple(concerns),
    )
