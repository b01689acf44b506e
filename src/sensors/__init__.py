"""Simulated collar sensors — readings, health evaluation, and monitoring."""

from src.sensors.generator import sample
from src.sensors.health import evaluate
from src.sensors.models import HealthStatus, Reading
from src.sensors.monitor import SubjectMonitor

__all__ = [
    "HealthStatus",
    "Reading",
    "SubjectMonitor",
    "evaluate",
    "sample",
]
