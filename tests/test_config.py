"""Tests for Settings configuration model."""

from src.config import Settings


class TestDefaults:
    def test_generation_defaults(self):
        s = Settings()
        assert s.generation_max_attempts == 3
        assert s.generation_backoff_seconds == 1.0
        assert s.small_model == "haiku"
        assert s.large_model == "sonnet"

    def test_sensor_and_window_defaults(self):
        s = Settings()
        assert s.sensor_refresh_seconds == 30.0
        assert s.conversation_window_size == 32

    def test_api_defaults(self):
        s = Settings()
        assert s.api_port == 3001


class TestOverrides:
    def test_init_values_override_defaults(self):
        s = Settings(sensor_refresh_seconds=5, conversation_window_size=8)
        assert s.sensor_refresh_seconds == 5.0
        assert s.conversation_window_size == 8
