"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """ArchieTag configuration. All values come from environment variables."""

    # Anthropic
    anthropic_api_key: str = Field(default="")
    small_model: str = Field(default="haiku")
    large_model: str = Field(default="sonnet")
    generation_max_tokens: int = Field(default=1024)

    # Generation retries
    generation_max_attempts: int = Field(default=3)
    generation_backoff_seconds: float = Field(default=1.0)

    # Database
    database_path: Path = Field(default=Path("data/archietag.db"))

    # Turso (hosted libSQL) — when set, overrides local database_path
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # Persona files (one directory per pet)
    persona_dir: Path = Field(default=Path("data/pets"))

    # Sensors
    sensor_refresh_seconds: float = Field(default=30.0)

    # Conversation
    conversation_window_size: int = Field(default=32)

    # HTTP API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3001)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)


settings = Settings()
