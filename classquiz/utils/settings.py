"""Runtime settings, overridable through ``CLASSQUIZ_*`` environment variables or a ``.env`` file."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from classquiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from classquiz.constants.quiz_constants import DEFAULT_SEED_DB_PATH


class Settings(BaseSettings):
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    # Optional SQLite question bank loaded once at startup.
    seed_db_path: str | None = DEFAULT_SEED_DB_PATH
    load_sample_questions: bool = True

    # Fixes the quiz shuffle for reproducible demos.
    random_seed: int | None = None

    model_config = SettingsConfigDict(
        env_prefix="CLASSQUIZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings() -> Settings:
    return Settings()
