from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PredefinedActivity(BaseModel):
    name: str
    color_hex: str
    goal: str | None = None


def _default_predefined_activities() -> list[PredefinedActivity]:
    return [
        PredefinedActivity(name="Guitar Practice", color_hex="#FF5733"),
        PredefinedActivity(name="Coding", color_hex="#4CAF50"),
    ]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HELIX_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    database_url: str = "sqlite+aiosqlite:///./helix.db"
    database_echo: bool = False

    log_level: str = "INFO"
    log_json: bool = False

    # Curated catalog inserted by `helix seed-activities`.
    # Override via env as JSON, e.g. HELIX_PREDEFINED_ACTIVITIES='[{"name": ...}]'
    predefined_activities: list[PredefinedActivity] = Field(
        default_factory=_default_predefined_activities
    )


def get_settings() -> Settings:
    return Settings()
