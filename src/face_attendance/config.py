"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from face_attendance.domain.attendance import CivilDayPolicy

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    storage_timeout_seconds: float = Field(default=10.0, gt=0)
    reference_timezone: str = "Asia/Kolkata"
    civil_day_policy: CivilDayPolicy = CivilDayPolicy.TIMESTAMP
    ledger_lock_timeout_seconds: float = Field(default=5.0, gt=0)
    match_threshold: float = Field(default=0.6, ge=0, le=1)
    embedding_dimension: int | None = 128
    embedding_service_url: str = "http://localhost:8500"
    embedding_timeout_seconds: float = Field(default=15.0, gt=0)
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
