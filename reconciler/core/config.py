"""
Centralised engine settings loaded from environment / .env file.

Uses pydantic-settings so every value can be overridden via env vars
or the .env file at the project root.
"""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Project ──────────────────────────────────────────────────────
    PROJECT_NAME: str = "Attendance Reconciler"
    VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"

    # ── CORS ─────────────────────────────────────────────────────────
    CORS_ORIGINS: list[str] = [
        "http://localhost",
        "http://localhost:8000",
        "http://127.0.0.1",
        "http://127.0.0.1:8000",
    ]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v: object) -> list[str]:
        if isinstance(v, str) and not v.lstrip().startswith("["):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v  # type: ignore[return-value]

    # ── Logging ──────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Reason codes ─────────────────────────────────────────────────
    END_OF_SHIFT_CODE: int = 1  # terminal marker, one per employee-day
    BREAK_CODE: int = 14  # smoking / short break, never an absence

    # ── Shift & leave rules ──────────────────────────────────────────
    DEFAULT_SHIFT_CODE: str = "M"
    LEAVE_CONTINUITY_DAYS: float = 1.5
    STANDARD_WORKDAY_HOURS: float = 8.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
