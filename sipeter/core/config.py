from __future__ import annotations

from datetime import time
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration.

    Values are loaded from environment variables and optional .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    # App
    app_name: str = "SIPETER Facility Portal"
    environment: str = "dev"  # dev|staging|prod
    api_prefix: str = "/api"

    # Database
    database_url: str = "sqlite:///./sipeter.db"

    # Operator credential for admin routes
    operator_token: str = "CHANGE_ME"  # change in prod

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Timezone used for calendar-day comparisons
    timezone: str = "Asia/Jakarta"

    # Booking calendar
    default_booking_time: time = time(9, 0)
    navigation_months_ahead: int = 12

    # Venue facilities seeded into the venues table
    venue_facilities: list[str] = [
        "Aula Lantai III",
        "Ruang Sidang Lantai II",
        "Gedung Teater Museum",
        "Auditorium Ali Hasjmy",
        "Gedung Aula Gedung Psikologi",
    ]

    # Vehicles always depart from the same place
    vehicle_origin: str = "Kantor Pusat"

    # Gemini workload analysis; an empty key disables it
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com"


@lru_cache
def get_settings() -> Settings:
    return Settings()
