"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Storage
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./meetup.db")
    USE_FIREBASE: bool = os.getenv("USE_FIREBASE", "false").lower() in ("1", "true", "yes")
    FIREBASE_CREDENTIALS_JSON: str | None = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: str | None = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: str | None = os.getenv("FIREBASE_CREDENTIALS_B64")

    # Admin
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")
    ADMIN_COOKIE_NAME: str = "admin_session"
    ADMIN_SESSION_MAX_AGE: int = 60 * 60 * 24  # 1 day

    # Application
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Schedule
    # IANA zone name; empty means the process local time
    EVENT_TIMEZONE: str = os.getenv("EVENT_TIMEZONE", "")
    CATALOG_CACHE_TTL_SECONDS: int = int(os.getenv("CATALOG_CACHE_TTL_SECONDS", "60"))

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 30

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def check_required(self) -> None:
        """Fail fast when a setting the process cannot run without is missing"""
        if not self.ADMIN_PASSWORD:
            raise RuntimeError("ADMIN_PASSWORD must be set")

settings = Settings()
