# backend/app/config.py

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str
    redis_url: str = "redis://localhost:6379/0"

    # Cron endpoint auth: "Authorization: Bearer <cron_secret>" in production
    cron_secret: str = "development"
    environment: str = "development"

    # Wall-clock zone for "now" and "today"
    timezone: str = "America/Sao_Paulo"

    webhook_timeout_seconds: float = 10.0
    booking_lock_timeout_seconds: float = 10.0
    booking_lock_wait_seconds: float = 5.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative SQLite path → absolute, anchored at the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        if url.startswith("postgres://"):
            # Supabase hands out postgres:// URLs; SQLAlchemy wants postgresql://
            return "postgresql://" + url[len("postgres://"):]
        return url


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
