# tutorslots/config.py

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/tutorslots.db"
    redis_url: str = "redis://127.0.0.1:6379/0"
    redis_socket_timeout: float = 2.0

    # Zone used for users that never set one
    default_timezone: str = "Asia/Kolkata"

    slot_cache_ttl_seconds: int = 60 * 60 * 12
    booking_lock_ttl_seconds: int = 10

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_prefix="TUTORSLOTS_",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite:///{absolute_path}"
        return url


@lru_cache
def get_settings() -> Settings:
    return Settings()
