from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///./todosync.db"
    remote_api_base_url: str = "http://localhost:5000"
    remote_api_key: str = ""
    remote_api_timeout_seconds: float = 30.0
    remote_api_max_retries: int = 3
    sync_interval_minutes: int = 5
    sync_startup_delay_seconds: int = 30
    health_failure_threshold: int = 10  # failures in 24h before status reports unhealthy
    status_recent_limit: int = 10

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
