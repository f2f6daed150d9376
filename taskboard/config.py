"""Task Manager configuration via pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_title: str = "Task Manager API"
    version: str = "1.0.0"

    mongodb_uri: str = "mongodb://localhost:27017/task_manager"
    mongodb_database: str = "task_manager"
    mongodb_collection: str = "tasks"
    mongodb_timeout_ms: int = 2000

    host: str = "127.0.0.1"
    port: int = 5001
    api_prefix: str = "/api"
    # Comma-separated list; "*" allows any origin.
    cors_origins: str = "*"

    log_level: str = "INFO"
    log_dir: str | None = None

    # Used by the terminal client.
    api_url: str = "http://localhost:5001/api"
    client_timeout: float = 10.0

    model_config = {"env_prefix": "TASKBOARD_", "env_file": ".env", "extra": "ignore"}

    @property
    def tasks_path(self) -> str:
        return f"{self.api_prefix.rstrip('/')}/tasks"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def log_path(self) -> Path | None:
        if not self.log_dir:
            return None
        return Path(self.log_dir) / "taskboard.log"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
