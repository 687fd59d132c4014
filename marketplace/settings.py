"""
Runtime configuration, read from the environment (prefix `FARM_NOTIFY_`)
and an optional `.env` file.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


class Settings(BaseSettings):
    # Collaborator backends
    user_backend: Literal["json", "firestore"] = "json"
    push_backend: Literal["mock", "fcm"] = "mock"

    # JSON fixtures for the json user backend and the demos
    data_dir: Path = DEFAULT_DATA_DIR

    # Firebase; application default credentials are used when unset
    firebase_credentials: Optional[Path] = None
    users_collection: str = "users"

    # Fan-out
    dispatch_max_workers: int = Field(default=4, ge=1)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="FARM_NOTIFY_",
        env_file=".env",
        extra="ignore",
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (useful for testing)."""
    global _settings
    _settings = None
