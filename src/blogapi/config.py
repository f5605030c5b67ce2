from datetime import timedelta
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from blogapi.utils import parse_duration


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    server_host: str = "0.0.0.0"  # noqa: S104
    server_port: int = 8080
    debug: bool = False
    cors_origins: list[str] = []
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "blog_db"
    storage_timeout: timedelta = timedelta(seconds=5)  # Client-side deadline for every MongoDB operation
    # Signing key for access and refresh tokens, required
    jwt_secret: str = Field(..., min_length=32)
    jwt_access_expiry: timedelta = timedelta(minutes=15)
    jwt_refresh_expiry: timedelta = timedelta(hours=168)
    session_ttl: timedelta = timedelta(hours=168)
    session_sweep_interval: timedelta = timedelta(hours=1)  # 0 disables the expired-session sweeper
    bcrypt_rounds: int = Field(12, ge=4, le=31)
    view_count_workers: int = Field(4, ge=1)
    view_count_queue: int = Field(256, ge=1)

    model_config = {
        "env_file": [".env"],
        "extra": "ignore",
    }

    @field_validator(
        "storage_timeout",
        "jwt_access_expiry",
        "jwt_refresh_expiry",
        "session_ttl",
        "session_sweep_interval",
        mode="before",
    )
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value
