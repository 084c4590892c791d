from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    production: bool = False  # Enables the Secure cookie attribute
    database_url: str | None = None  # MongoDB URL; sessions and users stay in memory when unset
    store_timeout_seconds: float = 5.0  # Deadline for a single session store call
    cors_origins: list[str] = []
    videos_path: str = "data/videos"  # Root of the packaged media, one directory per video

    session_cookie_name: str = "session_id"
    session_ttl_seconds: int = 7 * 24 * 60 * 60

    stream_token_secret: str = Field(min_length=16)
    stream_token_ttl_seconds: int = 15 * 60
    stream_token_max_ttl_seconds: int = 60 * 60
    stream_token_ip_binding: Literal["soft", "strict"] = "soft"  # soft: log IP mismatches but accept

    login_failure_delay_seconds: float = 1.0  # Minimum latency of every failed login
    bcrypt_rounds: int = 12

    model_config = {
        "env_file": [".env"],
        "env_prefix": "MEDIAGATE_",
        "extra": "ignore",
    }
