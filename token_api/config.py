"""Configuration management for the token details API."""

from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000

    # Blockchain node
    rpc_url: str = "http://localhost:8545"
    # Seconds; None leaves the transport default in place
    rpc_timeout: Optional[float] = None

    # Rate limiting: fixed window per client
    rate_limit_max: int = 100
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_clients: int = 10000

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
