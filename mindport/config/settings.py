"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables (prefix ``MINDPORT_``) and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Paths
    db_path: Path = Path("data/mindport.db")

    # Domains
    isolation_mode: str = "hierarchical"  # "strict", "hierarchical", "shared"
    allow_cross_domain: bool = True
    max_domain_depth: int = 50

    # Search
    search_default_limit: int = 20
    search_max_limit: int = 1000
    snippet_length: int = 200

    # CLI-style tools
    scan_page_size: int = 10000
    grep_max_matches: int = 1000
    find_limit: int = 1000

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8080
    api_debug: bool = False

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="MINDPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
