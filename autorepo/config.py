"""Configuration management for autorepo."""

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional, List, Dict


def _find_env_file() -> Optional[str]:
    """Find .env file in multiple locations.

    Search order:
    1. Current working directory
    2. ~/.autorepo/.env
    """
    if os.path.exists(".env"):
        return ".env"

    user_env = Path.home() / ".autorepo" / ".env"
    if user_env.exists():
        return str(user_env)

    return None


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Connection
    database_url: Optional[str] = Field(
        default=None,
        description="Database URL (sqlite:///path, duckdb:///path, postgresql://...)"
    )

    # Discovery
    exclude_tables: List[str] = Field(
        default_factory=list,
        description="Tables to leave out of schema discovery"
    )
    include_views: bool = Field(
        default=True,
        description="Discover views alongside tables"
    )
    custom_type_mappings: Dict[str, str] = Field(
        default_factory=dict,
        description="Native type -> host type overrides applied before the built-in table"
    )

    # Query analyzer
    analyzer_enabled: bool = Field(
        default=True,
        description="Record executed statements in the query analyzer"
    )
    slow_query_threshold_ms: float = Field(
        default=1000.0,
        description="Statements slower than this are reported as slow"
    )
    large_result_set_threshold: int = Field(
        default=1000,
        description="Result sets with more rows than this are reported"
    )
    n_plus_one_detection: bool = Field(
        default=True,
        description="Report repeated identical queries"
    )
    missing_index_detection: bool = Field(
        default=True,
        description="Report WHERE columns with no supporting index"
    )
    repeated_query_window_seconds: float = Field(
        default=5.0,
        description="Window in which identical queries count towards a repeated-query warning"
    )
    repeated_query_threshold: int = Field(
        default=5,
        description="Identical queries within the window that trigger a warning"
    )
    max_query_history: int = Field(
        default=1000,
        description="Number of recorded statements kept in the rolling history"
    )

    # Schema watching
    schema_watch_interval_seconds: float = Field(
        default=5.0,
        description="Seconds between schema change checks while watching"
    )

    class Config:
        env_prefix = "AUTOREPO_"
        env_file = _find_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()
