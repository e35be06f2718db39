# ============================================================================
# src/rxplain/config/base_config.py
# ============================================================================
"""
Base Configuration
- Data directory
- SQLite stores for documents and schedules
- Local report cache file
"""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseSettingsConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATA_DIR: Path = Field(
        default=Path("data"),
        description="Root directory for local stores"
    )

    DOCUMENT_DB_PATH: Path = Field(
        default=Path("data/documents.db"),
        description="SQLite database holding per-document extraction results"
    )

    SCHEDULE_DB_PATH: Path = Field(
        default=Path("data/schedules.db"),
        description="SQLite database holding medication schedules"
    )

    REPORT_CACHE_PATH: Path = Field(
        default=Path("data/report_cache.json"),
        description="JSON file backing the local report cache"
    )

    def create_directories(self):
        """Create all necessary directories if they don't exist"""
        dirs = [
            self.DATA_DIR,
            self.DOCUMENT_DB_PATH.parent,
            self.SCHEDULE_DB_PATH.parent,
            self.REPORT_CACHE_PATH.parent,
        ]
        for directory in dirs:
            directory.mkdir(parents=True, exist_ok=True)


# Global instance
base_settings = BaseSettingsConfig()
