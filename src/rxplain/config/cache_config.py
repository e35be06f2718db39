# ============================================================================
# src/rxplain/config/cache_config.py
# ============================================================================
"""
Report Cache Settings
- TTL
- Key namespace
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    REPORT_CACHE_TTL_MS: int = Field(
        default=60 * 60 * 1000,
        gt=0,
        description="Time-to-live for cached reports (1 hour)"
    )
    REPORT_CACHE_PREFIX: str = Field(
        default="rxplain_report_",
        description="Key prefix for cached report payloads"
    )
    REPORT_CACHE_EXPIRY_PREFIX: str = Field(
        default="rxplain_report_expiry_",
        description="Key prefix for cached report expiry stamps"
    )


cache_settings = CacheSettings()
