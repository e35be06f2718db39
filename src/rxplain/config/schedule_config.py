# ============================================================================
# src/rxplain/config/schedule_config.py
# ============================================================================
"""
Schedule Settings
- Active schedule policy
- Default clock times per time-of-day slot
"""

from typing import Dict
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScheduleSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENFORCE_SINGLE_ACTIVE: bool = Field(
        default=True,
        description="Activating a schedule deactivates the user's other schedules"
    )
    DEFAULT_SUGGESTED_TIMES: Dict[str, str] = Field(
        default={
            "Morning": "8:00 AM",
            "Midday": "12:00 PM",
            "Evening": "6:00 PM",
            "Night": "10:00 PM",
        },
        description="Used when the reasoning collaborator omits suggestedTime"
    )


schedule_settings = ScheduleSettings()
