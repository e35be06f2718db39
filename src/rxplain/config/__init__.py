# ============================================================================
# src/rxplain/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from .base_config import base_settings
from .knowledge_config import knowledge_settings
from .cache_config import cache_settings
from .schedule_config import schedule_settings
from .logging_config import logging_settings
