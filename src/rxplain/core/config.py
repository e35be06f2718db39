# ============================================================================
# src/rxplain/core/config.py
# ============================================================================
"""
Centralized Configuration Management

Loads a .env file, then flattens the per-concern pydantic settings into the
plain dict that components merge with their explicit ``config`` argument.

Usage:
    from rxplain.core.config import get_config

    config = get_config()
    print(config['ollama_host'])
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from ..config.base_config import BaseSettingsConfig
from ..config.cache_config import CacheSettings
from ..config.knowledge_config import KnowledgeSettings
from ..config.logging_config import LoggingSettings
from ..config.schedule_config import ScheduleSettings


def _load_dotenv() -> bool:
    """Load .env from the project root or the working directory."""
    env_path = Path(__file__).parent.parent.parent.parent / '.env'
    if env_path.exists():
        return load_dotenv(env_path)

    cwd_env = Path.cwd() / '.env'
    if cwd_env.exists():
        return load_dotenv(cwd_env)

    return False


@lru_cache(maxsize=1)
def get_config() -> Dict[str, Any]:
    """
    Get configuration dictionary.

    Cached - call once and pass to components.
    """
    _load_dotenv()

    base = BaseSettingsConfig()
    knowledge = KnowledgeSettings()
    cache = CacheSettings()
    schedule = ScheduleSettings()
    logging_cfg = LoggingSettings()

    return {
        # General
        'data_dir': str(base.DATA_DIR),
        'document_db_path': str(base.DOCUMENT_DB_PATH),
        'schedule_db_path': str(base.SCHEDULE_DB_PATH),
        'report_cache_path': str(base.REPORT_CACHE_PATH),
        'log_level': logging_cfg.LOG_LEVEL,

        # Knowledge collaborator
        'backend': knowledge.KNOWLEDGE_BACKEND,
        'ollama_host': knowledge.OLLAMA_HOST,
        'ollama_model': knowledge.OLLAMA_MODEL,
        'max_tokens': knowledge.MAX_TOKENS,
        'temperature': knowledge.TEMPERATURE,
        'request_timeout': knowledge.REQUEST_TIMEOUT,

        # Report cache
        'report_cache_ttl_ms': cache.REPORT_CACHE_TTL_MS,
        'report_cache_prefix': cache.REPORT_CACHE_PREFIX,
        'report_cache_expiry_prefix': cache.REPORT_CACHE_EXPIRY_PREFIX,

        # Schedules
        'enforce_single_active': schedule.ENFORCE_SINGLE_ACTIVE,
        'default_suggested_times': dict(schedule.DEFAULT_SUGGESTED_TIMES),
    }


def reload_config() -> Dict[str, Any]:
    """Reload configuration from environment."""
    get_config.cache_clear()
    return get_config()
