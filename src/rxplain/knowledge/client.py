# ============================================================================
# src/rxplain/knowledge/client.py
# ============================================================================
"""
Knowledge Client Factory

Usage:
    from rxplain.knowledge.client import create_client

    client = create_client({'backend': 'ollama'})
    result = await client.generate("Do warfarin and aspirin interact?")
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseKnowledgeClient, BackendType
from .ollama_client import OllamaKnowledgeClient, DEFAULT_OLLAMA_MODEL
from ..core.config import get_config
from ..utils.exceptions import ConfigurationError

DEFAULT_BACKEND = "ollama"

# Keyed by (backend, host, model) so one HTTP session is shared per server
_client_cache: Dict[tuple, BaseKnowledgeClient] = {}

_logger = logging.getLogger(__name__)


def create_client(config: Optional[Dict[str, Any]] = None) -> BaseKnowledgeClient:
    """
    Create (or reuse) a knowledge client.

    Configuration comes from the environment merged with ``config``;
    explicit values take precedence.

    Raises:
        ConfigurationError: If the backend type is not supported
    """
    config = {**get_config(), **(config or {})}
    backend = str(config.get('backend', DEFAULT_BACKEND)).lower()

    if backend != BackendType.OLLAMA.value:
        raise ConfigurationError(
            f"Unknown knowledge backend: {backend}. Supported backends: ollama"
        )

    cache_key = (backend, config.get('ollama_host'), config.get('ollama_model'))
    if cache_key in _client_cache:
        _logger.debug(f"Reusing cached {backend} client: {cache_key}")
        return _client_cache[cache_key]

    client = OllamaKnowledgeClient(config)
    _client_cache[cache_key] = client
    _logger.info(f"Created and cached {backend} client: {cache_key}")
    return client


def clear_client_cache() -> None:
    _client_cache.clear()


__all__ = [
    "create_client",
    "clear_client_cache",
    "BaseKnowledgeClient",
    "BackendType",
    "OllamaKnowledgeClient",
    "DEFAULT_BACKEND",
    "DEFAULT_OLLAMA_MODEL",
]
