# ============================================================================
# src/rxplain/knowledge/__init__.py
# ============================================================================
"""
Knowledge collaborator clients - pharmacological reasoning over HTTP
"""

from .base import BaseKnowledgeClient, BackendType
from .ollama_client import OllamaKnowledgeClient, DEFAULT_OLLAMA_MODEL
from .client import create_client, clear_client_cache
