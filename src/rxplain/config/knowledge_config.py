# ============================================================================
# src/rxplain/config/knowledge_config.py
# ============================================================================
"""
Knowledge Collaborator Settings
- Backend selection
- Ollama connection
- Generation defaults
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class KnowledgeSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    KNOWLEDGE_BACKEND: str = Field(
        default="ollama",
        description="Inference backend for interaction and schedule reasoning"
    )
    OLLAMA_HOST: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL"
    )
    OLLAMA_MODEL: str = Field(
        default="MedAIBase/MedGemma1.5:4b-it-q8_0",
        description="Model used for pharmacological reasoning"
    )
    MAX_TOKENS: int = Field(
        default=1500,
        description="Default max tokens per request"
    )
    TEMPERATURE: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Low temperature keeps schedule slot assignment stable"
    )
    REQUEST_TIMEOUT: int = Field(
        default=120,
        description="Per-request timeout in seconds (no retries)"
    )


knowledge_settings = KnowledgeSettings()
