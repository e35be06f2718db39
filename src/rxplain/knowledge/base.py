# ============================================================================
# src/rxplain/knowledge/base.py
# ============================================================================
"""
Base Knowledge Client Interface

Defines the interface every knowledge-collaborator backend implements.
The collaborator performs the pharmacological reasoning (interaction risk,
time-of-day bucketing); callers own validation of what comes back.

Supported backends:
- ollama: Ollama server running a medical model
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional
import json
import logging

from json_repair import repair_json


class BackendType(Enum):
    """Supported inference backends."""
    OLLAMA = "ollama"


class BaseKnowledgeClient(ABC):
    """
    Abstract base class for knowledge collaborator clients.

    All backends must implement:
    - generate(): Async text generation, one request per call
    - health_check(): Verify backend is available
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

        self._request_count = 0
        self._failure_count = 0
        self._total_inference_time = 0.0

    @property
    @abstractmethod
    def backend_type(self) -> BackendType:
        """Return the backend type."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier."""
        pass

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False
    ) -> Dict[str, Any]:
        """
        Generate response from prompt.

        Returns:
            {
                "text": str,              # Generated text
                "model": str,             # Model identifier
                "backend": str,           # Backend type
                "inference_time": float,  # Seconds
            }

        Raises:
            KnowledgeClientError: backend unreachable, timed out or errored
        """
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """
        Check if the backend is available and ready.

        Returns:
            {"healthy": bool, "backend": str, "model": str, "details": str}
        """
        pass

    async def close(self) -> None:
        """Release transport resources."""
        return None

    def extract_json(self, response_text: str) -> Optional[Dict]:
        """
        Extract a JSON object from generated text.

        Models often wrap JSON in prose or code fences. Falls back to
        json_repair for single quotes, trailing commas and similar damage.
        """
        if not response_text or not response_text.strip():
            self.logger.warning("Empty response text, no JSON to extract")
            return None

        text = response_text.strip()
        if text.startswith("```"):
            text = text.strip("`")
            if text.lower().startswith("json"):
                text = text[4:]
            text = text.strip()

        try:
            parsed = json.loads(text)
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            pass

        try:
            repaired = repair_json(text, return_objects=True)
            if isinstance(repaired, dict) and repaired:
                self.logger.debug("json_repair fixed entire response")
                return repaired
        except Exception as e:
            self.logger.debug(f"json_repair failed on response: {e}")

        start_idx = text.find('{')
        if start_idx == -1:
            self.logger.warning("No JSON found in response")
            return None

        depth = 0
        end_idx = len(text) - 1
        for i, char in enumerate(text[start_idx:], start=start_idx):
            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    end_idx = i
                    break

        json_str = text[start_idx:end_idx + 1]
        try:
            return json.loads(json_str)
        except json.JSONDecodeError:
            pass

        try:
            repaired = repair_json(json_str, return_objects=True)
            if isinstance(repaired, dict) and repaired:
                self.logger.debug("json_repair fixed extracted JSON block")
                return repaired
        except Exception as e:
            self.logger.debug(f"json_repair failed on extracted block: {e}")

        self.logger.warning(f"Could not parse JSON from response: {response_text[:200]}...")
        return None

    def get_statistics(self) -> Dict[str, Any]:
        """Get request statistics."""
        avg_time = (
            self._total_inference_time / self._request_count
            if self._request_count > 0
            else 0.0
        )
        return {
            "backend": self.backend_type.value,
            "model": self.model_name,
            "request_count": self._request_count,
            "failure_count": self._failure_count,
            "total_inference_time": self._total_inference_time,
            "average_inference_time": avg_time,
        }
