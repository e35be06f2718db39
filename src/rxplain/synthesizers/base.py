# ============================================================================
# src/rxplain/synthesizers/base.py
# ============================================================================
"""
Abstract Base Synthesizer

Synthesizers delegate reasoning to the knowledge collaborator and own
everything around that call: input validation, request shaping and output
normalization.

Every synthesizer gets:
- Config merged from the environment
- A lazily created knowledge client (or an injected one)
- A single-request helper that turns transport and parse failures into
  AnalysisUnavailable
- Execution metrics

Collaborator failures are raised, never converted into a default result.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional
import logging

from ..core.config import get_config
from ..knowledge.base import BaseKnowledgeClient
from ..knowledge.client import create_client
from ..utils.exceptions import AnalysisUnavailable


class Synthesizer(ABC):

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        client: Optional[BaseKnowledgeClient] = None,
    ):
        """
        Args:
            config: Configuration dictionary (overrides env defaults)
            client: Knowledge client; created from config when omitted
        """
        env_config = get_config()
        self.config = {**env_config, **(config or {})}
        self.logger = logging.getLogger(f"{__name__}.{self.get_name()}")
        self._client = client
        self._execution_count = 0
        self._failure_count = 0
        self._total_duration = 0.0

    @abstractmethod
    def get_name(self) -> str:
        """Synthesizer name for logging."""
        pass

    @property
    def client(self) -> BaseKnowledgeClient:
        if self._client is None:
            self._client = create_client(self.config)
        return self._client

    async def _ask(
        self,
        prompt: str,
        operation: str,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Issue exactly one collaborator request and parse its JSON object.

        Raises:
            AnalysisUnavailable: unreachable collaborator or unparseable output
        """
        start_time = datetime.now()
        self.logger.info(f"{self.get_name()}: requesting {operation}")

        try:
            response = await self.client.generate(
                prompt=prompt,
                max_tokens=max_tokens,
                temperature=self.config.get('temperature', 0.1),
                json_mode=True,
            )
        except Exception as e:
            self._record(start_time, failed=True)
            self.logger.error(f"{operation} failed: knowledge collaborator unavailable: {e}")
            raise AnalysisUnavailable(
                f"Knowledge service unavailable for {operation}: {e}",
                operation=operation,
            ) from e

        text = response.get("text") if isinstance(response, dict) else None
        data = self.client.extract_json(text) if isinstance(text, str) else None
        if data is None:
            self._record(start_time, failed=True)
            self.logger.error(f"{operation} failed: malformed collaborator output")
            raise AnalysisUnavailable(
                f"Knowledge service returned malformed output for {operation}",
                operation=operation,
            )

        self._record(start_time, failed=False)
        return data

    def _record(self, start_time: datetime, failed: bool) -> None:
        duration = (datetime.now() - start_time).total_seconds()
        self._execution_count += 1
        self._total_duration += duration
        if failed:
            self._failure_count += 1
        else:
            self.logger.info(f"{self.get_name()} completed in {duration:.2f}s")

    def get_metrics(self) -> Dict[str, Any]:
        avg_duration = (
            self._total_duration / self._execution_count
            if self._execution_count > 0
            else 0.0
        )
        return {
            "synthesizer": self.get_name(),
            "execution_count": self._execution_count,
            "failure_count": self._failure_count,
            "total_duration_seconds": self._total_duration,
            "average_duration_seconds": avg_duration,
        }
