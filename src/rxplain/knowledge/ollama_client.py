# ============================================================================
# src/rxplain/knowledge/ollama_client.py
# ============================================================================
"""
Ollama Knowledge Client

Sends interaction and schedule reasoning prompts to a local Ollama server.
One HTTP request per generate() call; no retries and no response cache, so
a failure is surfaced to the caller immediately.

Setup:
    1. Install Ollama: https://ollama.ai
    2. Pull model: ollama pull MedAIBase/MedGemma1.5:4b-it-q8_0
    3. Start server: ollama serve
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

import aiohttp

from .base import BaseKnowledgeClient, BackendType
from ..utils.exceptions import KnowledgeClientError


DEFAULT_OLLAMA_MODEL = "MedAIBase/MedGemma1.5:4b-it-q8_0"


class OllamaKnowledgeClient(BaseKnowledgeClient):
    """
    Ollama-based knowledge client.

    Config options:
        ollama_host: Ollama server URL (default: http://localhost:11434)
        ollama_model: Model name
        max_tokens: Default max tokens (default: 1500)
        temperature: Default temperature (default: 0.1)
        request_timeout: Per-request timeout in seconds (default: 120)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)

        self.host = self.config.get('ollama_host', 'http://localhost:11434').rstrip('/')
        self._model_name = self.config.get('ollama_model', DEFAULT_OLLAMA_MODEL)

        self.default_max_tokens = self.config.get('max_tokens', 1500)
        self.default_temperature = self.config.get('temperature', 0.1)
        self.request_timeout = self.config.get('request_timeout', 120)

        # Created lazily, tied to the running event loop
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None

        self.logger.info(f"Initialized Ollama client: {self.host} / {self._model_name}")

    @property
    def backend_type(self) -> BackendType:
        return BackendType.OLLAMA

    @property
    def model_name(self) -> str:
        return self._model_name

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session for current event loop."""
        current_loop = asyncio.get_running_loop()

        needs_new_session = (
            self._session is None
            or self._session.closed
            or self._session_loop is not current_loop
        )

        if needs_new_session:
            if self._session is not None and not self._session.closed:
                await self._session.close()

            timeout = aiohttp.ClientTimeout(
                total=self.request_timeout,
                sock_connect=30,
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._session_loop = current_loop

        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None

    async def health_check(self) -> Dict[str, Any]:
        """Check if Ollama server is running and model is available."""
        try:
            session = await self._get_session()

            async with session.get(f"{self.host}/api/tags") as response:
                if response.status != 200:
                    return {
                        "healthy": False,
                        "backend": "ollama",
                        "model": self._model_name,
                        "details": f"Ollama server returned status {response.status}"
                    }

                data = await response.json()
                models = [m.get('name', '') for m in data.get('models', [])]

                if not any(self._model_name in m for m in models):
                    return {
                        "healthy": False,
                        "backend": "ollama",
                        "model": self._model_name,
                        "details": f"Model not found. Available: {models}. Run: ollama pull {self._model_name}"
                    }

                return {
                    "healthy": True,
                    "backend": "ollama",
                    "model": self._model_name,
                    "details": "Ollama server running and model available"
                }

        except aiohttp.ClientConnectorError:
            return {
                "healthy": False,
                "backend": "ollama",
                "model": self._model_name,
                "details": f"Cannot connect to Ollama at {self.host}. Is it running? Try: ollama serve"
            }
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            return {
                "healthy": False,
                "backend": "ollama",
                "model": self._model_name,
                "details": f"Health check failed: {str(e)}"
            }

    async def generate(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False
    ) -> Dict[str, Any]:
        """
        Generate response using Ollama.

        Raises:
            KnowledgeClientError: on connection failure, timeout, non-200 status
                or a body that is not a JSON object
        """
        start_time = datetime.now()

        max_tokens = max_tokens or self.default_max_tokens
        temperature = temperature if temperature is not None else self.default_temperature

        payload = {
            "model": self._model_name,
            "prompt": prompt,
            "stream": False,
            "options": {
                "num_predict": max_tokens,
                "temperature": temperature,
            }
        }
        if json_mode:
            # Ollama constrains output to valid JSON
            payload["format"] = "json"

        self._request_count += 1
        try:
            session = await self._get_session()
            async with session.post(f"{self.host}/api/generate", json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise KnowledgeClientError(
                        f"Ollama error ({response.status}): {error_text[:200]}"
                    )
                data = await response.json(content_type=None)
                if not isinstance(data, dict):
                    raise KnowledgeClientError(
                        f"Ollama returned a non-object body: {type(data).__name__}"
                    )

        except asyncio.TimeoutError as e:
            self._failure_count += 1
            self.logger.error(
                f"Ollama request timed out after {self.request_timeout}s "
                f"(model={self._model_name})"
            )
            raise KnowledgeClientError(
                f"Knowledge request timed out after {self.request_timeout}s"
            ) from e
        except aiohttp.ClientConnectorError as e:
            self._failure_count += 1
            raise KnowledgeClientError(
                f"Cannot connect to Ollama at {self.host}. "
                "Make sure Ollama is running: ollama serve"
            ) from e
        except aiohttp.ClientError as e:
            self._failure_count += 1
            self.logger.error(f"Ollama request failed: {e}")
            raise KnowledgeClientError(f"Ollama request failed: {e}") from e
        except ValueError as e:
            self._failure_count += 1
            self.logger.error(f"Ollama returned an unparseable body: {e}")
            raise KnowledgeClientError(f"Ollama returned an unparseable body: {e}") from e
        except KnowledgeClientError:
            self._failure_count += 1
            raise

        inference_time = (datetime.now() - start_time).total_seconds()
        self._total_inference_time += inference_time

        generated_tokens = data.get('eval_count', 0)
        self.logger.info(f"Generated {generated_tokens} tokens in {inference_time:.2f}s")

        return {
            "text": (data.get('response') or '').strip(),
            "prompt_tokens": data.get('prompt_eval_count', 0),
            "generated_tokens": generated_tokens,
            "model": self._model_name,
            "backend": "ollama",
            "inference_time": inference_time,
        }

    def get_statistics(self) -> Dict[str, Any]:
        stats = super().get_statistics()
        stats["ollama_host"] = self.host
        return stats
