# ============================================================================
# tests/unit/test_knowledge_client.py
# ============================================================================
"""
Tests for knowledge client structure and JSON extraction
"""

import json
import pytest
from aiohttp import test_utils, web

from rxplain.knowledge import (
    BackendType,
    OllamaKnowledgeClient,
    clear_client_cache,
    create_client,
)
from rxplain.synthesizers import InteractionSynthesizer
from rxplain.utils.exceptions import (
    AnalysisUnavailable,
    ConfigurationError,
    KnowledgeClientError,
)


@pytest.fixture(autouse=True)
def _fresh_client_cache():
    clear_client_cache()
    yield
    clear_client_cache()


@pytest.fixture
def client():
    return OllamaKnowledgeClient({"ollama_host": "http://localhost:11434", "ollama_model": "test-model"})


class TestExtractJson:

    def test_plain_json(self, client):
        assert client.extract_json('{"riskLevel": "low"}') == {"riskLevel": "low"}

    def test_code_fence(self, client):
        text = '```json\n{"riskLevel": "high", "description": "x"}\n```'
        assert client.extract_json(text) == {"riskLevel": "high", "description": "x"}

    def test_embedded_in_prose(self, client):
        text = 'Assessment follows. {"riskLevel": "none"} Hope this helps.'
        assert client.extract_json(text)["riskLevel"] == "none"

    def test_trailing_comma_repaired(self, client):
        assert client.extract_json('{"riskLevel": "low", "description": "ok",}') == {
            "riskLevel": "low", "description": "ok",
        }

    @pytest.mark.parametrize("text", ["", "   ", "no json here"])
    def test_nothing_to_extract(self, client, text):
        assert client.extract_json(text) is None

    def test_array_is_not_an_object(self, client):
        assert client.extract_json("[1, 2]") is None


class TestOllamaClient:

    def test_identity(self, client):
        assert client.backend_type is BackendType.OLLAMA
        assert client.model_name == "test-model"

    def test_statistics_start_empty(self, client):
        stats = client.get_statistics()
        assert stats["request_count"] == 0
        assert stats["failure_count"] == 0
        assert stats["backend"] == "ollama"



async def _serve(body: str, status: int = 200):
    async def handler(request):
        return web.Response(text=body, status=status, content_type="application/json")

    app = web.Application()
    app.router.add_post("/api/generate", handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    return server


class TestOllamaResponses:

    @pytest.mark.asyncio
    async def test_generated_text_returned(self):
        server = await _serve(json.dumps({"response": ' {"riskLevel": "low"} ', "eval_count": 7}))
        client = OllamaKnowledgeClient({"ollama_host": f"http://{server.host}:{server.port}"})
        try:
            result = await client.generate("prompt", json_mode=True)
        finally:
            await client.close()
            await server.close()

        assert result["text"] == '{"riskLevel": "low"}'
        assert result["generated_tokens"] == 7

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["[1, 2]", "not json at all", "\"text\""])
    async def test_non_object_body_is_client_error(self, body):
        server = await _serve(body)
        client = OllamaKnowledgeClient({"ollama_host": f"http://{server.host}:{server.port}"})
        try:
            with pytest.raises(KnowledgeClientError):
                await client.generate("prompt", json_mode=True)
        finally:
            await client.close()
            await server.close()

        assert client.get_statistics()["failure_count"] == 1

    @pytest.mark.asyncio
    async def test_non_object_body_reaches_synthesizer_as_analysis_unavailable(self):
        server = await _serve("[1, 2]")
        client = OllamaKnowledgeClient({"ollama_host": f"http://{server.host}:{server.port}"})
        synthesizer = InteractionSynthesizer(client=client)
        try:
            with pytest.raises(AnalysisUnavailable) as exc_info:
                await synthesizer.analyze_interactions(["Aspirin", "Warfarin"])
        finally:
            await client.close()
            await server.close()

        assert isinstance(exc_info.value.__cause__, KnowledgeClientError)

    @pytest.mark.asyncio
    async def test_error_status_is_client_error(self):
        server = await _serve('{"error": "model not found"}', status=404)
        client = OllamaKnowledgeClient({"ollama_host": f"http://{server.host}:{server.port}"})
        try:
            with pytest.raises(KnowledgeClientError, match="404"):
                await client.generate("prompt")
        finally:
            await client.close()
            await server.close()


class TestCreateClient:

    def test_creates_ollama_client(self):
        client = create_client({"backend": "ollama", "ollama_model": "test-model"})
        assert isinstance(client, OllamaKnowledgeClient)

    def test_reuses_client_for_same_target(self):
        first = create_client({"ollama_model": "test-model"})
        second = create_client({"ollama_model": "test-model"})
        assert first is second

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            create_client({"backend": "carrier-pigeon"})
