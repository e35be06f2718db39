# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

import pytest
from typing import Any, Dict, List, Optional, Union

from rxplain.core.context import MedicationNames, MedicationRecord
from rxplain.knowledge.base import BackendType, BaseKnowledgeClient
from rxplain.processors.medication import DocumentMedications, aggregate


class StubKnowledgeClient(BaseKnowledgeClient):
    """
    Scripted knowledge client.

    Each generate() call consumes the next scripted response: a string is
    returned as the generated text, an exception instance is raised.
    """

    def __init__(self, responses: Optional[List[Union[str, Exception]]] = None):
        super().__init__({})
        self.responses = list(responses or [])
        self.prompts: List[str] = []
        self.json_modes: List[bool] = []

    @property
    def backend_type(self) -> BackendType:
        return BackendType.OLLAMA

    @property
    def model_name(self) -> str:
        return "stub-model"

    async def generate(self, prompt, max_tokens=None, temperature=None, json_mode=False) -> Dict[str, Any]:
        self.prompts.append(prompt)
        self.json_modes.append(json_mode)
        self._request_count += 1
        if not self.responses:
            raise AssertionError("StubKnowledgeClient ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            self._failure_count += 1
            raise response
        return {"text": response, "model": self.model_name, "backend": "ollama", "inference_time": 0.0}

    async def health_check(self) -> Dict[str, Any]:
        return {"healthy": True, "backend": "ollama", "model": self.model_name, "details": "stub"}

    @property
    def call_count(self) -> int:
        return len(self.prompts)


class FakeClock:
    """Epoch-millisecond clock advanced by hand."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


def make_record(
    generic: Optional[str] = None,
    brand: Optional[str] = None,
    suggested: Optional[str] = None,
    document_id: str = "doc-1",
    document_name: str = "discharge.pdf",
    **clinical,
) -> MedicationRecord:
    return MedicationRecord(
        names=MedicationNames(generic=generic, brand=brand, suggested=suggested),
        source_document_id=document_id,
        source_document_name=document_name,
        **clinical,
    )


@pytest.fixture
def stub_client():
    """Factory for scripted knowledge clients."""
    def _make(*responses):
        return StubKnowledgeClient(list(responses))
    return _make


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def discharge_extraction():
    """Extraction output in the upstream extractor's native shape."""
    return [
        {
            "Name": {"Generic": "Metformin", "Brand": "Glucophage"},
            "Dosage": "500 mg",
            "Frequency": "twice daily",
            "Purpose": "Type 2 diabetes",
            "Special Instructions": "Take with meals",
            "Important Side Effects": "Nausea, diarrhea",
            "isGeneralKnowledgeInstructions": "false",
            "isGeneralKnowledgeSideEffects": "true",
        },
        {
            "Name": {"Generic": "Lisinopril", "Brand": None},
            "Dosage": "10 mg",
            "Frequency": "once daily",
            "Purpose": "Blood pressure",
        },
        {
            "Name": {"Generic": None, "Brand": None},
            "SuggestedName": None,
            "Dosage": "1 tablet",
        },
    ]


@pytest.fixture
def pharmacy_extraction():
    """Extraction output in the documented record shape."""
    return [
        {
            "names": {"generic": "  metformin ", "brand": None, "suggested": None},
            "dosage": "1000 mg",
            "frequency": "once daily",
        },
        {
            "names": {"generic": None, "brand": "Lipitor", "suggested": "Atorvastatin"},
            "dosage": "20 mg",
            "frequency": "at bedtime",
            "specialInstructions": "",
        },
    ]


@pytest.fixture
def aggregated_view(discharge_extraction, pharmacy_extraction):
    """Metformin, Lisinopril, Medication Entry #3, Lipitor."""
    return aggregate([
        DocumentMedications.from_extraction("doc-1", "discharge.pdf", discharge_extraction),
        DocumentMedications.from_extraction("doc-2", "pharmacy.pdf", pharmacy_extraction),
    ])


@pytest.fixture
def named_view():
    """Three named medications with dosages."""
    return aggregate([[
        make_record(generic="Metformin", dosage="500 mg", frequency="twice daily"),
        make_record(generic="Lisinopril", dosage="10 mg", frequency="once daily"),
        make_record(brand="Lipitor", dosage="20 mg", frequency="at bedtime"),
    ]])
