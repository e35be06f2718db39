# ============================================================================
# tests/unit/test_normalizer.py
# ============================================================================
"""
Tests for medication entry normalization
"""

import pytest

from rxplain.core.context import NameSource, RawMedicationEntry, MedicationNames
from rxplain.processors.medication import (
    normalize,
    normalize_document,
    parse_raw_entry,
    resolve_display_name,
)
from rxplain.utils.exceptions import IncompleteExtraction


class TestNameResolution:

    def test_generic_wins_over_brand(self):
        record = normalize(
            {"Name": {"Generic": "Atorvastatin", "Brand": "Lipitor"}}, "d1", "a.pdf"
        )
        assert resolve_display_name(record, 1) == ("Atorvastatin", True)
        assert record.name_source == NameSource.GENERIC

    def test_brand_used_when_generic_missing(self):
        record = normalize({"names": {"brand": "Lipitor"}}, "d1", "a.pdf")
        assert resolve_display_name(record, 1) == ("Lipitor", True)

    def test_suggested_name_is_not_extracted(self):
        record = normalize({"SuggestedName": "Atorvastatin"}, "d1", "a.pdf")
        name, extracted = resolve_display_name(record, 1)
        assert name == "Atorvastatin"
        assert extracted is False
        assert record.name_source == NameSource.SUGGESTED

    def test_placeholder_uses_position(self):
        record = normalize({"Dosage": "5 mg"}, "d1", "a.pdf")
        assert resolve_display_name(record, 7) == ("Medication Entry #7", False)
        assert record.name_source == NameSource.PLACEHOLDER

    def test_whitespace_only_name_is_absent(self):
        record = normalize(
            {"names": {"generic": "   ", "brand": "Zocor"}}, "d1", "a.pdf"
        )
        assert record.names.generic is None
        assert record.display_name(1) == "Zocor"

    def test_null_token_is_absent(self):
        record = normalize({"Name": {"Generic": "null", "Brand": "N/A"}}, "d1", "a.pdf")
        assert not record.has_name

    def test_flat_name_counts_as_generic(self):
        record = normalize({"name": "Warfarin", "dosage": "5 mg"}, "d1", "a.pdf")
        assert record.names.generic == "Warfarin"
        assert record.is_name_extracted


class TestFieldCoercion:

    def test_native_shape_fields(self, discharge_extraction):
        record = normalize(discharge_extraction[0], "d1", "discharge.pdf")

        assert record.dosage == "500 mg"
        assert record.frequency == "twice daily"
        assert record.purpose == "Type 2 diabetes"
        assert record.special_instructions == "Take with meals"
        assert record.important_side_effects == "Nausea, diarrhea"

    def test_string_flags_are_coerced(self, discharge_extraction):
        record = normalize(discharge_extraction[0], "d1", "discharge.pdf")

        assert record.is_general_knowledge_instructions is False
        assert record.is_general_knowledge_side_effects is True

    def test_unrecognised_flag_is_false(self):
        record = normalize(
            {"name": "Aspirin", "isGeneralKnowledgeInstructions": "maybe"}, "d1", "a.pdf"
        )
        assert record.is_general_knowledge_instructions is False

    def test_empty_string_is_absent_not_value(self):
        record = normalize(
            {"name": "Aspirin", "specialInstructions": "  "}, "d1", "a.pdf"
        )
        assert record.special_instructions is None

    def test_numbers_are_stringified(self):
        record = normalize({"name": "Aspirin", "dosage": 81}, "d1", "a.pdf")
        assert record.dosage == "81"

    def test_source_document_is_carried(self):
        record = normalize({"name": "Aspirin"}, "doc-9", "labs.pdf")

        assert record.source_document_id == "doc-9"
        assert record.source_document_name == "labs.pdf"
        assert record.source_document_names == ["labs.pdf"]


class TestTotality:

    @pytest.mark.parametrize("raw", [None, {}, "not a dict", 42, []])
    def test_malformed_entry_yields_empty_record(self, raw):
        record = normalize(raw, "d1", "a.pdf")

        assert not record.has_name
        assert record.is_name_extracted is False
        assert record.dosage is None
        assert record.is_general_knowledge_instructions is False

    def test_normalize_is_pure(self):
        raw = {"Name": {"Generic": " Metformin "}, "Dosage": "500 mg"}
        snapshot = {"Name": {"Generic": " Metformin "}, "Dosage": "500 mg"}

        first = normalize(raw, "d1", "a.pdf")
        second = normalize(raw, "d1", "a.pdf")

        assert raw == snapshot
        assert first == second

    def test_raw_entry_passthrough(self):
        entry = RawMedicationEntry(names=MedicationNames(brand="Tylenol"), dosage="500 mg")
        assert parse_raw_entry(entry) is entry
        assert normalize(entry, "d1", "a.pdf").display_name(1) == "Tylenol"

    def test_require_reports_missing_fields(self):
        record = normalize({"Dosage": "5 mg"}, "d1", "a.pdf")

        with pytest.raises(IncompleteExtraction) as exc_info:
            record.require("name", "dosage", "frequency")

        assert exc_info.value.missing_fields == ["name", "frequency"]


class TestNormalizeDocument:

    def test_preserves_order(self, discharge_extraction):
        records = normalize_document(discharge_extraction, "doc-1", "discharge.pdf")

        assert [r.display_name(i) for i, r in enumerate(records, start=1)] == [
            "Metformin", "Lisinopril", "Medication Entry #3",
        ]

    @pytest.mark.parametrize("raw", [None, [], "garbage", b"garbage", 5, 3.5, True])
    def test_empty_or_invalid_result(self, raw):
        assert normalize_document(raw, "doc-1", "a.pdf") == []

    def test_single_object_is_wrapped(self):
        records = normalize_document({"name": "Aspirin"}, "doc-1", "a.pdf")
        assert len(records) == 1

    def test_to_dict_wire_shape(self, discharge_extraction):
        record = normalize(discharge_extraction[0], "doc-1", "discharge.pdf")
        data = record.to_dict(1)

        assert data["displayName"] == "Metformin"
        assert data["isNameExtracted"] is True
        assert data["names"] == {"generic": "Metformin", "brand": "Glucophage", "suggested": None}
        assert data["specialInstructions"] == "Take with meals"
        assert data["isGeneralKnowledgeSideEffects"] is True
        assert data["sourceDocumentNames"] == ["discharge.pdf"]
