# ============================================================================
# src/rxplain/processors/medication/normalizer.py
# ============================================================================
"""
Medication Record Normalizer

Reconciles one raw extracted medication entry into a canonical
MedicationRecord. Extraction output is best-effort and frequently partial:
this step never raises on malformed input, it degrades to an
under-specified record instead.

Accepted input shapes:
- documented:  {"names": {"generic", "brand", "suggested"}, "dosage", ...,
                "specialInstructions", "importantSideEffects", ...}
- extractor:   {"Name": {"Generic", "Brand"}, "SuggestedName", "Dosage",
                "Frequency", "Purpose", "Special Instructions",
                "Important Side Effects", ...}
- RawMedicationEntry instances
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from ...core.context import (
    MedicationNames,
    MedicationRecord,
    RawMedicationEntry,
)

logger = logging.getLogger(__name__)

RawInput = Union[RawMedicationEntry, Mapping[str, Any], None]

# Literal placeholders LLM extractors emit instead of JSON null
_NULL_TOKENS = {"null", "n/a"}

_FIELD_ALIASES = {
    "dosage": ("dosage", "Dosage"),
    "frequency": ("frequency", "Frequency"),
    "purpose": ("purpose", "Purpose"),
    "special_instructions": (
        "specialInstructions", "special_instructions", "Special Instructions",
    ),
    "important_side_effects": (
        "importantSideEffects", "important_side_effects", "Important Side Effects",
    ),
}

_FLAG_ALIASES = {
    "is_general_knowledge_instructions": (
        "isGeneralKnowledgeInstructions", "is_general_knowledge_instructions",
    ),
    "is_general_knowledge_side_effects": (
        "isGeneralKnowledgeSideEffects", "is_general_knowledge_side_effects",
    ),
}


def _coerce_text(value: Any) -> Optional[str]:
    """Return a trimmed string, or None when the value carries no text."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        parts = [p for p in (_coerce_text(v) for v in value) if p is not None]
        return "; ".join(parts) if parts else None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text == "" or text.lower() in _NULL_TOKENS:
        return None
    return text


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    if isinstance(value, (int, float)):
        return value == 1
    return False


def _first_present(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _parse_names(data: Mapping[str, Any]) -> MedicationNames:
    names = MedicationNames()

    structured = data.get("names")
    if not isinstance(structured, Mapping):
        structured = data.get("Name")
    if isinstance(structured, Mapping):
        names.generic = _coerce_text(_first_present(structured, ("generic", "Generic")))
        names.brand = _coerce_text(_first_present(structured, ("brand", "Brand")))
        names.suggested = _coerce_text(_first_present(structured, ("suggested", "Suggested")))

    if names.suggested is None:
        names.suggested = _coerce_text(
            _first_present(data, ("SuggestedName", "suggestedName", "suggested_name"))
        )

    # Flat "name" from stored records counts as an extracted name
    if names.generic is None and names.brand is None:
        flat = data.get("name")
        if isinstance(flat, str):
            names.generic = _coerce_text(flat)

    return names


def parse_raw_entry(data: RawInput) -> RawMedicationEntry:
    """Build a RawMedicationEntry from whatever the extractor delivered."""
    if isinstance(data, RawMedicationEntry):
        return data
    if not isinstance(data, Mapping):
        if data is not None:
            logger.debug(f"Ignoring non-mapping extraction entry of type {type(data).__name__}")
        return RawMedicationEntry()

    entry = RawMedicationEntry(names=_parse_names(data))
    for attr, keys in _FIELD_ALIASES.items():
        setattr(entry, attr, _coerce_text(_first_present(data, keys)))
    for attr, keys in _FLAG_ALIASES.items():
        setattr(entry, attr, _coerce_flag(_first_present(data, keys)))
    return entry


def normalize(
    raw_entry: RawInput,
    source_document_id: str,
    source_document_name: str,
) -> MedicationRecord:
    """
    Normalize one extracted medication entry.

    Pure transformation. An empty or malformed entry yields a record with
    every optional field absent and ``is_name_extracted`` False.
    """
    raw = parse_raw_entry(raw_entry)

    record = MedicationRecord(
        names=MedicationNames(
            generic=raw.names.generic,
            brand=raw.names.brand,
            suggested=raw.names.suggested,
        ),
        source_document_id=source_document_id,
        source_document_name=source_document_name,
        dosage=raw.dosage,
        frequency=raw.frequency,
        purpose=raw.purpose,
        special_instructions=raw.special_instructions,
        important_side_effects=raw.important_side_effects,
        is_general_knowledge_instructions=raw.is_general_knowledge_instructions,
        is_general_knowledge_side_effects=raw.is_general_knowledge_side_effects,
    )

    if not record.has_name:
        logger.debug(
            f"Medication entry from '{source_document_name}' has no name; "
            f"placeholder will be used"
        )

    return record


def normalize_document(
    raw_entries: Optional[Iterable[RawInput]],
    document_id: str,
    document_name: str,
) -> List[MedicationRecord]:
    """Normalize every entry of one document's extraction result, in order."""
    if raw_entries is None:
        return []
    if isinstance(raw_entries, Mapping):
        # A single object where a list was expected
        raw_entries = [raw_entries]
    elif not isinstance(raw_entries, (list, tuple)):
        logger.debug(
            f"Ignoring non-list extraction result for '{document_name}': "
            f"{type(raw_entries).__name__}"
        )
        return []
    return [normalize(entry, document_id, document_name) for entry in raw_entries]


def resolve_display_name(record: MedicationRecord, position: int) -> Tuple[str, bool]:
    """
    Resolve (display name, is_name_extracted) for a record at a 1-based position.

    Resolution order: generic, brand, suggested, "Medication Entry #N".
    """
    return record.display_name(position), record.is_name_extracted
