# ============================================================================
# src/rxplain/core/context/medication_record.py
# ============================================================================
"""
Medication record representation
- Raw extracted entry (pre-normalization)
- Canonical record with provenance flags and source lineage

The display name is never stored: it is resolved from the name fields and,
for unnamed records, from the record's current position in its list.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .enums import NameSource
from ...utils.exceptions import IncompleteExtraction

PLACEHOLDER_TEMPLATE = "Medication Entry #{position}"

CLINICAL_FIELDS = (
    "dosage",
    "frequency",
    "purpose",
    "special_instructions",
    "important_side_effects",
)


@dataclass
class MedicationNames:
    generic: Optional[str] = None
    brand: Optional[str] = None
    suggested: Optional[str] = None

    def resolve(self) -> Tuple[Optional[str], NameSource]:
        """Apply generic > brand > suggested precedence."""
        if self.generic is not None:
            return self.generic, NameSource.GENERIC
        if self.brand is not None:
            return self.brand, NameSource.BRAND
        if self.suggested is not None:
            return self.suggested, NameSource.SUGGESTED
        return None, NameSource.PLACEHOLDER

    def is_empty(self) -> bool:
        return self.generic is None and self.brand is None and self.suggested is None


@dataclass
class RawMedicationEntry:
    """One medication mention as delivered by the extraction collaborator."""
    names: MedicationNames = field(default_factory=MedicationNames)
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    purpose: Optional[str] = None
    special_instructions: Optional[str] = None
    important_side_effects: Optional[str] = None
    is_general_knowledge_instructions: bool = False
    is_general_knowledge_side_effects: bool = False


@dataclass
class MedicationRecord:
    names: MedicationNames
    source_document_id: str
    source_document_name: str

    dosage: Optional[str] = None
    frequency: Optional[str] = None
    purpose: Optional[str] = None
    special_instructions: Optional[str] = None
    important_side_effects: Optional[str] = None

    # Provenance: field backfilled from general knowledge, not the document
    is_general_knowledge_instructions: bool = False
    is_general_knowledge_side_effects: bool = False

    # Lineage - every document that mentioned this medication, first-seen first
    source_document_ids: List[str] = field(default_factory=list)
    source_document_names: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.source_document_ids:
            self.source_document_ids = [self.source_document_id]
        if not self.source_document_names:
            self.source_document_names = [self.source_document_name]

    @property
    def name_source(self) -> NameSource:
        return self.names.resolve()[1]

    @property
    def is_name_extracted(self) -> bool:
        return self.name_source in (NameSource.GENERIC, NameSource.BRAND)

    @property
    def has_name(self) -> bool:
        return not self.names.is_empty()

    def display_name(self, position: int) -> str:
        """
        Resolve the label shown to the user.

        Args:
            position: 1-based ordinal of this record in the list being rendered
        """
        name, _ = self.names.resolve()
        if name is not None:
            return name
        return PLACEHOLDER_TEMPLATE.format(position=position)

    @property
    def missing_fields(self) -> List[str]:
        missing = [f"names.{k}" for k in ("generic", "brand", "suggested")
                   if getattr(self.names, k) is None]
        missing.extend(f for f in CLINICAL_FIELDS if getattr(self, f) is None)
        return missing

    def require(self, *fields: str) -> "MedicationRecord":
        """
        Assert the given clinical fields are present.

        ``"name"`` requires any name field. Raises IncompleteExtraction.
        """
        missing = []
        for name in fields:
            if name == "name":
                if not self.has_name:
                    missing.append(name)
            elif getattr(self, name) is None:
                missing.append(name)
        if missing:
            raise IncompleteExtraction(
                f"Medication record from '{self.source_document_name}' is missing: "
                f"{', '.join(missing)}",
                missing_fields=missing,
            )
        return self

    def add_source(self, document_id: str, document_name: str) -> bool:
        """Append a document to the lineage. Returns False if already present."""
        if document_id in self.source_document_ids:
            return False
        self.source_document_ids.append(document_id)
        self.source_document_names.append(document_name)
        return True

    def to_dict(self, position: int) -> Dict[str, Any]:
        """Presentation shape; position drives the placeholder name."""
        return {
            "displayName": self.display_name(position),
            "isNameExtracted": self.is_name_extracted,
            "names": {
                "generic": self.names.generic,
                "brand": self.names.brand,
                "suggested": self.names.suggested,
            },
            "dosage": self.dosage,
            "frequency": self.frequency,
            "purpose": self.purpose,
            "specialInstructions": self.special_instructions,
            "importantSideEffects": self.important_side_effects,
            "isGeneralKnowledgeInstructions": self.is_general_knowledge_instructions,
            "isGeneralKnowledgeSideEffects": self.is_general_knowledge_side_effects,
            "sourceDocumentId": self.source_document_id,
            "sourceDocumentName": self.source_document_name,
            "sourceDocumentIds": list(self.source_document_ids),
            "sourceDocumentNames": list(self.source_document_names),
        }
