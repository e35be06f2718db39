# ============================================================================
# src/rxplain/processors/medication/aggregator.py
# ============================================================================
"""
Cross-Document Aggregator

Merges normalized records from several source documents into one
de-duplicated AggregatedMedicationView.

Policy: first-seen-wins, union-of-sources.
- Merge key is the display name, trimmed and case-insensitive.
- On collision the first record's clinical fields (and their provenance
  flags) are kept; the colliding document is appended to the lineage.
- Output preserves first-seen order. Document order is upload/processing
  order, so re-aggregating an unchanged document set is stable.
- Records with no name at all never merge: their placeholder label depends
  on position and says nothing about identity.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Sequence, Set, Union

from ...core.context import AggregatedMedicationView, MedicationRecord, name_key
from ...core.context.medication_record import CLINICAL_FIELDS
from ...utils.exceptions import UnknownMedicationError
from .normalizer import normalize_document

logger = logging.getLogger(__name__)


@dataclass
class DocumentMedications:
    """Normalized records of one source document."""
    document_id: str
    document_name: str
    records: List[MedicationRecord] = field(default_factory=list)

    @classmethod
    def from_extraction(cls, document_id: str, document_name: str, raw_entries) -> "DocumentMedications":
        return cls(
            document_id=document_id,
            document_name=document_name,
            records=normalize_document(raw_entries, document_id, document_name),
        )


DocumentInput = Union[DocumentMedications, Sequence[MedicationRecord]]


def _records_of(document: DocumentInput) -> Sequence[MedicationRecord]:
    if isinstance(document, DocumentMedications):
        return document.records
    return document


def _fresh_copy(record: MedicationRecord) -> MedicationRecord:
    """Copy so aggregation never mutates the per-document inputs."""
    return replace(
        record,
        source_document_ids=list(record.source_document_ids),
        source_document_names=list(record.source_document_names),
    )


def _conflicting_fields(kept: MedicationRecord, incoming: MedicationRecord) -> List[str]:
    return [
        f for f in CLINICAL_FIELDS
        if getattr(incoming, f) is not None and getattr(kept, f) != getattr(incoming, f)
    ]


def aggregate(per_document_records: Iterable[DocumentInput]) -> AggregatedMedicationView:
    """
    Build the combined medication view.

    Args:
        per_document_records: one entry per document, in upload/processing
            order; either DocumentMedications or a plain list of records

    Returns:
        AggregatedMedicationView in first-seen order
    """
    merged: List[MedicationRecord] = []
    index: Dict[str, MedicationRecord] = {}
    collisions = 0

    for document in per_document_records:
        for record in _records_of(document):
            if not record.has_name:
                merged.append(_fresh_copy(record))
                continue

            key = name_key(record.display_name(position=0))
            existing = index.get(key)
            if existing is None:
                copy = _fresh_copy(record)
                index[key] = copy
                merged.append(copy)
                continue

            collisions += 1
            for doc_id, doc_name in zip(record.source_document_ids, record.source_document_names):
                existing.add_source(doc_id, doc_name)

            conflicts = _conflicting_fields(existing, record)
            if conflicts:
                logger.debug(
                    f"'{record.display_name(position=0)}' from '{record.source_document_name}' "
                    f"disagrees on {', '.join(conflicts)}; keeping first-seen values"
                )

    logger.info(f"Aggregated {len(merged)} medications ({collisions} merged duplicates)")
    return AggregatedMedicationView(records=merged)


class MedicationSelection:
    """
    User selection over an aggregated view.

    Commands: select, deselect, toggle, clear. Gating the interaction check
    on two or more selections is this consumer's job, not the aggregator's.
    """

    MIN_FOR_INTERACTIONS = 2
    MIN_FOR_SCHEDULE = 1

    def __init__(self, view: AggregatedMedicationView):
        self.view = view
        self._selected: Set[str] = set()

    def _canonical(self, name: str) -> str:
        for display in self.view.display_names():
            if name_key(display) == name_key(name):
                return display
        raise UnknownMedicationError(name)

    def select(self, name: str) -> str:
        display = self._canonical(name)
        self._selected.add(name_key(display))
        return display

    def deselect(self, name: str) -> None:
        self._selected.discard(name_key(self._canonical(name)))

    def toggle(self, name: str) -> bool:
        """Flip selection state; returns True if now selected."""
        key = name_key(self._canonical(name))
        if key in self._selected:
            self._selected.discard(key)
            return False
        self._selected.add(key)
        return True

    def clear(self) -> None:
        self._selected.clear()

    def is_selected(self, name: str) -> bool:
        return name_key(name) in self._selected

    def selected_names(self) -> List[str]:
        return [d for d in self.view.display_names() if name_key(d) in self._selected]

    @property
    def count(self) -> int:
        return len(self._selected)

    @property
    def can_check_interactions(self) -> bool:
        return self.count >= self.MIN_FOR_INTERACTIONS

    @property
    def can_request_schedule(self) -> bool:
        return self.count >= self.MIN_FOR_SCHEDULE

    def selected_records(self) -> AggregatedMedicationView:
        return self.view.subset(self.selected_names())
