# ============================================================================
# src/rxplain/core/context/medication_view.py
# ============================================================================
"""
Aggregated medication view
- Ordered, de-duplicated records across a user's documents
- Derived on demand; never persisted on its own
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .medication_record import MedicationRecord
from ...utils.exceptions import UnknownMedicationError


def name_key(name: str) -> str:
    """Merge key: trimmed, internal whitespace collapsed, case-folded."""
    return " ".join(name.split()).casefold()


@dataclass
class AggregatedMedicationView:
    records: List[MedicationRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[MedicationRecord]:
        return iter(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)

    def entries(self) -> Iterator[Tuple[str, MedicationRecord]]:
        """Yield (display name, record) in view order."""
        for position, record in enumerate(self.records, start=1):
            yield record.display_name(position), record

    def display_names(self) -> List[str]:
        return [name for name, _ in self.entries()]

    def find(self, name: str) -> Optional[MedicationRecord]:
        key = name_key(name)
        for display, record in self.entries():
            if name_key(display) == key:
                return record
        return None

    def get(self, name: str) -> MedicationRecord:
        record = self.find(name)
        if record is None:
            raise UnknownMedicationError(name)
        return record

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find(name) is not None

    def lineage(self, name: str) -> List[str]:
        return list(self.get(name).source_document_names)

    def subset(self, names: Iterable[str]) -> "AggregatedMedicationView":
        """Records whose display name in this view matches one of ``names``, in view order."""
        keys = {name_key(n) for n in names}
        unknown = keys - {name_key(d) for d in self.display_names()}
        if unknown:
            raise UnknownMedicationError(sorted(unknown)[0])
        return AggregatedMedicationView(
            records=[r for d, r in self.entries() if name_key(d) in keys]
        )

    def to_list(self) -> List[Dict[str, Any]]:
        return [r.to_dict(position) for position, r in enumerate(self.records, start=1)]
