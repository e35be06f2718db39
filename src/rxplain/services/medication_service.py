# ============================================================================
# src/rxplain/services/medication_service.py
# ============================================================================
"""
Medication Service

Connects stored extraction results to the medication views:
record a document, list medications per document, rebuild the aggregated
view, and run interaction checks on a selection.
"""

import logging
from typing import Any, Iterable, List, Optional, Union

from ..core.context import AggregatedMedicationView, InteractionAnalysis
from ..processors.medication.aggregator import (
    DocumentMedications,
    MedicationSelection,
    aggregate,
)
from ..store.document_store import DocumentStore
from ..synthesizers.interaction_synthesizer import InteractionSynthesizer
from ..utils.exceptions import SelectionPrecondition
from ..utils.logging import log_performance

logger = logging.getLogger(__name__)


class MedicationService:

    def __init__(
        self,
        document_store: DocumentStore,
        interaction_synthesizer: Optional[InteractionSynthesizer] = None,
    ):
        self.document_store = document_store
        self._interaction_synthesizer = interaction_synthesizer

    @property
    def interaction_synthesizer(self) -> InteractionSynthesizer:
        if self._interaction_synthesizer is None:
            self._interaction_synthesizer = InteractionSynthesizer()
        return self._interaction_synthesizer

    def record_document(
        self,
        document_id: str,
        user_id: str,
        document_name: str,
        raw_medications: Any,
    ) -> DocumentMedications:
        """Store one document's extraction output and return its normalized records."""
        self.document_store.save(document_id, user_id, document_name, raw_medications)
        return DocumentMedications.from_extraction(document_id, document_name, raw_medications)

    def document_medications(self, user_id: str) -> List[DocumentMedications]:
        return self.document_store.documents_for_user(user_id)

    @log_performance(logger, "aggregate_medications")
    def aggregated_medications(self, user_id: str) -> AggregatedMedicationView:
        """Rebuilt from the stored documents on every call."""
        return aggregate(self.document_medications(user_id))

    async def check_interactions(
        self,
        selection: Union[MedicationSelection, Iterable[str]],
    ) -> InteractionAnalysis:
        if isinstance(selection, MedicationSelection):
            if not selection.can_check_interactions:
                raise SelectionPrecondition(
                    f"Select at least {MedicationSelection.MIN_FOR_INTERACTIONS} "
                    f"medications to check interactions ({selection.count} selected)",
                    selected_count=selection.count,
                )
            names = selection.selected_names()
        else:
            names = list(selection)
        return await self.interaction_synthesizer.analyze_interactions(names)
