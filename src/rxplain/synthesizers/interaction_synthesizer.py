# ============================================================================
# src/rxplain/synthesizers/interaction_synthesizer.py
# ============================================================================
"""
Interaction-Risk Synthesizer

Asks the knowledge collaborator for a combined drug-drug interaction risk
over a set of selected medications.

Outcomes:
- Fewer than two distinct names: SelectionPrecondition, no request issued
- Collaborator unreachable or output unparseable: AnalysisUnavailable
- Parsed output without a recognised riskLevel: RiskLevel.UNKNOWN

A failed analysis is never reported as NONE.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List

from .base import Synthesizer
from .prompts import INTERACTION_TEMPLATE, format_medication_list
from ..core.context import InteractionAnalysis, RiskLevel, name_key
from ..utils.exceptions import AnalysisUnavailable, SelectionPrecondition

MIN_MEDICATIONS = 2

DEFAULT_DESCRIPTION = "No interaction details were provided."

_RISK_KEYS = ("riskLevel", "risk_level", "risk", "severity")
_DESCRIPTION_KEYS = ("description", "summary", "explanation", "details")


class InteractionSynthesizer(Synthesizer):

    def get_name(self) -> str:
        return "InteractionSynthesizer"

    async def analyze_interactions(self, selected_names: Iterable[str]) -> InteractionAnalysis:
        """
        Assess the combined interaction risk of ``selected_names``.

        Names are de-duplicated case-insensitively; the first spelling wins.

        Raises:
            SelectionPrecondition: fewer than two distinct names
            AnalysisUnavailable: collaborator failure or malformed output
        """
        names = self.distinct_names(selected_names)
        if len(names) < MIN_MEDICATIONS:
            raise SelectionPrecondition(
                f"Select at least {MIN_MEDICATIONS} medications to check interactions "
                f"({len(names)} selected)",
                selected_count=len(names),
            )

        prompt = INTERACTION_TEMPLATE.format(medication_list=format_medication_list(names))
        data = await self._ask(
            prompt,
            operation="interaction_check",
            max_tokens=self.config.get('max_tokens'),
        )
        analysis = self._to_analysis(data, names)

        self.logger.info(
            f"Interaction risk for {len(names)} medications: {analysis.risk_level.value}"
        )
        return analysis

    @staticmethod
    def distinct_names(selected_names: Iterable[str]) -> List[str]:
        if isinstance(selected_names, (str, bytes)):
            raise SelectionPrecondition(
                "Expected a collection of medication names, got a single string",
                selected_count=1,
            )

        names: List[str] = []
        seen = set()
        for name in selected_names:
            if not isinstance(name, str) or not name.strip():
                continue
            key = name_key(name)
            if key in seen:
                continue
            seen.add(key)
            names.append(name.strip())

        # Same set, same request
        return sorted(names, key=name_key)

    def _to_analysis(self, data: Dict[str, Any], names: List[str]) -> InteractionAnalysis:
        if not isinstance(data, dict):
            raise AnalysisUnavailable(
                "Knowledge service returned a non-object interaction result",
                operation="interaction_check",
            )

        raw_risk = _first(data, _RISK_KEYS)
        raw_description = _first(data, _DESCRIPTION_KEYS)
        if raw_risk is None and raw_description is None:
            raise AnalysisUnavailable(
                "Knowledge service returned neither a risk level nor a description",
                operation="interaction_check",
            )

        risk_level = RiskLevel.parse(raw_risk)
        if risk_level is RiskLevel.UNKNOWN and raw_risk is not None:
            self.logger.warning(f"Unrecognised risk level from collaborator: {raw_risk!r}")

        if isinstance(raw_description, str) and raw_description.strip():
            description = raw_description.strip()
        else:
            description = DEFAULT_DESCRIPTION

        return InteractionAnalysis(
            risk_level=risk_level,
            description=description,
            medications=list(names),
            analyzed_at=datetime.now(),
        )


def _first(data: Dict[str, Any], keys) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None
