# ============================================================================
# src/rxplain/core/context/interaction.py
# ============================================================================
"""
Interaction analysis result
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from .enums import RiskLevel


@dataclass
class InteractionAnalysis:
    risk_level: RiskLevel
    description: str
    medications: List[str] = field(default_factory=list)
    analyzed_at: datetime = field(default_factory=datetime.now)

    @property
    def requires_warning(self) -> bool:
        return self.risk_level.requires_warning

    def to_dict(self) -> Dict[str, Any]:
        return {
            "riskLevel": self.risk_level.value,
            "description": self.description,
            "medications": list(self.medications),
            "analyzedAt": self.analyzed_at.isoformat(),
        }
