# ============================================================================
# src/rxplain/core/context/enums.py
# ============================================================================
"""
Pipeline Enums
- Interaction risk levels
- Time-of-day schedule slots
- Display name provenance
"""

from enum import Enum
from typing import Any, Optional


class RiskLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    SEVERE = "severe"
    UNKNOWN = "unknown"   # Never conflated with NONE

    @classmethod
    def parse(cls, value: Any) -> "RiskLevel":
        """Map a collaborator value onto a risk level; anything unrecognised is UNKNOWN."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        key = value.strip().lower()
        key = _RISK_SYNONYMS.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return cls.UNKNOWN

    @property
    def severity(self) -> Optional[int]:
        """Ordinal for comparison: none < low < medium < high = severe. UNKNOWN has none."""
        return _RISK_SEVERITY.get(self)

    @property
    def is_reassuring(self) -> bool:
        return self in (RiskLevel.NONE, RiskLevel.LOW)

    @property
    def requires_warning(self) -> bool:
        return self in (RiskLevel.HIGH, RiskLevel.SEVERE, RiskLevel.UNKNOWN)


_RISK_SYNONYMS = {
    "no": "none",
    "no risk": "none",
    "minor": "low",
    "moderate": "medium",
    "major": "high",
    "contraindicated": "severe",
    "critical": "severe",
}

_RISK_SEVERITY = {
    RiskLevel.NONE: 0,
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.SEVERE: 3,
}


class TimeOfDay(str, Enum):
    MORNING = "Morning"
    MIDDAY = "Midday"
    EVENING = "Evening"
    NIGHT = "Night"

    @property
    def order(self) -> int:
        return _TIME_OF_DAY_ORDER[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["TimeOfDay"]:
        """Map a slot label (including common meal/clock synonyms) to a category."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            return None
        key = value.strip().lower()
        for member in cls:
            if key == member.value.lower():
                return member
        for keyword, member in _TIME_OF_DAY_KEYWORDS:
            if keyword in key:
                return member
        return None


_TIME_OF_DAY_ORDER = {
    TimeOfDay.MORNING: 0,
    TimeOfDay.MIDDAY: 1,
    TimeOfDay.EVENING: 2,
    TimeOfDay.NIGHT: 3,
}

# First match wins
_TIME_OF_DAY_KEYWORDS = (
    ("bedtime", TimeOfDay.NIGHT),
    ("night", TimeOfDay.NIGHT),
    ("afternoon", TimeOfDay.MIDDAY),
    ("midday", TimeOfDay.MIDDAY),
    ("noon", TimeOfDay.MIDDAY),
    ("lunch", TimeOfDay.MIDDAY),
    ("morning", TimeOfDay.MORNING),
    ("breakfast", TimeOfDay.MORNING),
    ("wake", TimeOfDay.MORNING),
    ("evening", TimeOfDay.EVENING),
    ("dinner", TimeOfDay.EVENING),
    ("supper", TimeOfDay.EVENING),
)


class NameSource(str, Enum):
    GENERIC = "generic"
    BRAND = "brand"
    SUGGESTED = "suggested"
    PLACEHOLDER = "placeholder"
