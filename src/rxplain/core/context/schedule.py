# ============================================================================
# src/rxplain/core/context/schedule.py
# ============================================================================
"""
Medication schedule representation
- Daily time-of-day slots (chronological)
- Weekly adjustments (exceptions to the daily plan)
- Ownership and lifecycle timestamps
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .enums import TimeOfDay

# Set once; reassignment afterwards is rejected
_WRITE_ONCE_FIELDS = ("id", "user_id")


@dataclass
class ScheduledMedication:
    name: str
    dosage: Optional[str] = None
    special_instructions: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "dosage": self.dosage,
            "specialInstructions": self.special_instructions,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduledMedication":
        return cls(
            name=data["name"],
            dosage=data.get("dosage"),
            special_instructions=data.get("specialInstructions"),
        )


@dataclass
class DailySlot:
    time_of_day: TimeOfDay
    suggested_time: str
    with_food: bool = False
    medications: List[ScheduledMedication] = field(default_factory=list)

    def medication_names(self) -> List[str]:
        return [m.name for m in self.medications]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeOfDay": self.time_of_day.value,
            "suggestedTime": self.suggested_time,
            "withFood": self.with_food,
            "medications": [m.to_dict() for m in self.medications],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailySlot":
        return cls(
            time_of_day=TimeOfDay(data["timeOfDay"]),
            suggested_time=data.get("suggestedTime", ""),
            with_food=bool(data.get("withFood", False)),
            medications=[ScheduledMedication.from_dict(m) for m in data.get("medications", [])],
        )


@dataclass
class WeeklyAdjustment:
    medications: List[str]
    days: List[str]
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medications": list(self.medications),
            "days": list(self.days),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeeklyAdjustment":
        return cls(
            medications=list(data.get("medications", [])),
            days=list(data.get("days", [])),
            description=data.get("description", ""),
        )


@dataclass
class MedicationSchedule:
    user_id: str
    daily_schedule: List[DailySlot] = field(default_factory=list)
    weekly_adjustments: List[WeeklyAdjustment] = field(default_factory=list)
    special_notes: str = ""
    recommended_followup: str = ""
    medications: List[str] = field(default_factory=list)
    name: str = ""
    is_active: bool = True
    id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not self.name:
            self.name = f"Medication Schedule ({self.created_at.date().isoformat()})"

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _WRITE_ONCE_FIELDS and self.__dict__.get(name) is not None:
            if value != self.__dict__[name]:
                raise AttributeError(f"{name} is immutable after creation")
        super().__setattr__(name, value)

    def slot_membership(self) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
        """Structural fingerprint: slot order and the medications in each slot."""
        return tuple(
            (slot.time_of_day.value, tuple(slot.medication_names()))
            for slot in self.daily_schedule
        )

    def scheduled_names(self) -> List[str]:
        seen: List[str] = []
        for slot in self.daily_schedule:
            for name in slot.medication_names():
                if name not in seen:
                    seen.append(name)
        return seen

    def apply_update(self, updates: Dict[str, Any], now: Optional[datetime] = None) -> "MedicationSchedule":
        """Merge the given fields and re-stamp ``updated_at``."""
        known = {f.name for f in fields(self)}
        for key, value in updates.items():
            if key not in known:
                raise AttributeError(f"Unknown schedule field: {key}")
            setattr(self, key, value)
        self.updated_at = now or datetime.now()
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "dailySchedule": [s.to_dict() for s in self.daily_schedule],
            "weeklyAdjustments": [w.to_dict() for w in self.weekly_adjustments],
            "specialNotes": self.special_notes,
            "recommendedFollowup": self.recommended_followup,
            "medications": list(self.medications),
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MedicationSchedule":
        return cls(
            id=data.get("id"),
            user_id=data["userId"],
            name=data.get("name", ""),
            daily_schedule=[DailySlot.from_dict(s) for s in data.get("dailySchedule", [])],
            weekly_adjustments=[WeeklyAdjustment.from_dict(w) for w in data.get("weeklyAdjustments", [])],
            special_notes=data.get("specialNotes", ""),
            recommended_followup=data.get("recommendedFollowup", ""),
            medications=list(data.get("medications", [])),
            is_active=bool(data.get("isActive", True)),
            created_at=datetime.fromisoformat(data["createdAt"]) if data.get("createdAt") else datetime.now(),
            updated_at=datetime.fromisoformat(data["updatedAt"]) if data.get("updatedAt") else datetime.now(),
        )
