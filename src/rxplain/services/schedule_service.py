# ============================================================================
# src/rxplain/services/schedule_service.py
# ============================================================================
"""
Schedule Service

Owns the lifecycle of stored medication schedules and the generation flow:

    selected medications
        -> interaction gate (two or more medications)
        -> schedule synthesis
        -> persisted MedicationSchedule

Ownership is checked on every read and write: a schedule owned by another
user behaves exactly like a missing one.
"""

import copy
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from ..core.config import get_config
from ..core.context import (
    AggregatedMedicationView,
    DailySlot,
    InteractionAnalysis,
    MedicationSchedule,
    WeeklyAdjustment,
)
from ..store.schedule_store import ScheduleStore
from ..synthesizers.interaction_synthesizer import InteractionSynthesizer
from ..synthesizers.schedule_synthesizer import ScheduleSynthesizer, validate_schedule
from ..utils.exceptions import (
    ScheduleNotFoundError,
    ScheduleUpdateError,
    ScheduleValidationError,
    SelectionPrecondition,
)
from ..utils.logging import log_performance

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = ("id", "user_id", "created_at")

UPDATABLE_FIELDS = (
    "name",
    "daily_schedule",
    "weekly_adjustments",
    "special_notes",
    "recommended_followup",
    "is_active",
    "medications",
)

STRUCTURAL_FIELDS = ("daily_schedule", "weekly_adjustments", "medications")

# Wire names accepted from the user-action layer
_FIELD_ALIASES = {
    "userId": "user_id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "dailySchedule": "daily_schedule",
    "weeklyAdjustments": "weekly_adjustments",
    "specialNotes": "special_notes",
    "recommendedFollowup": "recommended_followup",
    "isActive": "is_active",
}


@dataclass
class ScheduleGenerationResult:
    schedule: Optional[MedicationSchedule] = None
    interaction_analysis: Optional[InteractionAnalysis] = None
    requires_warning: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schedule": self.schedule.to_dict() if self.schedule else None,
            "interactionAnalysis": (
                self.interaction_analysis.to_dict() if self.interaction_analysis else None
            ),
            "requiresWarning": self.requires_warning,
        }


class ScheduleService:

    def __init__(
        self,
        store: ScheduleStore,
        schedule_synthesizer: Optional[ScheduleSynthesizer] = None,
        interaction_synthesizer: Optional[InteractionSynthesizer] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.config = {**get_config(), **(config or {})}
        self.store = store
        self.schedule_synthesizer = schedule_synthesizer or ScheduleSynthesizer(self.config)
        self.interaction_synthesizer = interaction_synthesizer or InteractionSynthesizer(self.config)
        self.enforce_single_active = bool(self.config.get('enforce_single_active', True))

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    @log_performance(logger, "generate_schedule")
    async def generate_schedule(
        self,
        user_id: str,
        selected_view: AggregatedMedicationView,
        ignore_warnings: bool = False,
        name: Optional[str] = None,
    ) -> ScheduleGenerationResult:
        """
        Generate and persist a schedule for the selected medications.

        With two or more medications the interaction check runs first; a
        result that requires a warning stops generation unless
        ``ignore_warnings`` is set. AnalysisUnavailable from either step
        propagates.
        """
        if not selected_view:
            raise SelectionPrecondition(
                "Select at least one medication to generate a schedule",
                selected_count=0,
            )

        analysis = None
        if len(selected_view) >= 2:
            analysis = await self.interaction_synthesizer.analyze_interactions(
                selected_view.display_names()
            )
            if analysis.requires_warning and not ignore_warnings:
                logger.info(
                    f"Schedule generation for user {user_id} paused: "
                    f"interaction risk {analysis.risk_level.value}"
                )
                return ScheduleGenerationResult(
                    interaction_analysis=analysis,
                    requires_warning=True,
                )

        schedule = await self.schedule_synthesizer.synthesize(selected_view, user_id, name=name)
        schedule = self.create_schedule(schedule)
        return ScheduleGenerationResult(schedule=schedule, interaction_analysis=analysis)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def create_schedule(self, schedule: MedicationSchedule) -> MedicationSchedule:
        if not schedule.user_id:
            raise ScheduleValidationError("Schedule has no owning user")
        if not schedule.medications:
            schedule.medications = schedule.scheduled_names()
        validate_schedule(schedule, schedule.medications)

        schedule = self.store.save(schedule)
        if schedule.is_active:
            self._deactivate_others(schedule)
        logger.info(f"Created schedule {schedule.id} for user {schedule.user_id}")
        return schedule

    def get_schedule(self, schedule_id: str, user_id: str) -> Optional[MedicationSchedule]:
        schedule = self.store.get(schedule_id)
        if schedule is None or schedule.user_id != user_id:
            return None
        return schedule

    def list_schedules(self, user_id: str, active_only: bool = False) -> List[MedicationSchedule]:
        return self.store.list_for_user(user_id, active_only=active_only)

    def update_schedule(
        self,
        schedule_id: str,
        user_id: str,
        updates: Mapping[str, Any],
    ) -> MedicationSchedule:
        """
        Merge ``updates`` into a stored schedule and re-stamp ``updated_at``.

        Raises:
            ScheduleNotFoundError: missing or owned by another user
            ScheduleUpdateError: immutable or unknown fields in the payload
            ScheduleValidationError: structural update fails validation
        """
        schedule = self._require(schedule_id, user_id)
        changes = self._normalize_updates(updates)

        candidate = copy.deepcopy(schedule)
        candidate.apply_update(changes, now=datetime.now())
        if any(f in changes for f in STRUCTURAL_FIELDS):
            validate_schedule(candidate, candidate.medications)

        self.store.save(candidate)
        if "is_active" in changes and candidate.is_active:
            self._deactivate_others(candidate)
        logger.info(f"Updated schedule {schedule_id}: {', '.join(sorted(changes))}")
        return candidate

    def delete_schedule(self, schedule_id: str, user_id: str) -> bool:
        if self.get_schedule(schedule_id, user_id) is None:
            return False
        deleted = self.store.delete(schedule_id)
        if deleted:
            logger.info(f"Deleted schedule {schedule_id}")
        return deleted

    def toggle_active(self, schedule_id: str, user_id: str) -> MedicationSchedule:
        schedule = self._require(schedule_id, user_id)
        return self.update_schedule(schedule_id, user_id, {"is_active": not schedule.is_active})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require(self, schedule_id: str, user_id: str) -> MedicationSchedule:
        schedule = self.get_schedule(schedule_id, user_id)
        if schedule is None:
            raise ScheduleNotFoundError(schedule_id)
        return schedule

    def _deactivate_others(self, schedule: MedicationSchedule) -> None:
        if not self.enforce_single_active:
            return
        for other in self.store.list_for_user(schedule.user_id, active_only=True):
            if other.id == schedule.id:
                continue
            other.apply_update({"is_active": False})
            self.store.save(other)
            logger.debug(f"Deactivated schedule {other.id}")

    def _normalize_updates(self, updates: Mapping[str, Any]) -> Dict[str, Any]:
        changes = {_FIELD_ALIASES.get(k, k): v for k, v in updates.items()}

        immutable = [k for k in changes if k in IMMUTABLE_FIELDS]
        if immutable:
            raise ScheduleUpdateError(
                f"Cannot update immutable fields: {', '.join(immutable)}",
                fields=immutable,
            )
        unknown = [k for k in changes if k not in UPDATABLE_FIELDS]
        if unknown:
            raise ScheduleUpdateError(
                f"Unknown or read-only fields: {', '.join(unknown)}",
                fields=unknown,
            )

        for field in STRUCTURAL_FIELDS:
            if field in changes and not isinstance(changes[field], (list, tuple)):
                raise ScheduleValidationError(
                    f"{field} must be a list, got {type(changes[field]).__name__}"
                )

        if "daily_schedule" in changes:
            slots = [_as_slot(s) for s in changes["daily_schedule"]]
            changes["daily_schedule"] = sorted(slots, key=lambda s: s.time_of_day.order)
        if "weekly_adjustments" in changes:
            changes["weekly_adjustments"] = [_as_adjustment(w) for w in changes["weekly_adjustments"]]
        if "medications" in changes:
            changes["medications"] = [str(m) for m in changes["medications"]]
        if "is_active" in changes:
            changes["is_active"] = bool(changes["is_active"])
        if "name" in changes and not (isinstance(changes["name"], str) and changes["name"].strip()):
            raise ScheduleUpdateError("Schedule name cannot be empty", fields=["name"])
        return changes


def _as_slot(value: Any) -> DailySlot:
    if isinstance(value, DailySlot):
        return value
    try:
        return DailySlot.from_dict(value)
    except (KeyError, TypeError, ValueError) as e:
        raise ScheduleValidationError(f"Invalid daily schedule slot: {e}") from e


def _as_adjustment(value: Any) -> WeeklyAdjustment:
    if isinstance(value, WeeklyAdjustment):
        return value
    try:
        return WeeklyAdjustment.from_dict(value)
    except (AttributeError, TypeError) as e:
        raise ScheduleValidationError(f"Invalid weekly adjustment: {e}") from e
