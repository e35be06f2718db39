# ============================================================================
# src/rxplain/synthesizers/schedule_synthesizer.py
# ============================================================================
"""
Schedule Synthesizer

Turns an aggregated medication set into a daily time-of-day schedule with
weekly adjustments. The knowledge collaborator proposes the plan; this
module validates and canonicalizes it:

- every slot has a recognised timeOfDay
- every scheduled name exists in the input set (canonical display name kept)
- weekly adjustments only touch medications already in the daily schedule
- duplicate slots merge, slots sort Morning < Midday < Evening < Night
- missing suggestedTime and dosage are filled from defaults and records
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .base import Synthesizer
from .prompts import SCHEDULE_TEMPLATE
from ..core.context import (
    AggregatedMedicationView,
    DailySlot,
    MedicationSchedule,
    ScheduledMedication,
    TimeOfDay,
    WeeklyAdjustment,
    name_key,
)
from ..utils.exceptions import (
    ScheduleReferentialIntegrity,
    ScheduleValidationError,
    SelectionPrecondition,
)

MIN_MEDICATIONS = 1

DEFAULT_SPECIAL_NOTES = (
    "Please consult your healthcare provider before following this schedule."
)
DEFAULT_FOLLOWUP = (
    "Schedule a follow-up with your doctor to review this medication plan."
)

FALLBACK_SUGGESTED_TIMES = {
    "Morning": "8:00 AM",
    "Midday": "12:00 PM",
    "Evening": "6:00 PM",
    "Night": "10:00 PM",
}

NamesInput = Union[AggregatedMedicationView, Iterable[str]]


class ScheduleSynthesizer(Synthesizer):

    def get_name(self) -> str:
        return "ScheduleSynthesizer"

    async def synthesize(
        self,
        medications: AggregatedMedicationView,
        user_id: str,
        name: Optional[str] = None,
    ) -> MedicationSchedule:
        """
        Build a validated schedule for ``medications``.

        Raises:
            SelectionPrecondition: empty medication set, no request issued
            AnalysisUnavailable: collaborator failure or unparseable output
            ScheduleValidationError: proposal violates the schedule shape
            ScheduleReferentialIntegrity: proposal names unknown medications
        """
        if len(medications) < MIN_MEDICATIONS:
            raise SelectionPrecondition(
                "Select at least one medication to generate a schedule",
                selected_count=0,
            )

        prompt = SCHEDULE_TEMPLATE.format(medication_details=describe_medications(medications))
        proposal = await self._ask(
            prompt,
            operation="schedule_synthesis",
            max_tokens=self.config.get('max_tokens'),
        )

        schedule = build_schedule(
            proposal,
            medications,
            user_id=user_id,
            suggested_times=self.config.get('default_suggested_times'),
            name=name,
        )

        unscheduled = [n for n in medications.display_names()
                       if name_key(n) not in {name_key(s) for s in schedule.scheduled_names()}]
        if unscheduled:
            self.logger.info(f"Not placed in any daily slot: {', '.join(unscheduled)}")

        self.logger.info(
            f"Schedule built: {len(schedule.daily_schedule)} slots, "
            f"{len(schedule.weekly_adjustments)} weekly adjustments"
        )
        return schedule


def describe_medications(medications: AggregatedMedicationView) -> str:
    lines = []
    for display, record in medications.entries():
        details = [
            f"{label}: {value}"
            for label, value in (
                ("dosage", record.dosage),
                ("frequency", record.frequency),
                ("purpose", record.purpose),
                ("instructions", record.special_instructions),
            )
            if value
        ]
        lines.append(f"- {display}" + (f" ({'; '.join(details)})" if details else ""))
    return "\n".join(lines)


def build_schedule(
    proposal: Any,
    medications: AggregatedMedicationView,
    user_id: str,
    suggested_times: Optional[Mapping[str, str]] = None,
    name: Optional[str] = None,
) -> MedicationSchedule:
    """Validate a collaborator proposal and convert it to a MedicationSchedule."""
    if not isinstance(proposal, Mapping):
        raise ScheduleValidationError("Schedule proposal must be a JSON object")

    daily = proposal.get("dailySchedule")
    if not isinstance(daily, list):
        raise ScheduleValidationError("Schedule proposal is missing a dailySchedule list")

    slots = _parse_daily_schedule(daily, medications, suggested_times or FALLBACK_SUGGESTED_TIMES)
    adjustments = _parse_weekly_adjustments(proposal.get("weeklyAdjustments") or [], slots)

    schedule = MedicationSchedule(
        user_id=user_id,
        daily_schedule=slots,
        weekly_adjustments=adjustments,
        special_notes=_text(proposal.get("specialNotes")) or DEFAULT_SPECIAL_NOTES,
        recommended_followup=_text(proposal.get("recommendedFollowup")) or DEFAULT_FOLLOWUP,
        medications=medications.display_names(),
        name=name or "",
    )
    validate_schedule(schedule, medications)
    return schedule


def validate_schedule(schedule: MedicationSchedule, medications: NamesInput) -> MedicationSchedule:
    """
    Check a typed schedule against the medication names it was built for.

    Used for synthesized schedules and again whenever a stored schedule's
    structure is edited.
    """
    if isinstance(medications, AggregatedMedicationView):
        allowed = medications.display_names()
    else:
        allowed = list(medications)
    allowed_keys = {name_key(n) for n in allowed}

    unknown: List[str] = []
    for slot in schedule.daily_schedule:
        if not isinstance(slot.time_of_day, TimeOfDay):
            raise ScheduleValidationError(f"Invalid timeOfDay: {slot.time_of_day!r}")
        for med in slot.medications:
            if name_key(med.name) not in allowed_keys and med.name not in unknown:
                unknown.append(med.name)
    if unknown:
        raise ScheduleReferentialIntegrity(
            f"Schedule references medications outside its input set: {', '.join(unknown)}",
            unknown_names=unknown,
        )

    scheduled_keys = {name_key(n) for n in schedule.scheduled_names()}
    orphans: List[str] = []
    for adjustment in schedule.weekly_adjustments:
        for med_name in adjustment.medications:
            if name_key(med_name) not in scheduled_keys and med_name not in orphans:
                orphans.append(med_name)
    if orphans:
        raise ScheduleReferentialIntegrity(
            f"Weekly adjustments reference medications not in the daily schedule: "
            f"{', '.join(orphans)}",
            unknown_names=orphans,
        )

    return schedule


def _parse_daily_schedule(
    raw_slots: List[Any],
    medications: AggregatedMedicationView,
    suggested_times: Mapping[str, str],
) -> List[DailySlot]:
    canonical = {name_key(d): d for d in medications.display_names()}
    view_order = {name_key(d): i for i, d in enumerate(medications.display_names())}

    merged: Dict[TimeOfDay, DailySlot] = {}
    unknown: List[str] = []

    for raw in raw_slots:
        if not isinstance(raw, Mapping):
            raise ScheduleValidationError("Each dailySchedule entry must be an object")

        label = raw.get("timeOfDay")
        if not isinstance(label, str) or not label.strip():
            raise ScheduleValidationError("dailySchedule entry is missing timeOfDay")
        time_of_day = TimeOfDay.parse(label)
        if time_of_day is None:
            raise ScheduleValidationError(f"Unrecognised timeOfDay: {label!r}")

        slot = merged.get(time_of_day)
        if slot is None:
            slot = DailySlot(
                time_of_day=time_of_day,
                suggested_time=_text(raw.get("suggestedTime"))
                or suggested_times.get(time_of_day.value, FALLBACK_SUGGESTED_TIMES[time_of_day.value]),
                with_food=_flag(raw.get("withFood")),
            )
            merged[time_of_day] = slot

        raw_medications = raw.get("medications") or []
        if isinstance(raw_medications, (str, Mapping)):
            raw_medications = [raw_medications]
        elif not isinstance(raw_medications, (list, tuple)):
            raise ScheduleValidationError(
                f"dailySchedule medications must be a list, got {type(raw_medications).__name__}"
            )
        for item in raw_medications:
            entry = _parse_slot_medication(item)
            display = canonical.get(name_key(entry.name))
            if display is None:
                if entry.name not in unknown:
                    unknown.append(entry.name)
                continue
            if display in slot.medication_names():
                continue
            entry.name = display
            if entry.dosage is None:
                entry.dosage = medications.get(display).dosage
            slot.medications.append(entry)

    if unknown:
        raise ScheduleReferentialIntegrity(
            f"Schedule references medications outside its input set: {', '.join(unknown)}",
            unknown_names=unknown,
        )

    slots = []
    for slot in sorted(merged.values(), key=lambda s: s.time_of_day.order):
        if not slot.medications:
            continue
        slot.medications.sort(key=lambda m: view_order[name_key(m.name)])
        slots.append(slot)
    return slots


def _parse_slot_medication(item: Any) -> ScheduledMedication:
    if isinstance(item, str):
        name = _text(item)
        dosage = instructions = None
    elif isinstance(item, Mapping):
        name = _text(item.get("name") or item.get("medication"))
        dosage = _text(item.get("dosage"))
        instructions = _text(item.get("specialInstructions") or item.get("instructions"))
    else:
        name = None
    if not name:
        raise ScheduleValidationError("Scheduled medication entry has no name")
    return ScheduledMedication(name=name, dosage=dosage, special_instructions=instructions)


def _parse_weekly_adjustments(raw_adjustments: Any, slots: List[DailySlot]) -> List[WeeklyAdjustment]:
    if not isinstance(raw_adjustments, list):
        raise ScheduleValidationError("weeklyAdjustments must be a list")

    scheduled: Dict[str, str] = {}
    for slot in slots:
        for med_name in slot.medication_names():
            scheduled.setdefault(name_key(med_name), med_name)

    adjustments = []
    orphans: List[str] = []
    for raw in raw_adjustments:
        if not isinstance(raw, Mapping):
            raise ScheduleValidationError("Each weeklyAdjustments entry must be an object")

        description = _text(raw.get("description") or raw.get("adjustments") or raw.get("adjustment")) or ""
        days = _parse_days(raw.get("days") or raw.get("day"))

        raw_names = raw.get("medications") or raw.get("affectedMedications") or raw.get("medication")
        if isinstance(raw_names, str):
            raw_names = [raw_names]
        elif raw_names is not None and not isinstance(raw_names, (list, tuple)):
            raise ScheduleValidationError(
                f"weeklyAdjustments medications must be a list, got {type(raw_names).__name__}"
            )
        names = [n for n in (_text(x) for x in (raw_names or [])) if n]
        if not names:
            # Older proposals only mention the medication in the prose
            names = _names_in_text(description, scheduled)
        if not names:
            raise ScheduleValidationError(
                f"Weekly adjustment does not name an affected medication: {description!r}"
            )

        canonical_names = []
        for med_name in names:
            display = scheduled.get(name_key(med_name))
            if display is None:
                if med_name not in orphans:
                    orphans.append(med_name)
            elif display not in canonical_names:
                canonical_names.append(display)

        adjustments.append(WeeklyAdjustment(medications=canonical_names, days=days, description=description))

    if orphans:
        raise ScheduleReferentialIntegrity(
            f"Weekly adjustments reference medications not in the daily schedule: "
            f"{', '.join(orphans)}",
            unknown_names=orphans,
        )
    return adjustments


def _names_in_text(text: str, scheduled: Mapping[str, str]) -> List[str]:
    """Scheduled names mentioned as whole words in free text."""
    lowered = name_key(text)
    return [
        display for key, display in scheduled.items()
        if re.search(rf"(?<!\w){re.escape(key)}(?!\w)", lowered)
    ]


def _parse_days(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.replace(" and ", ",").split(",")
    elif isinstance(value, list):
        parts = [v for v in value if isinstance(v, str)]
    else:
        return []
    return [p.strip().title() for p in parts if p.strip()]


def _text(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = "; ".join(str(v).strip() for v in value if str(v).strip())
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "y")
    return bool(value)
