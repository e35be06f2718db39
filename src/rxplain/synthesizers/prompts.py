# ============================================================================
# src/rxplain/synthesizers/prompts.py
# ============================================================================
"""
Prompt templates for the knowledge collaborator.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class PromptTemplate:
    name: str
    template: str
    required_fields: List[str] = field(default_factory=list)

    def format(self, **kwargs) -> str:
        missing = [f for f in self.required_fields if f not in kwargs]
        if missing:
            raise ValueError(f"Missing required fields: {missing}")
        return self.template.format(**kwargs)


INTERACTION_TEMPLATE = PromptTemplate(
    name="interaction_check",
    required_fields=["medication_list"],
    template="""You are a clinical pharmacology assistant helping a patient understand their medications.

Assess the combined drug-drug interaction risk of taking ALL of these medications together.
The names are written as they appear on the patient's documents and may be generic names,
brand names, or short descriptions.

Medications:
{medication_list}

Rate the overall risk as exactly one of: none, low, medium, high, severe.
Explain the most important interactions in plain language a patient can follow
(max 120 words). If you cannot identify a medication, say so and use "unknown".

Return ONLY a JSON object (no other text):
{{
    "riskLevel": "none" | "low" | "medium" | "high" | "severe" | "unknown",
    "description": "plain-language explanation"
}}

JSON:""",
)


SCHEDULE_TEMPLATE = PromptTemplate(
    name="schedule_synthesis",
    required_fields=["medication_details"],
    template="""You are a clinical pharmacology assistant building a daily medication schedule for a patient.

Medications (use each name EXACTLY as written, do not add other medications):
{medication_details}

Assign every medication to one or more time-of-day slots using its frequency:
"once daily" usually Morning, "twice daily" Morning and Evening,
"three times daily" Morning, Midday and Evening, "at bedtime" Night.
Allowed slots: Morning, Midday, Evening, Night.
Use weeklyAdjustments only for medications that are not taken every day
(e.g. weekly or alternate-day dosing).

Return ONLY a JSON object (no other text):
{{
    "dailySchedule": [
        {{
            "timeOfDay": "Morning" | "Midday" | "Evening" | "Night",
            "suggestedTime": "8:00 AM",
            "withFood": true or false,
            "medications": [
                {{"name": "exact medication name", "dosage": "dose", "specialInstructions": "short instruction"}}
            ]
        }}
    ],
    "weeklyAdjustments": [
        {{"medications": ["exact medication name"], "days": ["Monday"], "description": "what changes"}}
    ],
    "specialNotes": "important notes for the patient",
    "recommendedFollowup": "when to follow up with the doctor"
}}

JSON:""",
)


def format_medication_list(names: List[str]) -> str:
    return "\n".join(f"- {name}" for name in names)
