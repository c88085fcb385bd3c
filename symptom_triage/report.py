from __future__ import annotations

import math
from typing import Sequence

from .models import ConditionMatch, ReportSection, TriageReport, UrgencyLevel

DISCLAIMER = (
    "This is an AI-generated analysis and not a substitute for professional medical advice. "
    "Please consult a doctor for any health concerns."
)

CONDITIONS_HEADING = "Potential Conditions"
SYMPTOM_REVIEW_HEADING = "Detailed Symptom Review"


def probability_percent(probability: float) -> int:
    # Halves round up, matching how the client formats percentages.
    return int(math.floor(probability * 100 + 0.5))


def format_conditions(conditions: Sequence[ConditionMatch]) -> str:
    return "\n".join(
        f"- {item.condition} ({probability_percent(item.probability)}% probability)"
        for item in conditions
    )


def format_symptom_review(symptoms: str) -> str:
    # Echoes the raw words only; no symptom extraction happens here.
    return "The AI analyzed the following key symptoms: " + ", ".join(symptoms.split())


def build_report(
    *,
    symptoms: str,
    urgency_level: UrgencyLevel,
    primary_diagnosis: str,
    triage_advice: str,
    conditions: Sequence[ConditionMatch],
) -> TriageReport:
    """Render the structured report shown to the user.

    ``symptoms`` is the caller's original text, not the normalized form used
    for matching.
    """
    return TriageReport(
        title=f'AI Health Analysis for: "{symptoms}"',
        summary=(
            "Based on the reported symptoms, the primary assessment is a "
            f"**{urgency_level.value}** urgency for **{primary_diagnosis}**. {triage_advice}"
        ),
        sections=[
            ReportSection(heading=CONDITIONS_HEADING, content=format_conditions(conditions)),
            ReportSection(heading=SYMPTOM_REVIEW_HEADING, content=format_symptom_review(symptoms)),
        ],
    )
