from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .models import (
    MAX_URGENCY_SCORE,
    MIN_URGENCY_SCORE,
    ConditionMatch,
    UrgencyLevel,
    urgency_level_for_score,
    urgency_rank,
)


@dataclass(frozen=True)
class TriageRule:
    """Ordered classification rule: every required term must appear in the input."""

    name: str
    required_terms: tuple[str, ...]
    primary_diagnosis: str
    urgency_score: int
    urgency_level: UrgencyLevel
    triage_advice: str
    conditions: tuple[ConditionMatch, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Rule name must not be empty.")
        if any(not term.strip() for term in self.required_terms):
            raise ValueError(f"Rule {self.name!r} has a blank required term.")
        if any(term != term.lower() for term in self.required_terms):
            raise ValueError(f"Rule {self.name!r} terms must be lowercase.")
        expected = urgency_level_for_score(self.urgency_score)
        if urgency_rank(self.urgency_level) != urgency_rank(expected):
            raise ValueError(
                f"Rule {self.name!r} declares {self.urgency_level} but score "
                f"{self.urgency_score} maps to {expected.value}."
            )
        for item in self.conditions:
            if not 0.0 <= item.probability <= 1.0:
                raise ValueError(
                    f"Rule {self.name!r} condition {item.condition!r} has probability "
                    f"{item.probability} outside [0, 1]."
                )

    @property
    def is_catch_all(self) -> bool:
        return not self.required_terms

    def matches(self, normalized: str) -> bool:
        return all(term in normalized for term in self.required_terms)


CARDIAC_EMERGENCY_RULE = TriageRule(
    name="cardiac-emergency",
    required_terms=("chest pain", "shortness of breath"),
    primary_diagnosis="Potential Cardiac Event",
    urgency_score=10,
    urgency_level=UrgencyLevel.EMERGENCY,
    triage_advice=(
        "This could be a medical emergency. Please call emergency services (e.g., 911) "
        "immediately. Do not attempt to drive yourself to the hospital."
    ),
    conditions=(
        ConditionMatch(
            condition="Myocardial Infarction (Heart Attack)",
            probability=0.8,
            description="A blockage of blood flow to the heart muscle.",
            common_symptoms=(
                "chest pain or pressure",
                "shortness of breath",
                "pain in left arm",
                "sweating",
            ),
        ),
        ConditionMatch(
            condition="Pulmonary Embolism",
            probability=0.15,
            description="A blood clot that travels to the lungs.",
            common_symptoms=(
                "sharp chest pain",
                "shortness of breath",
                "rapid heart rate",
                "coughing up blood",
            ),
        ),
        ConditionMatch(
            condition="Panic Attack",
            probability=0.05,
            description=(
                "A sudden episode of intense fear that triggers severe physical reactions "
                "when there is no real danger."
            ),
            common_symptoms=(
                "racing heart",
                "sweating",
                "trembling",
                "feeling of impending doom",
            ),
        ),
    ),
)

VIRAL_INFECTION_RULE = TriageRule(
    name="viral-infection",
    required_terms=("headache", "fever"),
    primary_diagnosis="Possible Influenza or Viral Infection",
    urgency_score=5,
    urgency_level=UrgencyLevel.MEDIUM,
    triage_advice=(
        "Rest, hydrate, and monitor symptoms. Consider consulting a doctor if symptoms "
        "worsen or persist for more than 3 days."
    ),
    conditions=(
        ConditionMatch(
            condition="Influenza",
            probability=0.7,
            description="A common viral infection that can be deadly, especially in high-risk groups.",
            common_symptoms=("fever", "chills", "muscle aches", "cough", "sore throat"),
        ),
        ConditionMatch(
            condition="Common Cold",
            probability=0.2,
            description="A mild viral infection of the nose and throat.",
            common_symptoms=("runny nose", "sneezing", "sore throat"),
        ),
        ConditionMatch(
            condition="Meningitis",
            probability=0.05,
            description=(
                "A serious infection of the membranes covering the brain and spinal cord. "
                "Requires immediate medical attention."
            ),
            common_symptoms=(
                "stiff neck",
                "severe headache",
                "sensitivity to light",
                "confusion",
            ),
        ),
    ),
)

FALLBACK_RULE = TriageRule(
    name="general-malaise",
    required_terms=(),
    primary_diagnosis="General Malaise",
    urgency_score=2,
    urgency_level=UrgencyLevel.LOW,
    triage_advice=(
        "Your symptoms are non-specific. Monitor your condition and consult a healthcare "
        "professional if you feel worse."
    ),
    conditions=(
        ConditionMatch(
            condition="General Fatigue",
            probability=0.6,
            description="A feeling of tiredness or lack of energy.",
            common_symptoms=("weariness", "sleepiness", "low energy"),
        ),
        ConditionMatch(
            condition="Dehydration",
            probability=0.3,
            description="Occurs when you use or lose more fluid than you take in.",
            common_symptoms=("thirst", "dark urine", "dizziness"),
        ),
    ),
)

# Highest priority first; evaluation stops at the first match.
DEFAULT_RULES: tuple[TriageRule, ...] = (
    CARDIAC_EMERGENCY_RULE,
    VIRAL_INFECTION_RULE,
)


def load_rules(path: str | Path) -> tuple[TriageRule, ...]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Rule file {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, list) or not data:
        raise ValueError(f"Rule file {path} must contain a non-empty list of rules.")

    rules = tuple(_rule_from_dict(item, index) for index, item in enumerate(data))
    names = [rule.name for rule in rules]
    if len(set(names)) != len(names):
        raise ValueError(f"Rule file {path} contains duplicate rule names.")
    return rules


def _rule_from_dict(item: Any, index: int) -> TriageRule:
    if not isinstance(item, dict):
        raise ValueError(f"Rule #{index} must be an object.")
    try:
        name = str(item["name"]).strip()
        raw_terms = item["required_terms"]
        score = item["urgency_score"]
        diagnosis = str(item["primary_diagnosis"])
        advice = str(item["triage_advice"])
        raw_conditions = item.get("conditions", [])
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Rule #{index} is missing a required field: {exc}") from exc

    if not isinstance(raw_terms, list):
        raise ValueError(f"Rule {name!r} required_terms must be a list.")
    terms = tuple(str(term).strip().lower() for term in raw_terms)
    if not terms:
        raise ValueError(f"Rule {name!r} must list at least one required term.")
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValueError(f"Rule {name!r} urgency_score must be an integer.")
    if score < MIN_URGENCY_SCORE or score > MAX_URGENCY_SCORE:
        raise ValueError(f"Rule {name!r} urgency_score {score} is out of range.")

    level_raw = item.get("urgency_level")
    try:
        level = UrgencyLevel(level_raw) if level_raw else urgency_level_for_score(score)
    except ValueError as exc:
        raise ValueError(f"Rule {name!r} has unknown urgency_level {level_raw!r}.") from exc

    if not isinstance(raw_conditions, list):
        raise ValueError(f"Rule {name!r} conditions must be a list.")
    conditions = []
    for entry in raw_conditions:
        if not isinstance(entry, dict) or not isinstance(entry.get("common_symptoms", []), list):
            raise ValueError(f"Rule {name!r} has a malformed condition: {entry!r}")
        try:
            conditions.append(
                ConditionMatch(
                    condition=str(entry["condition"]),
                    probability=float(entry["probability"]),
                    description=str(entry.get("description", "")),
                    common_symptoms=tuple(str(s) for s in entry.get("common_symptoms", [])),
                )
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ValueError(f"Rule {name!r} has a malformed condition: {exc}") from exc

    return TriageRule(
        name=name,
        required_terms=terms,
        primary_diagnosis=diagnosis,
        urgency_score=score,
        urgency_level=level,
        triage_advice=advice,
        conditions=tuple(conditions),
    )
