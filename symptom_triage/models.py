from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal, Optional


class UrgencyLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    EMERGENCY = "Emergency"


URGENCY_RANK = {
    UrgencyLevel.LOW: 1,
    UrgencyLevel.MEDIUM: 2,
    UrgencyLevel.HIGH: 3,
    UrgencyLevel.EMERGENCY: 4,
}

MIN_URGENCY_SCORE = 0
MAX_URGENCY_SCORE = 10

Sex = Literal["male", "female", "other"]


def urgency_level_for_score(score: int) -> UrgencyLevel:
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValueError(f"Urgency score must be an integer, got {score!r}.")
    if score < MIN_URGENCY_SCORE or score > MAX_URGENCY_SCORE:
        raise ValueError(
            f"Urgency score must be between {MIN_URGENCY_SCORE} and {MAX_URGENCY_SCORE}, got {score}."
        )
    if score <= 3:
        return UrgencyLevel.LOW
    if score <= 6:
        return UrgencyLevel.MEDIUM
    if score <= 9:
        return UrgencyLevel.HIGH
    return UrgencyLevel.EMERGENCY


def urgency_rank(value: UrgencyLevel | str) -> int:
    level = value if isinstance(value, UrgencyLevel) else UrgencyLevel(value)
    return URGENCY_RANK[level]


@dataclass(frozen=True)
class UserProfile:
    age: Optional[int] = None
    sex: Optional[Sex] = None


@dataclass(frozen=True)
class SymptomQuery:
    symptoms: str
    user_profile: Optional[UserProfile] = None


@dataclass(frozen=True)
class ConditionMatch:
    condition: str
    probability: float
    description: str
    common_symptoms: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReportSection:
    heading: str
    content: str


@dataclass
class TriageReport:
    title: str
    summary: str
    sections: list[ReportSection] = field(default_factory=list)


@dataclass
class TriageResult:
    request_id: str
    timestamp: datetime
    primary_diagnosis: str
    urgency_score: int
    urgency_level: UrgencyLevel
    triage_advice: str
    potential_conditions: list[ConditionMatch]
    report: TriageReport
    disclaimer: str
    rule_name: str = ""

    @property
    def top_condition(self) -> ConditionMatch | None:
        if not self.potential_conditions:
            return None
        return self.potential_conditions[0]
