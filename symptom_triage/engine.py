from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence
from uuid import uuid4

from .exceptions import InvalidInputError
from .models import SymptomQuery, TriageResult
from .report import DISCLAIMER, build_report
from .rules import DEFAULT_RULES, FALLBACK_RULE, TriageRule


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_request_id() -> str:
    return str(uuid4())


@dataclass
class TriageEngine:
    """Deterministic first-match rule engine over free-text symptoms."""

    rules: Sequence[TriageRule] = DEFAULT_RULES
    fallback: TriageRule = FALLBACK_RULE
    clock: Callable[[], datetime] = field(default=_utc_now, repr=False)
    id_factory: Callable[[], str] = field(default=_new_request_id, repr=False)

    def __post_init__(self) -> None:
        self.rules = tuple(self.rules)
        for rule in self.rules:
            if rule.is_catch_all:
                raise ValueError(
                    f"Rule {rule.name!r} has no required terms; only the fallback may match everything."
                )

    def analyze(self, query: SymptomQuery) -> TriageResult:
        symptoms = query.symptoms
        if not isinstance(symptoms, str) or not symptoms.strip():
            raise InvalidInputError("Symptom description is required.")

        rule = self.classify(symptoms)
        conditions = list(rule.conditions)
        report = build_report(
            symptoms=symptoms,
            urgency_level=rule.urgency_level,
            primary_diagnosis=rule.primary_diagnosis,
            triage_advice=rule.triage_advice,
            conditions=conditions,
        )
        return TriageResult(
            request_id=self.id_factory(),
            timestamp=self.clock(),
            primary_diagnosis=rule.primary_diagnosis,
            urgency_score=rule.urgency_score,
            urgency_level=rule.urgency_level,
            triage_advice=rule.triage_advice,
            potential_conditions=conditions,
            report=report,
            disclaimer=DISCLAIMER,
            rule_name=rule.name,
        )

    def classify(self, symptoms: str) -> TriageRule:
        normalized = symptoms.lower()
        for rule in self.rules:
            if rule.matches(normalized):
                return rule
        return self.fallback


_default_engine = TriageEngine()


def analyze(query: SymptomQuery) -> TriageResult:
    return _default_engine.analyze(query)
