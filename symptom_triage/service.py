from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import TriageConfig
from .engine import TriageEngine
from .exceptions import InternalError, InvalidInputError, TriageError
from .models import SymptomQuery, TriageResult, UserProfile
from .observability import format_log_fields, result_log_fields
from .rules import DEFAULT_RULES, load_rules

logger = logging.getLogger(__name__)


@dataclass
class TriageService:
    engine: TriageEngine
    config: TriageConfig = field(default_factory=TriageConfig)
    rules_label: str = "builtin"

    def analyze(self, symptoms: str | None, user_profile: UserProfile | None = None) -> TriageResult:
        if isinstance(symptoms, str) and len(symptoms) > self.config.max_symptoms_length:
            raise InvalidInputError(
                f"Symptom description must be at most {self.config.max_symptoms_length} characters."
            )
        query = SymptomQuery(symptoms=symptoms, user_profile=user_profile)
        try:
            result = self.engine.analyze(query)
        except TriageError:
            raise
        except Exception as exc:
            logger.exception("Triage analysis failed unexpectedly (rules=%s)", self.rules_label)
            raise InternalError("An unexpected error occurred during symptom analysis.") from exc

        logger.info(
            "Triage %s",
            format_log_fields(result_log_fields(result, input_chars=len(symptoms))),
        )
        return result


def build_service(config: TriageConfig) -> TriageService:
    rules = DEFAULT_RULES
    label = "builtin"
    if config.rules_path:
        try:
            rules = load_rules(config.rules_path)
            label = f"file:{config.rules_path}"
        except (OSError, ValueError) as exc:
            logger.warning(
                "Failed to load triage rules from %s; using built-in rules. %s",
                config.rules_path,
                exc,
            )
    return TriageService(engine=TriageEngine(rules=rules), config=config, rules_label=label)
