from .config import TriageConfig
from .engine import TriageEngine, analyze
from .exceptions import InternalError, InvalidInputError, TriageError
from .models import (
    ConditionMatch,
    ReportSection,
    SymptomQuery,
    TriageReport,
    TriageResult,
    UrgencyLevel,
    UserProfile,
    urgency_level_for_score,
)
from .rules import DEFAULT_RULES, FALLBACK_RULE, TriageRule, load_rules
from .service import TriageService, build_service

__all__ = [
    "analyze",
    "build_service",
    "load_rules",
    "urgency_level_for_score",
    "ConditionMatch",
    "DEFAULT_RULES",
    "FALLBACK_RULE",
    "InternalError",
    "InvalidInputError",
    "ReportSection",
    "SymptomQuery",
    "TriageConfig",
    "TriageEngine",
    "TriageError",
    "TriageReport",
    "TriageResult",
    "TriageRule",
    "TriageService",
    "UrgencyLevel",
    "UserProfile",
]
