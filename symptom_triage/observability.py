from __future__ import annotations

import logging

from .models import TriageResult

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def result_log_fields(result: TriageResult, *, input_chars: int) -> dict[str, object]:
    """Fields safe to log for one analysis; the symptom text itself is never included."""
    top = result.top_condition
    return {
        "request_id": result.request_id,
        "rule": result.rule_name,
        "urgency": result.urgency_level.value,
        "score": result.urgency_score,
        "top_condition": top.condition if top else "none",
        "chars": input_chars,
    }


def format_log_fields(fields: dict[str, object]) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items())
