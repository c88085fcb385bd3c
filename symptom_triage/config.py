from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_int(name: str, default: int, *, min_value: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    if parsed < min_value:
        return default
    return parsed


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip()
    return value if value else default


def _env_csv(name: str, default: list[str] | None = None) -> list[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default or [])
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class TriageConfig:
    log_level: str = "INFO"
    rules_path: str = ""
    max_symptoms_length: int = 4000
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:8080", "http://127.0.0.1:8080"]
    )

    @classmethod
    def from_env(cls) -> "TriageConfig":
        cfg = cls()
        cfg.log_level = _env_str("TRIAGE_LOG_LEVEL", cfg.log_level).upper()
        cfg.rules_path = _env_str("TRIAGE_RULES_PATH", cfg.rules_path)
        cfg.max_symptoms_length = _env_int(
            "TRIAGE_MAX_SYMPTOMS_LENGTH",
            cfg.max_symptoms_length,
            min_value=1,
        )
        cfg.cors_origins = _env_csv("TRIAGE_API_CORS_ORIGINS", cfg.cors_origins) or cfg.cors_origins
        return cfg
