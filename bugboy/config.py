"""
Runtime configuration, read from environment variables.

Every knob has a demo-friendly default so `uvicorn bugboy.main:app` works
with no environment at all. Tests build a Settings directly instead of
touching the environment.
"""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass
class Settings:
    # Error capture collaborator
    capture_enabled: bool = True
    capture_api_key: str = "bugstack_dev_key_123"
    capture_endpoint: str = "http://localhost:3001/api/capture"
    capture_project_id: str | None = "bugboy"

    # Fault injection for the mock store and services
    drop_rate: float = 0.0
    min_delay: float = 0.05   # seconds
    max_delay: float = 0.08   # seconds
    payment_decline_rate: float = 0.1

    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            capture_enabled=_env_bool("BUGSTACK_ENABLED", True),
            capture_api_key=os.getenv("BUGSTACK_API_KEY", "bugstack_dev_key_123"),
            capture_endpoint=os.getenv("ERROR_SERVICE_URL", "http://localhost:3001/api/capture"),
            capture_project_id=os.getenv("BUGSTACK_PROJECT_ID", "bugboy"),
            drop_rate=_env_float("MOCK_DROP_RATE", 0.0),
            min_delay=_env_float("MOCK_MIN_DELAY_MS", 50) / 1000,
            max_delay=_env_float("MOCK_MAX_DELAY_MS", 80) / 1000,
            payment_decline_rate=_env_float("PAYMENT_DECLINE_RATE", 0.1),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
        )
