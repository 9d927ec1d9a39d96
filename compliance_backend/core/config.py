from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_API_BASE = "https://api.dify.ai/v1"
DEFAULT_USER_ID = "user-123"


def _env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(slots=True)
class Settings:
    """Deployment settings read from the process environment."""

    api_base: str = DEFAULT_API_BASE
    upload_credential: str = ""
    workflow_credential: str = ""
    user_id: str = DEFAULT_USER_ID
    workflow_input: str = "file"
    timeout: float = 120.0
    max_concurrent_executions: int = 0
    cors_origins: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "Settings":
        origins_env = _env("API_CORS_ORIGINS", "") or ""
        origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
        if not origins:
            origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

        return cls(
            api_base=_env("DIFY_API_BASE", DEFAULT_API_BASE) or DEFAULT_API_BASE,
            upload_credential=_env("DIFY_API_KEY", "") or "",
            workflow_credential=_env("DIFY_WORKFLOW_API_KEY", "") or "",
            user_id=_env("DIFY_USER_ID", DEFAULT_USER_ID) or DEFAULT_USER_ID,
            workflow_input=_env("DIFY_WORKFLOW_INPUT", "file") or "file",
            timeout=_env_float("DIFY_TIMEOUT", 120.0),
            max_concurrent_executions=max(_env_int("MAX_CONCURRENT_EXECUTIONS", 0), 0),
            cors_origins=origins,
        )
