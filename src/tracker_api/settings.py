from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_TOKEN_SECRET = "dev-secret-change-me"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'mongo'
    - MONGODB_URI: connection string. Default 'mongodb://localhost:27017'
    - MONGODB_DATABASE: database name. Default 'task_tracker'
    - TOKEN_SECRET: secret used to sign access tokens
    - TOKEN_TTL_DAYS: lifetime of issued tokens in days (default: 7)
    - ARGON2_TIME_COST / ARGON2_MEMORY_COST: optional password hashing cost overrides
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - API_PREFIX: path prefix for the auth and task routes (default: none)
    - LOG_LEVEL: logging level name (default: INFO)
    """

    persistence_backend: str = "memory"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "task_tracker"
    token_secret: str = DEFAULT_TOKEN_SECRET
    token_ttl_days: int = 7
    argon2_time_cost: Optional[int] = None
    argon2_memory_cost: Optional[int] = None
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    api_prefix: str = ""
    log_level: str = "INFO"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: Optional[str], default: Optional[int]) -> Optional[int]:
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _parse_prefix(value: str) -> str:
    prefix = value.strip().rstrip("/")
    if prefix and not prefix.startswith("/"):
        prefix = "/" + prefix
    return prefix


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "mongo"}:
        # Fallback to memory if unsupported
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        mongodb_uri=_get_env("MONGODB_URI", "mongodb://localhost:27017").strip(),
        mongodb_database=_get_env("MONGODB_DATABASE", "task_tracker").strip(),
        token_secret=_get_env("TOKEN_SECRET", DEFAULT_TOKEN_SECRET),
        token_ttl_days=_parse_int(os.getenv("TOKEN_TTL_DAYS"), 7) or 7,
        argon2_time_cost=_parse_int(os.getenv("ARGON2_TIME_COST"), None),
        argon2_memory_cost=_parse_int(os.getenv("ARGON2_MEMORY_COST"), None),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        api_prefix=_parse_prefix(_get_env("API_PREFIX", "")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
