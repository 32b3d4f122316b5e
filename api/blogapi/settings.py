"""Centralized environment-driven settings.

Keep this module lightweight: no app imports, to avoid circular deps.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# "development" exposes error details in 500 responses.
APP_ENV: str = os.getenv("APP_ENV", "production").strip().lower()

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Pagination for GET /posts. The max is a hard ceiling of 100 regardless of env.
POSTS_HARD_MAX_PAGE_LIMIT = 100
POSTS_MAX_PAGE_LIMIT: int = max(1, min(_int_env("POSTS_MAX_PAGE_LIMIT", 100), POSTS_HARD_MAX_PAGE_LIMIT))
POSTS_DEFAULT_PAGE_LIMIT: int = max(1, min(_int_env("POSTS_DEFAULT_PAGE_LIMIT", 10), POSTS_MAX_PAGE_LIMIT))

# Applied per connection: statement_timeout on PostgreSQL, busy timeout on SQLite.
DB_STATEMENT_TIMEOUT_MS: int = _int_env("DB_STATEMENT_TIMEOUT_MS", 5000)

RUN_MIGRATIONS_ON_STARTUP: bool = _bool_env("RUN_MIGRATIONS_ON_STARTUP", True)

CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost").split(",")
    if origin.strip()
]


def is_development() -> bool:
    return APP_ENV == "development"
