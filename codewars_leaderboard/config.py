"""Configuration helpers for the Codewars leaderboard."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

# Load environment variables early so downstream modules can rely on them.
# .env is searched upward from the working directory.
load_dotenv(find_dotenv(usecwd=True), override=False)

API_BASE_ENV = "CODEWARS_API_BASE"
MAX_WORKERS_ENV = "FETCH_MAX_WORKERS"
TIMEOUT_ENV = "FETCH_TIMEOUT_SECONDS"
LOG_DIR_ENV = "LEADERBOARD_LOG_DIR"

DEFAULT_API_BASE = "https://www.codewars.com/api/v1/users"
DEFAULT_MAX_WORKERS = 10
DEFAULT_LOG_DIR = Path("logs")


@dataclass(frozen=True)
class FetchSettings:
    """Runtime configuration for user lookups against the ranking API."""

    api_base: str
    max_workers: int
    timeout: Optional[float] = None


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def get_fetch_settings() -> FetchSettings:
    """Resolve lookup configuration from environment with sensible defaults."""

    api_base = _get_env(API_BASE_ENV, DEFAULT_API_BASE).rstrip("/")
    if not api_base.startswith(("http://", "https://")):
        raise RuntimeError(
            f"{API_BASE_ENV} must be an http(s) URL; received '{api_base}'."
        )

    raw_workers = _get_env(MAX_WORKERS_ENV)
    try:
        max_workers = int(raw_workers) if raw_workers is not None else DEFAULT_MAX_WORKERS
    except ValueError as exc:
        raise RuntimeError(
            f"{MAX_WORKERS_ENV} must be an integer; received '{raw_workers}'."
        ) from exc
    if max_workers < 1:
        raise RuntimeError(f"{MAX_WORKERS_ENV} must be at least 1; received {max_workers}.")

    raw_timeout = _get_env(TIMEOUT_ENV)
    try:
        timeout = float(raw_timeout) if raw_timeout is not None else None
    except ValueError as exc:
        raise RuntimeError(
            f"{TIMEOUT_ENV} must be a number of seconds; received '{raw_timeout}'."
        ) from exc

    return FetchSettings(api_base=api_base, max_workers=max_workers, timeout=timeout)


def get_log_dir() -> Path:
    """Resolve the directory shared by the CLI and API log files."""

    raw_path = _get_env(LOG_DIR_ENV, str(DEFAULT_LOG_DIR))
    return Path(raw_path).expanduser().resolve()
