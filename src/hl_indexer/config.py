"""
Global configuration for the indexer.

Environment-specific settings read once at import. Outside the test
environment a `.env` file in the working directory is loaded first, so
these can be set there as well. Variables already set take precedence.
"""

import os

from dotenv import load_dotenv

if os.environ.get("HL_ENV", "").lower() != "test":
    load_dotenv()

_SUPPORTED_HL_ENVS: list[str] = ["prod", "test"]

HL_ENV = os.environ.get("HL_ENV", "prod").lower()
"""The environment flag ('prod' or 'test'). Defaults to 'prod'."""

if HL_ENV not in _SUPPORTED_HL_ENVS:
    raise ValueError(
        f"Invalid HL_ENV environment variable: '{HL_ENV}'. "
        f"Supported values: {_SUPPORTED_HL_ENVS}"
    )

DATABASE_PATH = os.environ.get("DATABASE_PATH", "./data/hyperliquid.json")
"""Snapshot location. `.db`/`.sqlite` paths use SQLite, anything else JSON."""


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {name} environment variable: '{raw}' is not an integer"
        ) from None
    if value <= 0:
        raise ValueError(f"Invalid {name} environment variable: must be positive, got {value}")
    return value


INDEX_INTERVAL_MS = _int_env("INDEX_INTERVAL_MS", 10_000)
"""Pause between sync cycles in milliseconds."""

API_PORT = _int_env("API_PORT", 3000)
"""Port of the HTTP API."""
