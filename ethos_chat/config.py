"""Centralized configuration for the Ethos Digital chat engine.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/ethos-chat/<VARIABLE_NAME>``.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_SSM_PREFIX = "/ethos-chat"

# ── Feature flag: running on AWS? ────────────────────────────────────
_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))


class MissingConfigurationError(OSError):
    """Raised when a required setting is absent from both env and SSM."""


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or boto3 is
    unavailable.  Errors are logged but never raised so that local-dev
    fallback still works.
    """
    try:
        import boto3  # noqa: PLC0415 — lazy import, only needed on AWS

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"{_SSM_PREFIX}/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _lookup(name: str) -> str | None:
    """Return a value from env-var or SSM, ignoring ``your_...`` placeholders."""
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if _ON_AWS:
        return _get_ssm_parameter(name)
    return None


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = _lookup(name)
    if value:
        return value

    raise MissingConfigurationError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store {_SSM_PREFIX}/{name} (AWS)."
    )


# ── Text generation ─────────────────────────────────────────────────
ANTHROPIC_API_KEY: str = _require_env("ANTHROPIC_API_KEY")
MODEL_NAME: str = os.getenv("MODEL_NAME", "claude-haiku-4-5")
GENERATION_TEMPERATURE: float = float(os.getenv("GENERATION_TEMPERATURE", "0.7"))
MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "1024"))

# ── Conversation engine ─────────────────────────────────────────────
CONTEXT_WINDOW_MESSAGES: int = int(os.getenv("CONTEXT_WINDOW_MESSAGES", "6"))
ANALYTICS_DEFAULT_DAYS: int = int(os.getenv("ANALYTICS_DEFAULT_DAYS", "30"))

# ── Calendly (optional: slot lookups are skipped without a token) ───
CALENDLY_API_TOKEN: str | None = _lookup("CALENDLY_API_TOKEN")
CALENDLY_BASE_URL: str = "https://api.calendly.com"
SCHEDULING_TIMEZONE: str = os.getenv("SCHEDULING_TIMEZONE", "Europe/London")
SLOT_LOOKAHEAD_DAYS: int = int(os.getenv("SLOT_LOOKAHEAD_DAYS", "7"))
MAX_SLOTS: int = int(os.getenv("MAX_SLOTS", "4"))

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))
CORS_ORIGINS: list[str] = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
