"""
tokenvest Configuration

All settings are read from environment variables at import time with
development-friendly defaults. Production deployments are expected to set
TOKENVEST_ENVIRONMENT=production and an explicit engine address.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Environment(Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


DEFAULT_ENGINE_ADDRESS = "0x" + "7e57" * 10


def _get_int(env_var: str, default: int) -> int:
    """Read an integer setting, raising ConfigurationError if malformed."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{env_var} must be an integer, got {raw!r}",
            details={"env_var": env_var},
        ) from exc


def _get_environment() -> Environment:
    raw = os.getenv("TOKENVEST_ENVIRONMENT", Environment.DEVELOPMENT.value).strip().lower()
    try:
        return Environment(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"TOKENVEST_ENVIRONMENT must be one of "
            f"{', '.join(e.value for e in Environment)}, got {raw!r}"
        ) from exc


ENVIRONMENT = _get_environment()

LOG_LEVEL = os.getenv("TOKENVEST_LOG_LEVEL", "WARNING").strip().upper()
LOG_FILE = os.getenv("TOKENVEST_LOG_FILE", "").strip() or None

DB_PATH = Path(
    os.getenv("TOKENVEST_DB_PATH", str(Path.home() / ".tokenvest" / "state.db"))
).expanduser()

ENGINE_ADDRESS = os.getenv("TOKENVEST_ENGINE_ADDRESS", "").strip().lower()
if not ENGINE_ADDRESS:
    if ENVIRONMENT is Environment.PRODUCTION:
        raise ConfigurationError(
            "TOKENVEST_ENGINE_ADDRESS environment variable required in production"
        )
    ENGINE_ADDRESS = DEFAULT_ENGINE_ADDRESS
    logger.debug(
        "TOKENVEST_ENGINE_ADDRESS not set, using development default",
        extra={"event": "config.default_engine_address"},
    )

TOKEN_NAME = os.getenv("TOKENVEST_TOKEN_NAME", "Vesting Token")
TOKEN_SYMBOL = os.getenv("TOKENVEST_TOKEN_SYMBOL", "VEST")
TOKEN_DECIMALS = _get_int("TOKENVEST_TOKEN_DECIMALS", 18)
if not 0 <= TOKEN_DECIMALS <= 18:
    raise ConfigurationError("TOKENVEST_TOKEN_DECIMALS must be between 0 and 18")
