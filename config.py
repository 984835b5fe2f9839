"""
Configuration Module
====================
Environment loading and typed access for the order API.

Values are read once at import; JWT_SECRET is read on demand so that it can
be rotated without a restart.
"""

import os
import logging
from typing import List, Optional
from pathlib import Path
from dotenv import load_dotenv


logger = logging.getLogger(__name__)


def load_environment():
    """
    Load environment variables from .env file if present.
    Safe to call multiple times.
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)
        logger.info("Loaded environment from .env file")
    else:
        logger.info("No .env file found, using system environment variables")


load_environment()


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


def _get_required_env(key: str, description: str = None) -> str:
    value = os.getenv(key)

    if not value or value.strip() == "":
        desc = f" ({description})" if description else ""
        raise ConfigurationError(
            f"Missing required environment variable: {key}{desc}"
        )

    return value.strip()


def _get_optional_env(key: str, default: str = None) -> Optional[str]:
    value = os.getenv(key, default)
    return value.strip() if value else default


def _get_int_env(key: str, default: int = None) -> Optional[int]:
    value = os.getenv(key)

    if not value:
        return default

    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid integer value for {key}: {value}"
        )


def _get_float_env(key: str, default: float = None) -> Optional[float]:
    value = os.getenv(key)

    if not value:
        return default

    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid float value for {key}: {value}"
        )


def _get_list_env(key: str, default: str = "") -> List[str]:
    value = os.getenv(key, default)
    return [part.strip() for part in value.split(",") if part.strip()]


# Database
DATABASE_URL = _get_optional_env("DATABASE_URL")
DATABASE_NAME = _get_optional_env("DATABASE_NAME")

# Auth
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = _get_int_env("JWT_EXPIRES_DAYS", 30)

# Payment stub latency, seconds
PAYMENT_DELAY_SECONDS = _get_float_env("PAYMENT_DELAY_SECONDS", 0.2)

# HTTP
CORS_ORIGINS = _get_list_env("CORS_ORIGINS", "*")
PORT = _get_int_env("PORT", 8000)


def get_jwt_secret() -> str:
    """
    Secret used to sign and verify bearer tokens.

    Raises:
        ConfigurationError: If JWT_SECRET is not set
    """
    return _get_required_env("JWT_SECRET", "token signing secret")


def validate_configuration():
    """
    Fail fast on settings the service cannot run without.

    Raises:
        ConfigurationError: If a required variable is missing
    """
    get_jwt_secret()

    if not (DATABASE_URL and DATABASE_NAME):
        logger.warning("DATABASE_URL/DATABASE_NAME not set, database disabled")

    logger.info(
        "Configuration validated (payment_delay=%ss, token_days=%s)",
        PAYMENT_DELAY_SECONDS,
        JWT_EXPIRES_DAYS,
    )
