"""
Static configuration for Gauntlet.

Purpose
-------
Centralized static configuration loaded from environment variables with
sensible defaults. Values here are fixed at process start; tunable game
balance lives in YAML and is served by `ConfigManager`.

Responsibilities
----------------
- Load configuration from environment variables with .env support
- Provide typed access to static configuration values
- Resolve directory paths relative to the project root

Non-Responsibilities
--------------------
- Game-balance values (handled by ConfigManager)
- Secrets management (use environment variables)

Environment Variables
---------------------
- ENVIRONMENT: development | testing | staging | production (default: development)
- LOG_LEVEL: logging level name (default: INFO)
- LOG_JSON: force JSON console logs (default: production only)
- LOG_COLORS: colored console logs in development (default: true)
- LOG_TO_FILE: enable the daily rotating JSON file (default: false)
- LOGS_DIR: directory for log files (default: ./logs)
- DATABASE_URL: SQLAlchemy async URL for the database state store
- DATABASE_ECHO: echo SQL statements (default: false)
- REDIS_URL: redis URL for the redis state store (default: redis://localhost:6379/0)
- CONFIG_DIR: extra directory of YAML overrides merged over packaged defaults
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse environment string safely with fallback.

        >>> Environment.from_string("production") == Environment.PRODUCTION
        True
        """
        try:
            return cls(value.lower())
        except ValueError:
            # Structured logger is not initialized yet during bootstrap.
            logging.warning(
                f"Unknown environment '{value}', defaulting to development"
            )
            return cls.DEVELOPMENT


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_optional_bool(key: str) -> Optional[bool]:
    raw = os.getenv(key)
    if raw is None:
        return None
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """
    Centralized static configuration.

    Class attributes only; never instantiated. Call `Config.reload()` after
    changing environment variables (tests do this).
    """

    ENVIRONMENT: Environment = Environment.from_string(
        os.getenv("ENVIRONMENT", "development")
    )

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_JSON: Optional[bool] = _env_optional_bool("LOG_JSON")
    LOG_COLORS: bool = _env_bool("LOG_COLORS", True)
    LOG_TO_FILE: bool = _env_bool("LOG_TO_FILE", False)
    LOGS_DIR: Path = Path(os.getenv("LOGS_DIR", str(PROJECT_ROOT / "logs")))

    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DATABASE_ECHO: bool = _env_bool("DATABASE_ECHO", False)

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    CONFIG_DIR: Optional[Path] = (
        Path(os.environ["CONFIG_DIR"]) if os.getenv("CONFIG_DIR") else None
    )

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING

    @classmethod
    def reload(cls) -> None:
        """Re-read every value from the current environment."""
        cls.ENVIRONMENT = Environment.from_string(
            os.getenv("ENVIRONMENT", "development")
        )
        cls.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        cls.LOG_JSON = _env_optional_bool("LOG_JSON")
        cls.LOG_COLORS = _env_bool("LOG_COLORS", True)
        cls.LOG_TO_FILE = _env_bool("LOG_TO_FILE", False)
        cls.LOGS_DIR = Path(os.getenv("LOGS_DIR", str(PROJECT_ROOT / "logs")))
        cls.DATABASE_URL = os.getenv("DATABASE_URL")
        cls.DATABASE_ECHO = _env_bool("DATABASE_ECHO", False)
        cls.REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        cls.CONFIG_DIR = (
            Path(os.environ["CONFIG_DIR"]) if os.getenv("CONFIG_DIR") else None
        )
