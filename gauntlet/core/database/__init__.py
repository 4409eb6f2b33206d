"""Async SQLAlchemy engine/session service and declarative base."""

from gauntlet.core.database.base import Base, TimestampMixin
from gauntlet.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "DatabaseService",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
