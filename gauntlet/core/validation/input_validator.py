"""
Input Validation Layer for Gauntlet

Purpose
-------
Validate caller-supplied identifiers and numbers before any service touches
state: player ids, dungeon ids, floor numbers, seeds and limits. Failures
raise `ValidationError` before any read or write happens.

Non-Responsibilities
--------------------
- Game-rule checks (locks, floor ordering) belong to the services.
- Static data validation belongs to the dungeon catalog.

Observability
-------------
Every validation failure is logged at debug level with field_name,
raw_value (repr) and reason.
"""

from __future__ import annotations

import re
from typing import Any, NoReturn, Optional

from gauntlet.core.logging.logger import get_logger
from gauntlet.modules.shared.exceptions import ValidationError

logger = get_logger(__name__)

MAX_IDENTIFIER_LENGTH = 128


def _raise_validation_error(field_name: str, value: Any, message: str) -> NoReturn:
    logger.debug(
        "Input validation failed",
        extra={
            "field_name": field_name,
            "raw_value": repr(value),
            "reason": message,
        },
    )
    raise ValidationError(field_name, message)


class InputValidator:
    """
    Stateless validation helpers.

    Every method returns the validated (and converted) value on success and
    raises ValidationError on failure.
    """

    # =========================================================================
    # INTEGER VALIDATION
    # =========================================================================

    @staticmethod
    def validate_integer(
        value: Any,
        field_name: str,
        min_value: Optional[int] = None,
        max_value: Optional[int] = None,
    ) -> int:
        """
        Validate and convert value to integer with optional bounds checking.

        Booleans and non-integral floats are rejected rather than coerced.
        """
        if value is None:
            _raise_validation_error(field_name, value, "Value is required")

        if isinstance(value, bool):
            _raise_validation_error(field_name, value, "Must be a whole number")

        if isinstance(value, float) and not value.is_integer():
            _raise_validation_error(
                field_name, value, f"Must be a whole number, got '{value}'"
            )

        try:
            int_value = int(value)
        except (ValueError, TypeError):
            _raise_validation_error(
                field_name,
                value,
                f"Must be a whole number, got '{value}'",
            )

        if min_value is not None and int_value < min_value:
            _raise_validation_error(
                field_name,
                int_value,
                f"Must be at least {min_value}, got {int_value}",
            )

        if max_value is not None and int_value > max_value:
            _raise_validation_error(
                field_name,
                int_value,
                f"Cannot exceed {max_value}, got {int_value}",
            )

        return int_value

    @staticmethod
    def validate_positive_integer(
        value: Any,
        field_name: str,
        max_value: Optional[int] = None,
    ) -> int:
        """Validate that value is a strictly positive integer (>= 1)."""
        return InputValidator.validate_integer(
            value, field_name, min_value=1, max_value=max_value
        )

    @staticmethod
    def validate_optional_seed(value: Any, field_name: str = "seed") -> Optional[int]:
        """Seeds may be omitted; when present they must be whole numbers."""
        if value is None:
            return None
        return InputValidator.validate_integer(value, field_name)

    # =========================================================================
    # STRING VALIDATION
    # =========================================================================

    @staticmethod
    def validate_string(
        value: Any,
        field_name: str,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
        allowed_chars: Optional[str] = None,
    ) -> str:
        """
        Validate string input with optional length and character constraints.

        Args:
            value: Value to validate (must already be a str)
            field_name: Name of field for error messages
            min_length: Minimum length after stripping
            max_length: Maximum length after stripping
            allowed_chars: Regex character class, e.g. 'a-z0-9-'
        """
        if value is None:
            _raise_validation_error(field_name, value, "Value is required")

        if not isinstance(value, str):
            _raise_validation_error(
                field_name, value, f"Must be a string, got {type(value).__name__}"
            )

        str_value = value.strip()

        if min_length is not None and len(str_value) < min_length:
            _raise_validation_error(
                field_name,
                str_value,
                f"Must be at least {min_length} characters",
            )

        if max_length is not None and len(str_value) > max_length:
            _raise_validation_error(
                field_name,
                str_value,
                f"Cannot exceed {max_length} characters",
            )

        if allowed_chars is not None:
            if not re.fullmatch(f"[{allowed_chars}]+", str_value):
                _raise_validation_error(
                    field_name,
                    str_value,
                    "Contains invalid characters",
                )

        return str_value

    @staticmethod
    def validate_identifier(value: Any, field_name: str) -> str:
        """Non-empty identifier such as a player id or dungeon id."""
        return InputValidator.validate_string(
            value,
            field_name,
            min_length=1,
            max_length=MAX_IDENTIFIER_LENGTH,
        )

    @staticmethod
    def validate_player_id(value: Any) -> str:
        return InputValidator.validate_identifier(value, "player_id")
