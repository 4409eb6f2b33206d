"""
Domain exceptions for the Gauntlet encounter core.

Purpose
-------
Define the structured, domain-specific exception hierarchy raised by the
combat, dungeon and arena services. The request layer translates these into
client-visible failure responses.

Compliance
----------
- Domain exceptions only (game rules, precondition failures, player-facing errors)
- Clear base class (`GauntletDomainException`) with serializable metadata
- Severity levels for logging and alerting decisions
- Retry hints and stable error codes for programmatic handling
- Every exception here is raised *before* any state mutation or store write

Design Notes
------------
- All domain exceptions inherit from `GauntletDomainException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict-like)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
- None of the precondition failures are retryable: they are deterministic,
  not transient faults.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"  # Expected, not concerning
    INFO = "info"  # Normal operation (e.g., precondition failures)
    WARNING = "warning"  # Concerning but handled
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"  # System-level failures


class GauntletDomainException(Exception):
    """
    Base exception for all Gauntlet domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling

    Example:
        >>> raise GauntletDomainException(
        ...     "Run failed",
        ...     {"reason": "boss phase missing"}
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


class ValidationError(GauntletDomainException):
    """
    Raised when caller input fails validation.

    Args:
        field: Name of the field that failed validation
        message: Explanation of why validation failed
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )


class LockedError(GauntletDomainException):
    """
    Raised when a dungeon or floor unlock requirement is unmet.

    Args:
        target: What is locked (e.g. "dungeon", "floor")
        identifier: Id of the locked dungeon or floor number
        reason: Which requirement failed
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, target: str, identifier: Any, reason: str) -> None:
        self.target = target
        self.identifier = identifier
        self.reason = reason
        super().__init__(
            f"{target.capitalize()} '{identifier}' is locked: {reason}",
            details={"target": target, "identifier": identifier, "reason": reason},
            error_code=f"{target.upper()}_LOCKED",
        )


class SequenceError(GauntletDomainException):
    """
    Raised when a floor is attempted out of order or without an active run.

    Args:
        action: Operation that was attempted
        reason: Why the sequence is invalid
        expected_floor: Current objective floor, when a run exists
        requested_floor: Floor the caller asked for
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(
        self,
        action: str,
        reason: str,
        expected_floor: Optional[int] = None,
        requested_floor: Optional[int] = None,
    ) -> None:
        self.action = action
        self.reason = reason
        self.expected_floor = expected_floor
        self.requested_floor = requested_floor
        super().__init__(
            f"Invalid sequence for '{action}': {reason}",
            details={
                "action": action,
                "reason": reason,
                "expected_floor": expected_floor,
                "requested_floor": requested_floor,
            },
            error_code="SEQUENCE_VIOLATION",
        )


class UnknownDefinitionError(GauntletDomainException):
    """
    Raised when a dungeon, floor or enemy template id is not defined.

    Args:
        definition_type: Kind of definition (e.g. "Dungeon", "Floor")
        identifier: The unknown identifier
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, definition_type: str, identifier: Any) -> None:
        self.definition_type = definition_type
        self.identifier = identifier
        super().__init__(
            f"Unknown {definition_type.lower()}: {identifier}",
            details={"definition_type": definition_type, "identifier": identifier},
            error_code=f"UNKNOWN_{definition_type.upper().replace(' ', '_')}",
        )


class DefinitionError(GauntletDomainException):
    """
    Raised when static encounter data is malformed.

    Boss floors without phases and combat floors without an enemy are
    rejected when the catalog is built, never mid-run.
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR

    def __init__(self, definition_id: str, reason: str) -> None:
        self.definition_id = definition_id
        self.reason = reason
        super().__init__(
            f"Malformed definition '{definition_id}': {reason}",
            details={"definition_id": definition_id, "reason": reason},
            error_code="DEFINITION_INVALID",
        )

