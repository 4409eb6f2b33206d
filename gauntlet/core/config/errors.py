"""
Configuration error hierarchy for Gauntlet.

Exception Hierarchy
-------------------
ConfigError (base)
├── ConfigValidationError (type/shape validation failures)
├── ConfigurationError (required key missing at lookup time)
└── ConfigInitializationError (YAML load failures at startup)
"""


class ConfigError(Exception):
    """
    Base exception for all configuration-related errors.

    Example
    -------
    >>> try:
    ...     manager.get_required("arena.base_rating")
    ... except ConfigError as e:
    ...     logger.error(f"Config lookup failed: {e}")
    """


class ConfigValidationError(ConfigError):
    """Raised when a configuration value has the wrong type or shape."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"Invalid configuration for '{key}': {message}")


class ConfigurationError(ConfigError):
    """Raised when a required configuration key is missing."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(message)


class ConfigInitializationError(ConfigError):
    """Raised when YAML defaults cannot be loaded."""
