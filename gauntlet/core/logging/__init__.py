"""
Gauntlet Logging Infrastructure

Exports the structured logging subsystem, log context helpers,
and configuration interface.
"""

from gauntlet.core.logging.logger import (
    LogContext,
    LogSettings,
    clear_log_context,
    get_log_context,
    get_logger,
    get_logging_health,
    set_log_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "get_logging_health",
    "LogContext",
    "get_log_context",
    "set_log_context",
    "clear_log_context",
    "LogSettings",
]
