"""
Gauntlet Logging Subsystem

Purpose
-------
One logging stack for every Gauntlet service. Records are enriched with the
player/dungeon/operation context of the call that produced them, handed to a
bounded queue, and written by a background listener so that encounter code
never blocks the event loop on console or file I/O.

Responsibilities
----------------
- Configure the root logger once (`setup_logging`, idempotent).
- Stamp every record with player_id, dungeon_id, correlation_id, request_id,
  component and operation (`ContextFilter`).
- Render JSON in production and colored or plain text in development.
- Optionally mirror JSON output into a daily rotating file (`LOG_TO_FILE`).
- Expose queue counters through `get_logging_health()`.

Design Decisions
----------------
- Context lives in a ContextVar so concurrent asyncio tasks never see each
  other's player or correlation ids.
- Explicit ``extra={"player_id": ...}`` values are kept when the ambient
  context does not set that field.
- A full queue drops the record and counts it; logging never raises into a
  service call.

Dependencies
------------
- gauntlet.core.config.config.Config
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from gauntlet.core.config.config import Config

_log_context: ContextVar[Dict[str, Any]] = ContextVar("gauntlet_log_context", default={})

CONTEXT_FIELDS = (
    "player_id",
    "dungeon_id",
    "correlation_id",
    "request_id",
    "component",
    "operation",
)


# ============================================================================
# Settings
# ============================================================================


@dataclass(frozen=True)
class LogSettings:
    """Resolved logging options, snapshotted from `Config` at setup time."""

    level: int
    use_json: bool
    use_colors: bool
    use_file: bool
    logs_dir: Path
    queue_max_size: int = 10_000
    file_name: str = "gauntlet.json.log"
    file_backups: int = 1
    console_format: str = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def from_config(cls) -> "LogSettings":
        level = logging.getLevelName(str(Config.LOG_LEVEL).upper())
        if not isinstance(level, int):
            level = logging.INFO

        use_json = Config.is_production() if Config.LOG_JSON is None else bool(Config.LOG_JSON)
        use_colors = (
            not use_json
            and not Config.is_production()
            and Config.LOG_COLORS
            and sys.stdout.isatty()
        )
        return cls(
            level=level,
            use_json=use_json,
            use_colors=use_colors,
            use_file=Config.LOG_TO_FILE,
            logs_dir=Path(Config.LOGS_DIR).resolve(),
        )


@dataclass(frozen=True)
class LoggingHealth:
    initialized: bool
    queue_size: int
    queue_max_size: int
    records_enqueued: int
    records_dropped: int
    listener_errors: int


@dataclass
class _LoggingRuntime:
    settings: Optional[LogSettings] = None
    log_queue: Optional["queue.Queue[logging.LogRecord]"] = None
    listener: Optional[QueueListener] = None
    handler: Optional[QueueHandler] = None
    counters: Dict[str, int] = field(
        default_factory=lambda: {"enqueued": 0, "dropped": 0, "listener_errors": 0}
    )


_runtime = _LoggingRuntime()


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context: Dict[str, Any] = _log_context.get({})

        # Explicit `extra` fields win over an unset context.
        for field_name in ("player_id", "dungeon_id"):
            value = context.get(field_name)
            if value in (None, "N/A"):
                value = getattr(record, field_name, "N/A")
            setattr(record, field_name, value)

        correlation_id = context.get("correlation_id") or context.get("request_id") or "N/A"
        record.correlation_id = correlation_id
        record.request_id = context.get("request_id", correlation_id)

        record.component = context.get("component") or record.name.split(".", 1)[0]
        record.operation = context.get("operation") or getattr(record, "operation", "N/A")
        return True


class ColoredFormatter(logging.Formatter):
    LEVEL_COLORS: Dict[str, str] = {
        "DEBUG": "\033[90m",
        "INFO": "\033[36m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        rendered = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelname)
        return f"{color}{rendered}{self.RESET}" if color else rendered


class JSONFormatter(logging.Formatter):
    """One JSON object per record; non-standard attributes go under ``extra``."""

    RESERVED = frozenset(
        vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value not in (None, "N/A"):
                payload[name] = value

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self.RESERVED
            and key not in CONTEXT_FIELDS
            and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


# ============================================================================
# Queue plumbing
# ============================================================================


class _BoundedQueueHandler(QueueHandler):
    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        _runtime.counters["enqueued"] += 1
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            _runtime.counters["dropped"] += 1
            sys.stderr.write("gauntlet: log queue full, record dropped\n")


class _CountingQueueListener(QueueListener):
    def handleError(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        _runtime.counters["listener_errors"] += 1
        sys.stderr.write("gauntlet: log handler failed while writing a record\n")


def _sinks(settings: LogSettings) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    if settings.use_json:
        console.setFormatter(JSONFormatter())
    elif settings.use_colors:
        console.setFormatter(ColoredFormatter(settings.console_format, settings.date_format))
    else:
        console.setFormatter(logging.Formatter(settings.console_format, settings.date_format))
    sinks: List[logging.Handler] = [console]

    if settings.use_file:
        settings.logs_dir.mkdir(parents=True, exist_ok=True)
        daily = TimedRotatingFileHandler(
            filename=str(settings.logs_dir / settings.file_name),
            when="midnight",
            backupCount=settings.file_backups,
            encoding="utf-8",
            utc=True,
        )
        daily.setFormatter(JSONFormatter())
        sinks.append(daily)

    for sink in sinks:
        sink.setLevel(settings.level)
    return sinks


# ============================================================================
# Lifecycle
# ============================================================================


def setup_logging() -> None:
    if _runtime.listener is not None:
        return

    settings = LogSettings.from_config()
    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(settings.queue_max_size)

    listener = _CountingQueueListener(log_queue, *_sinks(settings), respect_handler_level=True)
    listener.start()

    handler = _BoundedQueueHandler(log_queue)
    handler.setLevel(settings.level)
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.setLevel(settings.level)
    root.addHandler(handler)

    for noisy in ("asyncio", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _runtime.settings = settings
    _runtime.log_queue = log_queue
    _runtime.listener = listener
    _runtime.handler = handler

    logging.getLogger(__name__).debug(
        "Logging initialized",
        extra={
            "environment": Config.ENVIRONMENT.value,
            "log_level": logging.getLevelName(settings.level),
            "json": settings.use_json,
            "file": settings.use_file,
        },
    )


def shutdown_logging() -> None:
    """Flush the queue, close every sink and detach from the root logger."""
    if _runtime.listener is None:
        return

    _runtime.listener.stop()
    for sink in _runtime.listener.handlers:
        sink.flush()
        sink.close()

    if _runtime.handler is not None:
        logging.getLogger().removeHandler(_runtime.handler)

    _runtime.settings = None
    _runtime.log_queue = None
    _runtime.listener = None
    _runtime.handler = None


def get_logging_health() -> LoggingHealth:
    log_queue = _runtime.log_queue
    return LoggingHealth(
        initialized=_runtime.listener is not None,
        queue_size=log_queue.qsize() if log_queue is not None else 0,
        queue_max_size=log_queue.maxsize if log_queue is not None else 0,
        records_enqueued=_runtime.counters["enqueued"],
        records_dropped=_runtime.counters["dropped"],
        listener_errors=_runtime.counters["listener_errors"],
    )


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


# ============================================================================
# Context
# ============================================================================


class LogContext:
    """
    Scope log context to a block of (sync or async) code.

    >>> async with LogContext(player_id="p1", operation="resolve_floor"):
    ...     logger.info("Resolving")
    """

    def __init__(
        self,
        player_id: Optional[str] = None,
        dungeon_id: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        request_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        correlation = correlation_id or request_id or uuid.uuid4().hex[:8]
        self.context: Dict[str, Any] = {
            "player_id": str(player_id) if player_id is not None else "N/A",
            "dungeon_id": dungeon_id or "N/A",
            "component": component,
            "operation": operation,
            "correlation_id": correlation,
            "request_id": request_id or correlation,
            **extra,
        }
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def get_log_context() -> Dict[str, Any]:
    return dict(_log_context.get({}))


def set_log_context(**fields: Any) -> None:
    """Merge non-empty fields into the current context."""
    current = dict(_log_context.get({}))
    for key, value in fields.items():
        if value is None or value == "":
            continue
        current[key] = str(value) if key == "player_id" else value

    if "request_id" in fields and fields["request_id"] and "correlation_id" not in current:
        current["correlation_id"] = fields["request_id"]
    _log_context.set(current)


def clear_log_context() -> None:
    _log_context.set({})


setup_logging()
