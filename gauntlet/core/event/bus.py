"""
Gauntlet EventBus: async pub/sub with tiered listener execution.

Purpose
-------
Decouple the encounter services from whatever consumes their outcomes
(reward crediting, analytics, notifications). Services publish domain
events such as ``dungeon.floor_resolved`` or ``arena.match_recorded``;
listeners subscribe by exact name or wildcard pattern.

Responsibilities
----------------
- Register/unregister listeners with priorities
- Publish events to all matching listeners (exact + wildcard)
- Execute listeners according to the tiered concurrency model:
  * CRITICAL: sequential, awaited with timeout
  * HIGH: sequential, awaited with timeout
  * NORMAL: concurrent (gather), awaited
  * LOW: fire-and-forget background tasks
- Error isolation: one failing listener never blocks others or the publisher

Design Decisions
----------------
- **Instance-based**: each service graph owns its bus; tests build their own.
- **Config-driven timeouts**: read from ConfigManager when one is supplied.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any, Optional

from gauntlet.core.event.registry import ListenerRegistry
from gauntlet.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)
from gauntlet.core.logging.logger import get_logger

if TYPE_CHECKING:
    from gauntlet.core.config.manager import ConfigManager

logger = get_logger(__name__)


class EventBus:
    """
    Async EventBus with priority tiers and wildcard routing.

    Examples
    --------
    >>> bus = EventBus()
    >>> bus.subscribe("dungeon.completed", on_completed, priority=ListenerPriority.HIGH)
    >>> await bus.publish("dungeon.completed", {"player_id": "p1"})
    """

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        *,
        critical_timeout_seconds: Optional[float] = None,
        high_timeout_seconds: Optional[float] = None,
    ) -> None:
        self._config_manager = config_manager
        self._registry = ListenerRegistry()
        self._background_tasks: set[asyncio.Task[Any]] = set()

        self._published: dict[str, int] = {}
        self._errors: dict[str, int] = {}

        self._critical_timeout = self._load_timeout(
            "core.event.listener_timeout.critical_seconds",
            critical_timeout_seconds,
            5.0,
        )
        self._high_timeout = self._load_timeout(
            "core.event.listener_timeout.high_seconds",
            high_timeout_seconds,
            5.0,
        )

        logger.debug(
            "EventBus initialized",
            extra={
                "critical_timeout_seconds": self._critical_timeout,
                "high_timeout_seconds": self._high_timeout,
            },
        )

    def _load_timeout(
        self, key: str, override: Optional[float], default: float
    ) -> float:
        if override is not None:
            return float(override)
        if self._config_manager is None:
            return float(default)
        return self._config_manager.get_float(key, default)

    # ------------------------------------------------------------------ #
    # Subscription API
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate_callback_signature(callback: CallbackType) -> None:
        try:
            sig = inspect.signature(callback)
        except (TypeError, ValueError):
            return

        params = list(sig.parameters.values())
        if len(params) != 1:
            callback_name = getattr(callback, "__qualname__", None) or repr(callback)
            raise ValueError(
                f"Event listener must accept exactly 1 parameter (EventPayload), "
                f"got {len(params)} parameters for '{callback_name}'"
            )

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
    ) -> str:
        """
        Subscribe a callback to an event name or wildcard pattern.

        Returns the listener identifier for later ``unsubscribe``.

        Raises
        ------
        ValueError:
            If the callback does not take exactly one parameter.
        """
        self._validate_callback_signature(callback)

        listener = EventListener.from_callback(
            event_name=event_name,
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )

        added = self._registry.add_listener(event_name, listener)

        if added:
            logger.debug(
                "EventBus: subscribed listener",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority.name,
                    "once": listener.once,
                },
            )
        else:
            logger.warning(
                "EventBus: duplicate listener prevented",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )

        return listener.identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        removed = self._registry.remove_listener(event_name, identifier)
        if removed:
            logger.debug(
                "EventBus: unsubscribed listener",
                extra={"event_name": event_name, "listener_id": identifier},
            )
        return removed

    # ------------------------------------------------------------------ #
    # Publish API
    # ------------------------------------------------------------------ #

    async def publish(self, event_name: str, data: EventPayload) -> list[Any]:
        """
        Publish an event to all subscribed listeners.

        Returns results from CRITICAL/HIGH/NORMAL listeners; LOW listeners
        run in the background and are not included. A listener that raises
        or times out contributes ``None``.
        """
        self._published[event_name] = self._published.get(event_name, 0) + 1

        listeners = self._registry.extract_listeners_for_event(event_name)
        if not listeners:
            logger.debug("EventBus: no listeners", extra={"event_name": event_name})
            return []

        tiers: dict[ListenerPriority, list[EventListener]] = {p: [] for p in ListenerPriority}
        for listener in listeners:
            tiers[listener.priority].append(listener)

        results: list[Any] = []
        for priority, timeout in (
            (ListenerPriority.CRITICAL, self._critical_timeout),
            (ListenerPriority.HIGH, self._high_timeout),
        ):
            for listener in tiers[priority]:
                results.append(await self._run_with_timeout(listener, event_name, data, timeout))

        normal = tiers[ListenerPriority.NORMAL]
        if normal:
            results.extend(
                await asyncio.gather(*(self._run_listener(lst, event_name, data) for lst in normal))
            )

        for listener in tiers[ListenerPriority.LOW]:
            task = asyncio.create_task(
                self._run_listener(listener, event_name, data),
                name=f"eventbus-low-{event_name}-{listener.identifier}",
            )
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)

        return results

    async def _run_with_timeout(
        self,
        listener: EventListener,
        event_name: str,
        payload: EventPayload,
        timeout: Optional[float],
    ) -> Any:
        if timeout is None or timeout <= 0:
            return await self._run_listener(listener, event_name, payload)

        try:
            return await asyncio.wait_for(
                self._run_listener(listener, event_name, payload), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            self._handle_listener_error(event_name, listener, exc)
            return None

    async def _run_listener(
        self, listener: EventListener, event_name: str, payload: EventPayload
    ) -> Any:
        try:
            if inspect.iscoroutinefunction(listener.callback):
                return await listener.callback(payload)

            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, listener.callback, payload)
        except Exception as exc:
            self._handle_listener_error(event_name, listener, exc)
            return None

    def _handle_listener_error(
        self, event_name: str, listener: EventListener, exc: BaseException
    ) -> None:
        self._errors[event_name] = self._errors.get(event_name, 0) + 1
        logger.error(
            "EventBus listener error",
            extra={
                "event_name": event_name,
                "listener_id": listener.identifier,
                "priority": listener.priority.name,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def get_metrics_summary(self) -> dict[str, Any]:
        total_published = sum(self._published.values())
        total_errors = sum(self._errors.values())
        return {
            "total_events_published": total_published,
            "events_by_type": dict(self._published),
            "total_errors": total_errors,
            "errors_by_event": dict(self._errors),
            "total_listeners": self._registry.get_total_listener_count(),
        }

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name:
            return self._registry.get_listener_count_for_event(event_name)
        return self._registry.get_total_listener_count()
