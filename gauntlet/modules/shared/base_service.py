"""
Shared foundation for the encounter services.

Purpose
-------
`DungeonService`, `ArenaService` and `CombatService` all take the same three
collaborators (config manager, event bus, logger) and need the same few
helpers on top of them: tuning lookups, operation logging and domain event
emission. State stores and progression providers are passed to each concrete
service separately.

Usage
-----
    class ArenaService(BaseService):
        def __init__(self, store, progression, config_manager, event_bus, logger):
            super().__init__(config_manager, event_bus, logger)
            self._store = store
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from gauntlet.core.config.errors import ConfigurationError
from gauntlet.modules.shared.exceptions import ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from gauntlet.core.config.manager import ConfigManager
    from gauntlet.core.event.bus import EventBus

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseService:
    """
    Base class for the encounter services.

    Args:
        config_manager: Tuning values (combat, dungeon and arena sections)
        event_bus: Destination for domain events
        logger: Module logger of the concrete service
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        self._config = config_manager
        self._events = event_bus
        self.log = logger

    def get_config(self, key: str, default: Optional[Any] = None, required: bool = False) -> Any:
        """
        Read a tuning value.

        Raises:
            ConfigurationError: ``required`` is set and the key is absent
        """
        value = self._config.get(key, default)
        if value is None and required:
            raise ConfigurationError(key, f"Missing tuning section '{key}'")
        return value

    async def emit_event(
        self,
        event_type: str,
        data: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self._events.publish(event_type, {**data, **(context or {})})

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(f"{operation} completed", extra={"operation": operation, **context})

    def validate_range(self, value: int, name: str, min_val: int, max_val: int) -> None:
        if value < min_val or value > max_val:
            raise ValidationError(
                name, f"{name} must be between {min_val} and {max_val}, got {value}"
            )
