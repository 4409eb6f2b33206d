"""
Gauntlet event system.

Public API
----------
- EventBus: instance-based async pub/sub
- ListenerPriority: execution tiers
- EventPayload / EventListener: type definitions
"""

from gauntlet.core.event.bus import EventBus
from gauntlet.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)

__all__ = [
    "EventBus",
    "ListenerPriority",
    "EventListener",
    "EventPayload",
    "CallbackType",
]
