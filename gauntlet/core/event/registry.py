"""
ListenerRegistry: storage and lookup for EventBus listeners.

Exact event names ("dungeon.floor_resolved") and wildcard patterns
("dungeon.*", "*.completed", "*") are stored separately. Listeners are
returned ordered by (priority, identifier); one-shot listeners are pruned
atomically when extracted.

Methods are synchronous: the asyncio loop is single-threaded, so dictionary
mutations are atomic between awaits.
"""

from __future__ import annotations

from gauntlet.core.event.types import EventListener


def matches(event_name: str, pattern: str) -> bool:
    """
    Check an event name against a wildcard pattern.

    >>> matches("dungeon.completed", "dungeon.*")
    True
    >>> matches("arena.match_recorded", "*.completed")
    False
    """
    if pattern == "*":
        return True
    if "*" not in pattern:
        return event_name == pattern

    parts = pattern.split("*")
    if parts[0] and not event_name.startswith(parts[0]):
        return False
    if parts[-1] and not event_name.endswith(parts[-1]):
        return False

    idx = len(parts[0])
    for mid in parts[1:-1]:
        if not mid:
            continue
        found = event_name.find(mid, idx)
        if found == -1:
            return False
        idx = found + len(mid)

    return idx <= len(event_name) - len(parts[-1])


class ListenerRegistry:
    """Registry for exact and wildcard event listeners."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventListener]] = {}
        self._wildcard_listeners: list[tuple[str, EventListener]] = []

    def add_listener(
        self,
        event_name: str,
        listener: EventListener,
    ) -> bool:
        """Register a listener; returns False when prevented as a duplicate."""
        if "*" in event_name:
            if any(
                existing.identifier == listener.identifier
                for pattern, existing in self._wildcard_listeners
                if pattern == event_name
            ):
                return False

            self._wildcard_listeners.append((event_name, listener))
            self._wildcard_listeners.sort(
                key=lambda pl: (pl[1].priority.value, pl[1].identifier)
            )
            return True

        listeners = self._listeners.setdefault(event_name, [])
        if any(
            existing.identifier == listener.identifier for existing in listeners
        ):
            return False

        listeners.append(listener)
        listeners.sort(key=lambda lst: (lst.priority.value, lst.identifier))
        return True

    def remove_listener(self, event_name: str, identifier: str) -> bool:
        if "*" in event_name:
            before = len(self._wildcard_listeners)
            self._wildcard_listeners = [
                (pattern, lst)
                for pattern, lst in self._wildcard_listeners
                if not (pattern == event_name and lst.identifier == identifier)
            ]
            return len(self._wildcard_listeners) < before

        listeners = self._listeners.get(event_name)
        if not listeners:
            return False

        remaining = [lst for lst in listeners if lst.identifier != identifier]
        if len(remaining) == len(listeners):
            return False

        if remaining:
            self._listeners[event_name] = remaining
        else:
            del self._listeners[event_name]
        return True

    def extract_listeners_for_event(self, event_name: str) -> list[EventListener]:
        """Return matching listeners in execution order, pruning one-shots."""
        exact = list(self._listeners.get(event_name, []))
        wildcard = [
            (pattern, lst)
            for pattern, lst in self._wildcard_listeners
            if matches(event_name, pattern)
        ]

        once_exact = {lst.identifier for lst in exact if lst.once}
        if once_exact:
            remaining = [
                lst
                for lst in self._listeners.get(event_name, [])
                if lst.identifier not in once_exact
            ]
            if remaining:
                self._listeners[event_name] = remaining
            else:
                self._listeners.pop(event_name, None)

        once_wildcard = [(p, lst) for p, lst in wildcard if lst.once]
        if once_wildcard:
            self._wildcard_listeners = [
                entry for entry in self._wildcard_listeners if entry not in once_wildcard
            ]

        combined = exact + [lst for _, lst in wildcard]
        combined.sort(key=lambda lst: (lst.priority.value, lst.identifier))
        return combined

    def get_total_listener_count(self) -> int:
        return sum(len(lst) for lst in self._listeners.values()) + len(
            self._wildcard_listeners
        )

    def get_listener_count_for_event(self, event_name: str) -> int:
        exact = len(self._listeners.get(event_name, []))
        wildcard = sum(
            1 for pattern, _ in self._wildcard_listeners if matches(event_name, pattern)
        )
        return exact + wildcard
