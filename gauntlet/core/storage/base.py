"""
State store contract shared by the encounter services.

A store holds JSON-compatible documents (plain dicts) keyed by a string id
inside one namespace. Services perform exactly one ``set`` per successful
mutation; ``list_values`` exists for leaderboard-style enumeration.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

StateDocument = Dict[str, Any]


@runtime_checkable
class StateStore(Protocol):
    """Async key/value persistence for JSON documents."""

    namespace: str

    async def get(self, key: str) -> Optional[StateDocument]:
        ...

    async def set(self, key: str, value: StateDocument) -> None:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def list_values(self) -> List[StateDocument]:
        ...
