"""
In-memory state store.

Deep-copies documents on both write and read so callers can never mutate
stored state through a reference they hold. Used by tests and single-process
deployments.
"""

from __future__ import annotations

import copy
from typing import Dict, List, Optional

from gauntlet.core.logging.logger import get_logger
from gauntlet.core.storage.base import StateDocument

logger = get_logger(__name__)


class InMemoryStateStore:
    """Dict-backed `StateStore` with write counting for observability."""

    def __init__(self, namespace: str = "default") -> None:
        self.namespace = namespace
        self._documents: Dict[str, StateDocument] = {}
        self.write_count = 0

    async def get(self, key: str) -> Optional[StateDocument]:
        document = self._documents.get(key)
        if document is None:
            return None
        return copy.deepcopy(document)

    async def set(self, key: str, value: StateDocument) -> None:
        self._documents[key] = copy.deepcopy(value)
        self.write_count += 1
        logger.debug(
            "State document stored",
            extra={"namespace": self.namespace, "key": key},
        )

    async def delete(self, key: str) -> bool:
        return self._documents.pop(key, None) is not None

    async def list_values(self) -> List[StateDocument]:
        return [copy.deepcopy(self._documents[key]) for key in sorted(self._documents)]

    def __len__(self) -> int:
        return len(self._documents)
