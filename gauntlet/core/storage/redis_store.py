"""
Redis-backed state store.

Documents are stored as JSON strings under ``<namespace>:<key>``.
Enumeration scans the namespace prefix.
"""

from __future__ import annotations

from typing import List, Optional

from gauntlet.core.logging.logger import get_logger
from gauntlet.core.redis.service import RedisService
from gauntlet.core.storage.base import StateDocument

logger = get_logger(__name__)


class RedisStateStore:
    """`StateStore` over a `RedisService`."""

    def __init__(self, redis_service: RedisService, namespace: str) -> None:
        self._redis = redis_service
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[StateDocument]:
        return await self._redis.get_json(self._key(key))

    async def set(self, key: str, value: StateDocument) -> None:
        await self._redis.set_json(self._key(key), value)
        logger.debug(
            "State document persisted",
            extra={"namespace": self.namespace, "key": key},
        )

    async def delete(self, key: str) -> bool:
        return await self._redis.delete(self._key(key))

    async def list_values(self) -> List[StateDocument]:
        keys = await self._redis.scan_keys(f"{self.namespace}:*")
        return await self._redis.mget_json(keys)
