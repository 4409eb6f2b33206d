"""
RedisService: async Redis access for Gauntlet state documents.

Purpose
-------
Wrap a `redis.asyncio` client with JSON (de)serialization, key scanning and
structured logging for `RedisStateStore`.

Design Decisions
----------------
- Instance-based; the client is built from `Config.REDIS_URL` on
  `initialize()` or injected directly (tests pass a fake client).
- Unlike a cache, this service backs authoritative player state, so
  command failures propagate to the caller instead of degrading to None.
- Simple operation counters feed `get_metrics()`.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, List, Optional

import redis.asyncio as redis

from gauntlet.core.config.config import Config
from gauntlet.core.logging.logger import get_logger

logger = get_logger(__name__)


class RedisNotInitializedError(RuntimeError):
    """Raised when commands are issued before `initialize()`."""


class RedisService:
    """JSON document access over a single redis.asyncio client."""

    def __init__(
        self,
        url: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        self._url = url or Config.REDIS_URL
        self._client: Optional[Any] = client
        self._metrics: Dict[str, Any] = {
            "operations": {"get": 0, "set": 0, "delete": 0, "scan": 0, "mget": 0},
            "failures": 0,
            "total_operation_time_ms": 0.0,
        }

    async def initialize(self) -> None:
        """Create the client from the configured URL and verify with PING."""
        if self._client is not None:
            logger.debug("RedisService already initialized")
            return

        self._client = redis.from_url(self._url, decode_responses=True)
        await self._client.ping()
        logger.info(
            "RedisService initialized",
            extra={"url_scheme": self._url.split("://", 1)[0]},
        )

    async def shutdown(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        logger.info("RedisService shutdown")

    async def health_check(self) -> bool:
        if self._client is None:
            return False
        try:
            await self._client.ping()
            return True
        except redis.RedisError as exc:
            logger.warning(
                "Redis health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False

    def _require_client(self) -> Any:
        if self._client is None:
            raise RedisNotInitializedError(
                "RedisService.initialize() must be awaited before use"
            )
        return self._client

    # ========================================================================
    # JSON documents
    # ========================================================================

    async def get_json(self, key: str) -> Optional[Any]:
        client = self._require_client()
        raw = await self._timed("get", key, client.get(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set_json(self, key: str, value: Any) -> None:
        client = self._require_client()
        payload = json.dumps(value, ensure_ascii=False)
        await self._timed("set", key, client.set(key, payload))

    async def delete(self, key: str) -> bool:
        client = self._require_client()
        removed = await self._timed("delete", key, client.delete(key))
        return bool(removed)

    async def scan_keys(self, pattern: str) -> List[str]:
        client = self._require_client()
        self._metrics["operations"]["scan"] += 1
        keys: List[str] = []
        async for key in client.scan_iter(match=pattern):
            keys.append(key.decode() if isinstance(key, bytes) else key)
        return sorted(keys)

    async def mget_json(self, keys: List[str]) -> List[Any]:
        if not keys:
            return []
        client = self._require_client()
        raws = await self._timed("mget", f"{len(keys)} keys", client.mget(keys))
        return [json.loads(raw) for raw in raws if raw is not None]

    async def _timed(self, operation: str, key: str, awaitable: Any) -> Any:
        start = time.perf_counter()
        self._metrics["operations"][operation] += 1
        try:
            return await awaitable
        except redis.RedisError as exc:
            self._metrics["failures"] += 1
            logger.error(
                "Redis command failed",
                extra={
                    "redis_operation": operation,
                    "key": key,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            raise
        finally:
            self._metrics["total_operation_time_ms"] += (
                time.perf_counter() - start
            ) * 1000.0

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "operations": dict(self._metrics["operations"]),
            "failures": self._metrics["failures"],
            "total_operation_time_ms": round(
                self._metrics["total_operation_time_ms"], 3
            ),
        }
