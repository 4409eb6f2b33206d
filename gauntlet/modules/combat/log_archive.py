"""
CombatLogArchive: per-player history of resolved combat logs.

Purpose
-------
Keep the most recent combat sessions of each player in an injected
`StateStore`, so simulated fights can be replayed or inspected later.

Design Decisions
----------------
- One document per player: ``{"player_id", "sessions", "last_updated"}``.
- Sessions are most-recent-first, capped at ``max_sessions``; each session
  keeps at most ``max_logs_per_session`` entries.
- Logs are stored in their serialized (`CombatLogEntry.to_dict`) form.
- Retention cleanup deletes documents left without sessions.
- Read-modify-write of a player's document is serialized per player id.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from gauntlet.core.infra.locks import KeyedLock
from gauntlet.core.logging.logger import get_logger
from gauntlet.core.storage.base import StateDocument, StateStore
from gauntlet.modules.combat.models import CombatLogEntry
from gauntlet.modules.shared.base_service import Clock, utc_now

if TYPE_CHECKING:
    from gauntlet.core.config.manager import ConfigManager

logger = get_logger(__name__)

DEFAULT_MAX_SESSIONS = 50
DEFAULT_MAX_LOGS_PER_SESSION = 1000
DEFAULT_RETENTION_DAYS = 30


class CombatLogArchive:
    """
    Store-backed archive of combat sessions.

    Args:
        store: Persistence for per-player archive documents
        clock: Timestamp source
        max_sessions: Sessions retained per player
        max_logs_per_session: Log entries retained per session
        retention_days: Default age cutoff for `cleanup_old_logs`
    """

    def __init__(
        self,
        store: StateStore,
        clock: Optional[Clock] = None,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        max_logs_per_session: int = DEFAULT_MAX_LOGS_PER_SESSION,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ) -> None:
        self._store = store
        self._clock = clock or utc_now
        self.max_sessions = max_sessions
        self.max_logs_per_session = max_logs_per_session
        self.retention_days = retention_days
        self._locks = KeyedLock()

    @classmethod
    def from_config(
        cls,
        config_manager: ConfigManager,
        store: StateStore,
        clock: Optional[Clock] = None,
    ) -> CombatLogArchive:
        """Build an archive from the ``combat_log.*`` section."""
        return cls(
            store,
            clock=clock,
            max_sessions=config_manager.get_int(
                "combat_log.max_sessions", DEFAULT_MAX_SESSIONS
            ),
            max_logs_per_session=config_manager.get_int(
                "combat_log.max_logs_per_session", DEFAULT_MAX_LOGS_PER_SESSION
            ),
            retention_days=config_manager.get_int(
                "combat_log.retention_days", DEFAULT_RETENTION_DAYS
            ),
        )

    def _session_id(self, timestamp: datetime) -> str:
        return f"combat_{int(timestamp.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"

    async def store_logs(
        self,
        player_id: str,
        logs: Sequence[CombatLogEntry],
        timestamp: Optional[datetime] = None,
    ) -> str:
        """Archive one session and return its id."""
        now = self._clock()
        timestamp = timestamp or now
        session_id = self._session_id(timestamp)
        session = {
            "id": session_id,
            "timestamp": timestamp.isoformat(),
            "logs": [entry.to_dict() for entry in logs[: self.max_logs_per_session]],
        }

        async with self._locks.acquire(player_id):
            document = await self._store.get(player_id) or {
                "player_id": player_id,
                "sessions": [],
            }
            document["sessions"] = [session, *document["sessions"]][: self.max_sessions]
            document["last_updated"] = now.isoformat()
            await self._store.set(player_id, document)

        logger.debug(
            "Combat session archived",
            extra={
                "player_id": player_id,
                "session_id": session_id,
                "log_count": len(session["logs"]),
            },
        )
        return session_id

    async def get_player_logs(self, player_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Most recent sessions, newest first."""
        document = await self._store.get(player_id)
        if document is None:
            return []
        return document["sessions"][:limit]

    async def get_combat_logs(
        self, player_id: str, session_id: str
    ) -> Optional[List[Dict[str, Any]]]:
        """Log entries of one session, or None when unknown."""
        document = await self._store.get(player_id)
        if document is None:
            return None
        for session in document["sessions"]:
            if session["id"] == session_id:
                return session["logs"]
        return None

    async def get_all_player_sessions(self, player_id: str) -> List[Dict[str, Any]]:
        document = await self._store.get(player_id)
        return document["sessions"] if document else []

    async def clear_player_logs(self, player_id: str) -> bool:
        async with self._locks.acquire(player_id):
            return await self._store.delete(player_id)

    async def cleanup_old_logs(self, days_old: Optional[int] = None) -> int:
        """
        Drop sessions at or before the retention cutoff.

        Args:
            days_old: Age cutoff in days; ``retention_days`` when omitted

        Returns:
            Number of sessions removed
        """
        if days_old is None:
            days_old = self.retention_days
        cutoff = self._clock() - timedelta(days=days_old)
        removed = 0

        for snapshot in await self._store.list_values():
            player_id = snapshot["player_id"]
            async with self._locks.acquire(player_id):
                # Re-read under the lock; a store_logs may have landed since the scan.
                document = await self._store.get(player_id)
                if document is None:
                    continue
                kept = [
                    session
                    for session in document["sessions"]
                    if datetime.fromisoformat(session["timestamp"]) > cutoff
                ]
                dropped = len(document["sessions"]) - len(kept)
                if not dropped:
                    continue

                removed += dropped
                if kept:
                    document["sessions"] = kept
                    await self._store.set(player_id, document)
                else:
                    await self._store.delete(player_id)

        logger.info(
            "Combat log retention applied",
            extra={"days_old": days_old, "sessions_removed": removed},
        )
        return removed

    async def get_storage_stats(self) -> Dict[str, int]:
        documents: List[StateDocument] = await self._store.list_values()
        return {
            "total_players": len(documents),
            "total_sessions": sum(len(doc["sessions"]) for doc in documents),
            "total_logs": sum(
                len(session["logs"]) for doc in documents for session in doc["sessions"]
            ),
        }
