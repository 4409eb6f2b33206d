"""
SQLAlchemy-backed state store.

One row per (namespace, key) holding the JSON document. Writes go through
`DatabaseService.get_transaction()` so each ``set`` is its own atomic
commit; reads use a plain session.
"""

from __future__ import annotations

import copy
from typing import List, Optional

from sqlalchemy import JSON, Index, String, select
from sqlalchemy.orm import Mapped, mapped_column

from gauntlet.core.database.base import Base, TimestampMixin
from gauntlet.core.database.service import DatabaseService
from gauntlet.core.logging.logger import get_logger
from gauntlet.core.storage.base import StateDocument

logger = get_logger(__name__)


class StateRecord(Base, TimestampMixin):
    """
    Persisted state document.

    Schema-only:
    - namespace (e.g. "dungeon_state", "arena_state")
    - key (player id)
    - document (full JSON snapshot from the owning service)
    """

    __tablename__ = "state_documents"
    __table_args__ = (Index("ix_state_documents_namespace", "namespace"),)

    namespace: Mapped[str] = mapped_column(String(64), primary_key=True)
    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    document: Mapped[dict] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<StateRecord(namespace={self.namespace}, key={self.key})>"


class DatabaseStateStore:
    """`StateStore` over a `DatabaseService`."""

    def __init__(self, database: DatabaseService, namespace: str) -> None:
        self._db = database
        self.namespace = namespace

    async def get(self, key: str) -> Optional[StateDocument]:
        async with self._db.get_session() as session:
            record = await session.get(StateRecord, (self.namespace, key))
            if record is None:
                return None
            return copy.deepcopy(record.document)

    async def set(self, key: str, value: StateDocument) -> None:
        document = copy.deepcopy(value)
        async with self._db.get_transaction() as session:
            record = await session.get(StateRecord, (self.namespace, key))
            if record is None:
                session.add(
                    StateRecord(namespace=self.namespace, key=key, document=document)
                )
            else:
                record.document = document

        logger.debug(
            "State document persisted",
            extra={"namespace": self.namespace, "key": key},
        )

    async def delete(self, key: str) -> bool:
        async with self._db.get_transaction() as session:
            record = await session.get(StateRecord, (self.namespace, key))
            if record is None:
                return False
            await session.delete(record)
        return True

    async def list_values(self) -> List[StateDocument]:
        async with self._db.get_session() as session:
            result = await session.execute(
                select(StateRecord)
                .where(StateRecord.namespace == self.namespace)
                .order_by(StateRecord.key)
            )
            return [copy.deepcopy(record.document) for record in result.scalars()]
