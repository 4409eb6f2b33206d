"""
State store adapters.

- `InMemoryStateStore`: process-local dict, deep-copied
- `DatabaseStateStore`: SQLAlchemy JSON rows (see `database_store`)
- `RedisStateStore`: JSON strings in redis (see `redis_store`)

Only the protocol and the in-memory store are imported here so that using
the package does not require a database driver.
"""

from gauntlet.core.storage.base import StateDocument, StateStore
from gauntlet.core.storage.memory import InMemoryStateStore

__all__ = ["StateStore", "StateDocument", "InMemoryStateStore"]
