"""
Core infrastructure layer for Gauntlet.

- Configuration (Config, ConfigManager)
- Logging (structured logging, logger factory, LogContext)
- Event bus (EventBus, ListenerPriority)
- State storage adapters (in-memory, database, redis)
- Database and redis connection services
- Validation utilities (InputValidator)
- Per-key async locking (KeyedLock)

Submodules are imported directly (``gauntlet.core.storage.memory`` etc.);
this package performs no re-exports so importing it has no side effects.
"""
