"""Infrastructure primitives shared by services."""

from gauntlet.core.infra.locks import KeyedLock

__all__ = ["KeyedLock"]
