"""
Dungeon module: static definitions, the catalog and the run orchestrator.
"""

from gauntlet.modules.dungeon.catalog import DungeonCatalog
from gauntlet.modules.dungeon.definitions import (
    BossDefinition,
    BossPhase,
    DungeonDefinition,
    DungeonFloor,
    FloorType,
    UnlockRequirements,
)
from gauntlet.modules.dungeon.models import (
    DungeonProgress,
    DungeonRunState,
    Outcome,
    PlayerDungeonState,
    RunStatus,
)
from gauntlet.modules.dungeon.service import DungeonService

__all__ = [
    "DungeonService",
    "DungeonCatalog",
    "BossDefinition",
    "BossPhase",
    "DungeonDefinition",
    "DungeonFloor",
    "FloorType",
    "UnlockRequirements",
    "DungeonProgress",
    "DungeonRunState",
    "Outcome",
    "PlayerDungeonState",
    "RunStatus",
]
