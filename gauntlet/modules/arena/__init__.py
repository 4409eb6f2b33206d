"""
Arena module: scaled opponent generation, match resolution and the ladder.
"""

from gauntlet.modules.arena.matchmaking import OpponentGenerator, calculate_rewards
from gauntlet.modules.arena.models import ArenaMatchRecord, ArenaOpponent, PlayerArenaState
from gauntlet.modules.arena.service import ArenaService

__all__ = [
    "ArenaService",
    "OpponentGenerator",
    "calculate_rewards",
    "ArenaOpponent",
    "ArenaMatchRecord",
    "PlayerArenaState",
]
