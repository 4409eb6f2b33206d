"""
Combat module: seeded RNG, the turn-based engine, simulations and log archive.
"""

from gauntlet.modules.combat.engine import CombatEngine
from gauntlet.modules.combat.formulas import DamageTuning, round_half_up
from gauntlet.modules.combat.log_archive import CombatLogArchive
from gauntlet.modules.combat.models import (
    CombatAction,
    Combatant,
    CombatLogEntry,
    CombatResult,
    CombatRewards,
    CombatStats,
    EnemyTemplate,
    Initiative,
    Weapon,
)
from gauntlet.modules.combat.rng import SeededRNG
from gauntlet.modules.combat.service import CombatService

__all__ = [
    "CombatEngine",
    "CombatService",
    "CombatLogArchive",
    "DamageTuning",
    "SeededRNG",
    "round_half_up",
    "CombatAction",
    "Combatant",
    "CombatLogEntry",
    "CombatResult",
    "CombatRewards",
    "CombatStats",
    "EnemyTemplate",
    "Initiative",
    "Weapon",
]
