"""
CombatEngine: deterministic turn-based battle resolver.

Purpose
-------
Play one battle between two combatants to conclusion and return the winner,
loser, round count and a full per-attack log. The engine knows nothing about
dungeons, arenas or persistence; reward payloads pass through verbatim.

Responsibilities
----------------
- Copy both combatants at the boundary with health restored to max.
- Fix turn order for the whole encounter (faster side first, explicit
  `Initiative` on ties).
- Roll damage per attack through the seeded RNG and log every hit.

Design Decisions
----------------
- A whole encounter replays bit-for-bit from its seed.
- Minimum damage per hit is 1, so every battle terminates.
- When the second mover lands the killing blow the round counter is not
  advanced: `turns` is the round in which the battle ended.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from gauntlet.core.logging.logger import get_logger
from gauntlet.modules.combat.formulas import DamageTuning, roll_damage
from gauntlet.modules.combat.models import (
    ActionType,
    CombatAction,
    Combatant,
    CombatLogEntry,
    CombatResult,
    CombatRewards,
    Initiative,
    clone_combatant,
)
from gauntlet.modules.combat.rng import SeededRNG

logger = get_logger(__name__)


class CombatEngine:
    """
    One engine per encounter (or per boss phase).

    Args:
        seed: RNG seed; epoch milliseconds when omitted
        tuning: Damage tuning; defaults match ``config/combat.yaml``
        clock: Timestamp source for log entries
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        tuning: Optional[DamageTuning] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.rng = SeededRNG(seed)
        self.tuning = tuning or DamageTuning()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logs: List[CombatLogEntry] = []
        self._turn = 1

    @property
    def seed(self) -> int:
        return self.rng.initial_seed

    def resolve_combat(
        self,
        attacker: Combatant,
        defender: Combatant,
        rewards: Optional[CombatRewards] = None,
        initiative: Initiative = Initiative.HOME,
    ) -> CombatResult:
        """
        Resolve a battle between ``attacker`` (HOME) and ``defender`` (AWAY).

        Caller objects are never mutated.
        """
        self._logs = []
        self._turn = 1

        home = clone_combatant(attacker)
        away = clone_combatant(defender)
        first, second = self._turn_order(home, away, initiative)

        while True:
            self._execute_attack(first, second)
            if second.stats.is_defeated:
                break

            self._execute_attack(second, first)
            if first.stats.is_defeated:
                break

            self._turn += 1

        if home.stats.is_defeated:
            winner, loser = away.id, home.id
        else:
            winner, loser = home.id, away.id

        logger.debug(
            "Combat resolved",
            extra={
                "seed": self.seed,
                "winner": winner,
                "loser": loser,
                "turns": self._turn,
                "attacks": len(self._logs),
            },
        )

        return CombatResult(
            winner=winner,
            loser=loser,
            turns=self._turn,
            logs=list(self._logs),
            rewards=(rewards or CombatRewards()).copy(),
        )

    def get_logs(
        self, start_turn: Optional[int] = None, end_turn: Optional[int] = None
    ) -> List[CombatLogEntry]:
        """Log of the last encounter, optionally filtered to a turn range."""
        return [
            entry
            for entry in self._logs
            if (start_turn is None or entry.turn >= start_turn)
            and (end_turn is None or entry.turn <= end_turn)
        ]

    # ========================================================================
    # Internals
    # ========================================================================

    @staticmethod
    def _turn_order(
        home: Combatant, away: Combatant, initiative: Initiative
    ) -> Tuple[Combatant, Combatant]:
        if home.stats.speed > away.stats.speed:
            return home, away
        if away.stats.speed > home.stats.speed:
            return away, home
        if initiative is Initiative.AWAY:
            return away, home
        return home, away

    def _execute_attack(self, attacker: Combatant, target: Combatant) -> None:
        damage, roll, variance = roll_damage(
            attacker.stats, target.stats, attacker.weapon, self.rng, self.tuning
        )
        target.stats.health = max(0, target.stats.health - damage)

        action = CombatAction(
            attacker_id=attacker.id,
            target_id=target.id,
            type=ActionType.ATTACK,
            damage=damage,
            roll=roll,
            variance=variance,
        )
        remaining: Dict[str, Any] = {
            attacker.id: attacker.stats.health,
            target.id: target.stats.health,
        }
        self._logs.append(
            CombatLogEntry(
                turn=self._turn,
                timestamp=self._clock(),
                action=action,
                description=f"{attacker.name} attacks {target.name} for {damage} damage!",
                remaining_health=remaining,
            )
        )
