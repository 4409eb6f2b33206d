"""
Damage and rounding formulas shared by the combat engine and encounter tuning.

Mitigation coefficients differ between armed (0.009 per defense point) and
unarmed (0.01) attacks; both live under ``combat.defense``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from gauntlet.modules.combat.models import CombatStats, Number, Weapon
from gauntlet.modules.combat.rng import SeededRNG


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity."""
    return math.floor(value + 0.5)


def round_to(value: float, places: int) -> float:
    """Round half-up to a fixed number of decimal places."""
    factor = 10 ** places
    return round_half_up(value * factor) / factor


@dataclass(frozen=True)
class DamageTuning:
    variance_min: float = 0.875
    variance_max: float = 1.125
    unarmed_defense_coefficient: float = 0.01
    armed_defense_coefficient: float = 0.009
    min_defense_multiplier: float = 0.1
    minimum_damage: int = 1

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> DamageTuning:
        if not data:
            return cls()
        variance = data.get("variance") or {}
        defense = data.get("defense") or {}
        return cls(
            variance_min=variance.get("min", cls.variance_min),
            variance_max=variance.get("max", cls.variance_max),
            unarmed_defense_coefficient=defense.get(
                "unarmed_coefficient", cls.unarmed_defense_coefficient
            ),
            armed_defense_coefficient=defense.get(
                "armed_coefficient", cls.armed_defense_coefficient
            ),
            min_defense_multiplier=defense.get(
                "min_multiplier", cls.min_defense_multiplier
            ),
            minimum_damage=data.get("minimum_damage", cls.minimum_damage),
        )


def defense_multiplier(defense: Number, coefficient: float, floor_value: float) -> float:
    return max(floor_value, 1 - defense * coefficient)


def roll_damage(
    attacker: CombatStats,
    defender: CombatStats,
    weapon: Optional[Weapon],
    rng: SeededRNG,
    tuning: DamageTuning,
) -> Tuple[int, Number, float]:
    """
    Roll one attack.

    Returns:
        (damage, raw roll, variance). The raw roll is the attack stat for
        unarmed hits and ``base_damage + attack * multiplier`` when armed.
    """
    variance = rng.next_float(tuning.variance_min, tuning.variance_max)

    if weapon is None:
        roll: Number = attacker.attack
        coefficient = tuning.unarmed_defense_coefficient
    else:
        roll = weapon.base_damage + attacker.attack * weapon.multiplier
        coefficient = tuning.armed_defense_coefficient

    mitigation = defense_multiplier(
        defender.defense, coefficient, tuning.min_defense_multiplier
    )
    damage = max(tuning.minimum_damage, math.floor(roll * variance * mitigation))
    return damage, roll, variance
