"""
Player combat-stat derivation.

Both encounter orchestrators turn a `PlayerProgression` snapshot into a
`Combatant` with the same floor-clamped linear pattern; only the tuning
differs (``dungeon.player_tuning`` vs ``arena.player_tuning``). Clamps keep
low-level players viable without any equipment.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from gauntlet.modules.combat.formulas import round_to
from gauntlet.modules.combat.models import Combatant, CombatStats, Weapon
from gauntlet.modules.shared.progression import PlayerProgression


def _from_mapping(cls, data: Optional[Dict[str, Any]]):
    if not data:
        return cls()
    known = {f.name for f in fields(cls)}
    return cls(**{key: value for key, value in data.items() if key in known})


@dataclass(frozen=True)
class StatTuning:
    combatant_name: str = "Adventurer"
    min_health: float = 50
    attack_base: float = 8
    attack_per_level: float = 1
    defense_divisor: float = 1.5
    defense_base: float = 6
    defense_per_level: float = 1
    speed_dexterity_weight: float = 1.0
    speed_wisdom_weight: float = 0.5
    speed_per_level: float = 1
    min_speed: float = 8

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> StatTuning:
        return _from_mapping(cls, data)


@dataclass(frozen=True)
class WeaponTuning:
    id: str = "adventurer-blade"
    name: str = "Adventurer Blade"
    base_damage: float = 8
    damage_per_level: float = 1.5
    multiplier: float = 1.0
    multiplier_per_level: float = 0.05

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> WeaponTuning:
        return _from_mapping(cls, data)


def derive_combat_stats(progression: PlayerProgression, tuning: StatTuning) -> CombatStats:
    derived = progression.derived_stats
    base = progression.base_stats
    level = progression.level

    health = max(derived.health, tuning.min_health)
    attack = max(
        math.floor(derived.attack_power),
        tuning.attack_base + tuning.attack_per_level * level,
    )
    defense = max(
        math.floor(derived.defense_power / tuning.defense_divisor),
        tuning.defense_base + tuning.defense_per_level * level,
    )
    speed_base = (
        base.dexterity * tuning.speed_dexterity_weight
        + base.wisdom * tuning.speed_wisdom_weight
    )
    speed = max(
        math.floor(speed_base / 2) + tuning.speed_per_level * level,
        tuning.min_speed,
    )
    return CombatStats(
        health=health,
        max_health=health,
        attack=attack,
        defense=defense,
        speed=speed,
    )


def derive_weapon(progression: PlayerProgression, tuning: WeaponTuning) -> Weapon:
    level = progression.level
    return Weapon(
        id=tuning.id,
        name=tuning.name,
        base_damage=tuning.base_damage + math.floor(level * tuning.damage_per_level),
        multiplier=round_to(tuning.multiplier + level * tuning.multiplier_per_level, 2),
    )


def build_player_combatant(
    progression: PlayerProgression,
    stat_tuning: StatTuning,
    weapon_tuning: WeaponTuning,
) -> Combatant:
    return Combatant(
        id=progression.player_id,
        name=stat_tuning.combatant_name,
        stats=derive_combat_stats(progression, stat_tuning),
        weapon=derive_weapon(progression, weapon_tuning),
        is_player=True,
    )
