"""
Combat Data Models
==================

Purpose
-------
Plain data structures exchanged between the combat engine and the encounter
services: stats, weapons, combatants, per-attack log entries and results.

Design Decisions
----------------
- `Weapon`, `CombatAction`, `CombatLogEntry` and `CombatResult` are frozen.
- `CombatStats` is mutable: the engine mutates only its own private copy.
- Every model round-trips through `to_dict()` / `from_dict()` using plain
  JSON types and ISO-8601 timestamps, which is the persisted form.
- Stat values are numbers rather than strictly ints: some tuned player
  stats (e.g. arena defense) carry a fractional part.

Dependencies
------------
None - pure data structures
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

Number = Union[int, float]


# ============================================================================
# Enums
# ============================================================================


class Initiative(str, Enum):
    """
    Which side acts first when both combatants have equal speed.

    HOME is the first combatant passed to the engine, AWAY the second.
    """

    HOME = "home"
    AWAY = "away"


class ActionType(str, Enum):
    ATTACK = "attack"


# ============================================================================
# Stats & Equipment
# ============================================================================


@dataclass
class CombatStats:
    health: Number
    max_health: Number
    attack: Number
    defense: Number
    speed: Number

    def restored(self) -> CombatStats:
        """Copy with health reset to max_health."""
        return replace(self, health=self.max_health)

    @property
    def is_defeated(self) -> bool:
        return self.health <= 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "health": self.health,
            "max_health": self.max_health,
            "attack": self.attack,
            "defense": self.defense,
            "speed": self.speed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CombatStats:
        max_health = data.get("max_health", data.get("health"))
        return cls(
            health=data.get("health", max_health),
            max_health=max_health,
            attack=data["attack"],
            defense=data["defense"],
            speed=data["speed"],
        )


@dataclass(frozen=True)
class Weapon:
    id: str
    name: str
    base_damage: Number
    multiplier: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "base_damage": self.base_damage,
            "multiplier": self.multiplier,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Weapon:
        return cls(
            id=data["id"],
            name=data["name"],
            base_damage=data["base_damage"],
            multiplier=data["multiplier"],
        )


@dataclass
class Combatant:
    """A participant in exactly one resolved battle."""

    id: str
    name: str
    stats: CombatStats
    weapon: Optional[Weapon] = None
    is_player: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "stats": self.stats.to_dict(),
            "weapon": self.weapon.to_dict() if self.weapon else None,
            "is_player": self.is_player,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Combatant:
        weapon = data.get("weapon")
        return cls(
            id=data["id"],
            name=data["name"],
            stats=CombatStats.from_dict(data["stats"]),
            weapon=Weapon.from_dict(weapon) if weapon else None,
            is_player=data.get("is_player", False),
        )


# ============================================================================
# Rewards
# ============================================================================


@dataclass
class CombatRewards:
    """Reward payload carried verbatim through a combat result."""

    experience: int = 0
    gold: int = 0
    items: List[str] = field(default_factory=list)

    def add(self, other: Optional[CombatRewards]) -> None:
        """Accumulate another payload into this one in place."""
        if other is None:
            return
        self.experience += other.experience
        self.gold += other.gold
        self.items.extend(other.items)

    def copy(self) -> CombatRewards:
        return CombatRewards(self.experience, self.gold, list(self.items))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "experience": self.experience,
            "gold": self.gold,
            "items": list(self.items),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> CombatRewards:
        if not data:
            return cls()
        return cls(
            experience=data.get("experience", 0),
            gold=data.get("gold", 0),
            items=list(data.get("items") or []),
        )


@dataclass(frozen=True)
class EnemyTemplate:
    """Static enemy definition; `to_combatant` builds a fresh battle copy."""

    id: str
    name: str
    stats: CombatStats
    weapon: Optional[Weapon] = None
    rewards: CombatRewards = field(default_factory=CombatRewards)

    def to_combatant(self, combatant_id: Optional[str] = None) -> Combatant:
        return Combatant(
            id=combatant_id or self.id,
            name=self.name,
            stats=replace(self.stats),
            weapon=self.weapon,
            is_player=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "stats": self.stats.to_dict(),
            "weapon": self.weapon.to_dict() if self.weapon else None,
            "rewards": self.rewards.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EnemyTemplate:
        weapon = data.get("weapon")
        return cls(
            id=data["id"],
            name=data["name"],
            stats=CombatStats.from_dict(data["stats"]),
            weapon=Weapon.from_dict(weapon) if weapon else None,
            rewards=CombatRewards.from_dict(data.get("rewards")),
        )


# ============================================================================
# Log & Result
# ============================================================================


@dataclass(frozen=True)
class CombatAction:
    attacker_id: str
    target_id: str
    type: ActionType
    damage: int
    roll: Number
    variance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attacker_id": self.attacker_id,
            "target_id": self.target_id,
            "type": self.type.value,
            "damage": self.damage,
            "roll": self.roll,
            "variance": self.variance,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CombatAction:
        return cls(
            attacker_id=data["attacker_id"],
            target_id=data["target_id"],
            type=ActionType(data.get("type", ActionType.ATTACK.value)),
            damage=data["damage"],
            roll=data["roll"],
            variance=data["variance"],
        )


@dataclass(frozen=True)
class CombatLogEntry:
    """One attack. Append-only within a result."""

    turn: int
    timestamp: datetime
    action: CombatAction
    description: str
    remaining_health: Dict[str, Number]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn,
            "timestamp": self.timestamp.isoformat(),
            "action": self.action.to_dict(),
            "description": self.description,
            "remaining_health": dict(self.remaining_health),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CombatLogEntry:
        return cls(
            turn=data["turn"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            action=CombatAction.from_dict(data["action"]),
            description=data["description"],
            remaining_health=dict(data["remaining_health"]),
        )


@dataclass(frozen=True)
class CombatResult:
    winner: str
    loser: str
    turns: int
    logs: List[CombatLogEntry]
    rewards: CombatRewards

    def with_rewards(self, rewards: CombatRewards) -> CombatResult:
        return replace(self, rewards=rewards.copy())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winner": self.winner,
            "loser": self.loser,
            "turns": self.turns,
            "logs": [entry.to_dict() for entry in self.logs],
            "rewards": self.rewards.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CombatResult:
        return cls(
            winner=data["winner"],
            loser=data["loser"],
            turns=data["turns"],
            logs=[CombatLogEntry.from_dict(entry) for entry in data["logs"]],
            rewards=CombatRewards.from_dict(data.get("rewards")),
        )


def clone_combatant(combatant: Combatant) -> Combatant:
    """Deep copy with health restored, for use inside a single battle."""
    clone = copy.deepcopy(combatant)
    clone.stats = clone.stats.restored()
    return clone
