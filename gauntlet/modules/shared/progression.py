"""
Progression collaborator contract.

The progression system (levels, attribute allocation, experience curves)
lives outside the encounter core. Encounter services only need a player's
level, base attributes and derived stats, fetched through
`ProgressionProvider.get_or_create_player`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Protocol, runtime_checkable


@dataclass(frozen=True)
class BaseStats:
    """The six allocatable attributes."""

    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BaseStats:
        return cls(**{k: data[k] for k in cls.__dataclass_fields__ if k in data})


@dataclass(frozen=True)
class DerivedStats:
    """Combat-facing stats computed by the progression system."""

    health: float
    mana: float
    attack_power: float
    defense_power: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DerivedStats:
        return cls(
            health=data["health"],
            mana=data.get("mana", 0),
            attack_power=data["attack_power"],
            defense_power=data["defense_power"],
        )


@dataclass(frozen=True)
class PlayerProgression:
    """Snapshot of one player's progression as seen by the encounter core."""

    player_id: str
    level: int
    base_stats: BaseStats = field(default_factory=BaseStats)
    derived_stats: DerivedStats = field(
        default_factory=lambda: DerivedStats(
            health=100, mana=80, attack_power=20, defense_power=15
        )
    )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PlayerProgression:
        return cls(
            player_id=data["player_id"],
            level=data["level"],
            base_stats=BaseStats.from_dict(data.get("base_stats", {})),
            derived_stats=DerivedStats.from_dict(data["derived_stats"]),
        )


@runtime_checkable
class ProgressionProvider(Protocol):
    """Sole source of player combat power for the encounter services."""

    async def get_or_create_player(self, player_id: str) -> PlayerProgression:
        ...
