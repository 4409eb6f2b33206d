"""
Static dungeon definitions.

Definitions are immutable once the catalog is built. Floors are 1-indexed
and strictly ordered; boss floors carry an ordered list of phases plus
aggregate boss rewards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from gauntlet.modules.combat.models import CombatRewards, EnemyTemplate


class FloorType(str, Enum):
    COMBAT = "combat"
    BOSS = "boss"


@dataclass(frozen=True)
class UnlockRequirements:
    min_level: int = 0
    prerequisites: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"min_level": self.min_level, "prerequisites": list(self.prerequisites)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> UnlockRequirements:
        if not data:
            return cls()
        return cls(
            min_level=data.get("min_level") or 0,
            prerequisites=tuple(data.get("prerequisites") or ()),
        )


@dataclass(frozen=True)
class BossPhase:
    phase: int
    enemy: EnemyTemplate
    description: str = ""
    rewards: CombatRewards = field(default_factory=CombatRewards)
    drops: Tuple[str, ...] = ()

    def combatant_id(self) -> str:
        return f"{self.enemy.id}-phase-{self.phase}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase,
            "description": self.description,
            "enemy": self.enemy.to_dict(),
            "rewards": self.rewards.to_dict(),
            "drops": list(self.drops),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BossPhase:
        return cls(
            phase=data["phase"],
            enemy=EnemyTemplate.from_dict(data["enemy"]),
            description=data.get("description", ""),
            rewards=CombatRewards.from_dict(data.get("rewards")),
            drops=tuple(data.get("drops") or ()),
        )


@dataclass(frozen=True)
class BossDefinition:
    id: str
    name: str
    phases: Tuple[BossPhase, ...]
    rewards: Optional[CombatRewards] = None
    drops: Tuple[str, ...] = ()

    def phase_index(self, phase_number: Optional[int]) -> int:
        """Index of a phase number; unknown or unset phases resume at 0."""
        for index, phase in enumerate(self.phases):
            if phase.phase == phase_number:
                return index
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phases": [phase.to_dict() for phase in self.phases],
            "rewards": self.rewards.to_dict() if self.rewards else None,
            "drops": list(self.drops),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BossDefinition:
        rewards = data.get("rewards")
        return cls(
            id=data["id"],
            name=data["name"],
            phases=tuple(BossPhase.from_dict(p) for p in data.get("phases") or ()),
            rewards=CombatRewards.from_dict(rewards) if rewards else None,
            drops=tuple(data.get("drops") or ()),
        )


@dataclass(frozen=True)
class DungeonFloor:
    floor: int
    name: str
    type: FloorType
    rewards: CombatRewards = field(default_factory=CombatRewards)
    description: str = ""
    enemy: Optional[EnemyTemplate] = None
    boss: Optional[BossDefinition] = None
    unlock_requirements: Optional[UnlockRequirements] = None

    @property
    def is_boss(self) -> bool:
        return self.type is FloorType.BOSS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "floor": self.floor,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
            "enemy": self.enemy.to_dict() if self.enemy else None,
            "boss": self.boss.to_dict() if self.boss else None,
            "rewards": self.rewards.to_dict(),
            "unlock_requirements": (
                self.unlock_requirements.to_dict() if self.unlock_requirements else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DungeonFloor:
        enemy = data.get("enemy")
        boss = data.get("boss")
        requirements = data.get("unlock_requirements")
        return cls(
            floor=data["floor"],
            name=data["name"],
            type=FloorType(data["type"]),
            rewards=CombatRewards.from_dict(data.get("rewards")),
            description=data.get("description", ""),
            enemy=EnemyTemplate.from_dict(enemy) if enemy else None,
            boss=BossDefinition.from_dict(boss) if boss else None,
            unlock_requirements=(
                UnlockRequirements.from_dict(requirements) if requirements else None
            ),
        )


@dataclass(frozen=True)
class DungeonDefinition:
    id: str
    name: str
    area: str
    floors: Tuple[DungeonFloor, ...]
    unlock_requirements: UnlockRequirements = field(default_factory=UnlockRequirements)

    @property
    def floor_count(self) -> int:
        return len(self.floors)

    def get_floor(self, floor_number: int) -> Optional[DungeonFloor]:
        for floor in self.floors:
            if floor.floor == floor_number:
                return floor
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "area": self.area,
            "unlock_requirements": self.unlock_requirements.to_dict(),
            "floors": [floor.to_dict() for floor in self.floors],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DungeonDefinition:
        floors: List[DungeonFloor] = [
            DungeonFloor.from_dict(floor) for floor in data.get("floors") or ()
        ]
        return cls(
            id=data["id"],
            name=data["name"],
            area=data.get("area", ""),
            floors=tuple(sorted(floors, key=lambda f: f.floor)),
            unlock_requirements=UnlockRequirements.from_dict(
                data.get("unlock_requirements")
            ),
        )
