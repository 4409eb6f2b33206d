"""
Per-player dungeon state.

`PlayerDungeonState` is the persisted document (one per player). It maps
dungeon ids to `DungeonProgress`, which outlives individual runs and holds
at most one `DungeonRunState`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from gauntlet.modules.combat.models import CombatRewards


class RunStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Outcome(str, Enum):
    WIN = "win"
    LOSS = "loss"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class DungeonRunState:
    dungeon_id: str
    started_at: datetime
    updated_at: datetime
    status: RunStatus = RunStatus.IN_PROGRESS
    current_floor: int = 1
    current_boss_phase: Optional[int] = None
    floors_cleared: List[int] = field(default_factory=list)
    accumulated_rewards: CombatRewards = field(default_factory=CombatRewards)
    last_outcome: Optional[Outcome] = None

    @classmethod
    def new(cls, dungeon_id: str, now: datetime) -> DungeonRunState:
        return cls(dungeon_id=dungeon_id, started_at=now, updated_at=now)

    @property
    def is_active(self) -> bool:
        return self.status is RunStatus.IN_PROGRESS

    def mark_cleared(self, floor_number: int) -> None:
        if floor_number not in self.floors_cleared:
            self.floors_cleared.append(floor_number)
            self.floors_cleared.sort()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dungeon_id": self.dungeon_id,
            "status": self.status.value,
            "current_floor": self.current_floor,
            "current_boss_phase": self.current_boss_phase,
            "floors_cleared": list(self.floors_cleared),
            "accumulated_rewards": self.accumulated_rewards.to_dict(),
            "started_at": _iso(self.started_at),
            "updated_at": _iso(self.updated_at),
            "last_outcome": self.last_outcome.value if self.last_outcome else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DungeonRunState:
        outcome = data.get("last_outcome")
        return cls(
            dungeon_id=data["dungeon_id"],
            status=RunStatus(data.get("status", RunStatus.IN_PROGRESS.value)),
            current_floor=data.get("current_floor", 1),
            current_boss_phase=data.get("current_boss_phase"),
            floors_cleared=list(data.get("floors_cleared") or []),
            accumulated_rewards=CombatRewards.from_dict(data.get("accumulated_rewards")),
            started_at=datetime.fromisoformat(data["started_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            last_outcome=Outcome(outcome) if outcome else None,
        )


@dataclass
class DungeonProgress:
    dungeon_id: str
    highest_floor_reached: int = 0
    times_completed: int = 0
    last_completed_at: Optional[datetime] = None
    last_reset_at: Optional[datetime] = None
    active_run: Optional[DungeonRunState] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dungeon_id": self.dungeon_id,
            "highest_floor_reached": self.highest_floor_reached,
            "times_completed": self.times_completed,
            "last_completed_at": _iso(self.last_completed_at),
            "last_reset_at": _iso(self.last_reset_at),
            "active_run": self.active_run.to_dict() if self.active_run else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DungeonProgress:
        run = data.get("active_run")
        return cls(
            dungeon_id=data["dungeon_id"],
            highest_floor_reached=data.get("highest_floor_reached", 0),
            times_completed=data.get("times_completed", 0),
            last_completed_at=_parse(data.get("last_completed_at")),
            last_reset_at=_parse(data.get("last_reset_at")),
            active_run=DungeonRunState.from_dict(run) if run else None,
        )


@dataclass
class PlayerDungeonState:
    player_id: str
    created_at: datetime
    updated_at: datetime
    dungeons: Dict[str, DungeonProgress] = field(default_factory=dict)

    def ensure_progress(self, dungeon_id: str) -> Tuple[DungeonProgress, bool]:
        """Return the progress entry, creating it if missing (flag is True when created)."""
        progress = self.dungeons.get(dungeon_id)
        if progress is not None:
            return progress, False
        progress = DungeonProgress(dungeon_id=dungeon_id)
        self.dungeons[dungeon_id] = progress
        return progress, True

    def times_completed(self, dungeon_id: str) -> int:
        progress = self.dungeons.get(dungeon_id)
        return progress.times_completed if progress else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "dungeons": {key: value.to_dict() for key, value in self.dungeons.items()},
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PlayerDungeonState:
        return cls(
            player_id=data["player_id"],
            dungeons={
                key: DungeonProgress.from_dict(value)
                for key, value in (data.get("dungeons") or {}).items()
            },
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
