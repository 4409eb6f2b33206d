"""
Arena ladder data models.

`PlayerArenaState` is the persisted document; its ``history`` holds
`ArenaMatchRecord` snapshots newest-first. `ArenaOpponent` is transient but
embedded in each record so a match can be replayed from its seed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from gauntlet.modules.combat.models import (
    Combatant,
    CombatLogEntry,
    CombatRewards,
    CombatStats,
    Weapon,
)


@dataclass(frozen=True)
class ArenaOpponent:
    id: str
    name: str
    level: int
    stats: CombatStats
    weapon: Weapon
    modifier: float
    seed: int

    def to_combatant(self) -> Combatant:
        return Combatant(
            id=self.id,
            name=self.name,
            stats=CombatStats.from_dict(self.stats.to_dict()),
            weapon=self.weapon,
            is_player=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "stats": self.stats.to_dict(),
            "weapon": self.weapon.to_dict(),
            "modifier": self.modifier,
            "seed": self.seed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ArenaOpponent:
        return cls(
            id=data["id"],
            name=data["name"],
            level=data["level"],
            stats=CombatStats.from_dict(data["stats"]),
            weapon=Weapon.from_dict(data["weapon"]),
            modifier=data["modifier"],
            seed=data["seed"],
        )


@dataclass(frozen=True)
class ArenaMatchRecord:
    match_id: str
    player_id: str
    opponent: ArenaOpponent
    outcome: str
    turns: int
    rewards: CombatRewards
    timestamp: datetime
    logs: List[CombatLogEntry]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "player_id": self.player_id,
            "opponent": self.opponent.to_dict(),
            "outcome": self.outcome,
            "turns": self.turns,
            "rewards": self.rewards.to_dict(),
            "timestamp": self.timestamp.isoformat(),
            "logs": [entry.to_dict() for entry in self.logs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ArenaMatchRecord:
        return cls(
            match_id=data["match_id"],
            player_id=data["player_id"],
            opponent=ArenaOpponent.from_dict(data["opponent"]),
            outcome=data["outcome"],
            turns=data["turns"],
            rewards=CombatRewards.from_dict(data.get("rewards")),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            logs=[CombatLogEntry.from_dict(entry) for entry in data.get("logs") or []],
        )


@dataclass
class PlayerArenaState:
    player_id: str
    rating: int
    created_at: datetime
    updated_at: datetime
    wins: int = 0
    losses: int = 0
    streak: int = 0
    best_streak: int = 0
    history: List[ArenaMatchRecord] = field(default_factory=list)

    def record(self, match: ArenaMatchRecord, limit: int) -> None:
        """Prepend a match, evicting the oldest past ``limit``."""
        self.history = [match, *self.history][:limit]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "rating": self.rating,
            "wins": self.wins,
            "losses": self.losses,
            "streak": self.streak,
            "best_streak": self.best_streak,
            "history": [match.to_dict() for match in self.history],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PlayerArenaState:
        return cls(
            player_id=data["player_id"],
            rating=data["rating"],
            wins=data.get("wins", 0),
            losses=data.get("losses", 0),
            streak=data.get("streak", 0),
            best_streak=data.get("best_streak", 0),
            history=[ArenaMatchRecord.from_dict(m) for m in data.get("history") or []],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
