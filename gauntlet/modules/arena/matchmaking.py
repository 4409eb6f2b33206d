"""
Arena opponent generation and reward bands.

Opponents scale from the challenger's own arena-tuned stats by a random
modifier in ``[-spread, +spread]``. Random draws happen in a fixed order
(modifier, seed, descriptor, title) so an injected RNG reproduces the same
opponent.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence

from gauntlet.modules.arena.models import ArenaOpponent
from gauntlet.modules.combat.formulas import round_half_up, round_to
from gauntlet.modules.combat.models import CombatRewards, CombatStats, Weapon

RandomSource = Callable[[], float]

_DEFAULT_POSITIVE = ("Fierce", "Swift", "Resolute")
_DEFAULT_NEGATIVE = ("Wary", "Measured", "Calm")
_DEFAULT_TITLES = ("Gladiator", "Duelist", "Contender", "Veteran")


@dataclass(frozen=True)
class MatchmakingTuning:
    modifier_spread: float = 0.1
    seed_range: int = 1_000_000
    positive_descriptors: Sequence[str] = _DEFAULT_POSITIVE
    negative_descriptors: Sequence[str] = _DEFAULT_NEGATIVE
    titles: Sequence[str] = _DEFAULT_TITLES

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> MatchmakingTuning:
        if not data:
            return cls()
        descriptors = data.get("descriptors") or {}
        return cls(
            modifier_spread=data.get("modifier_spread", cls.modifier_spread),
            seed_range=data.get("seed_range", cls.seed_range),
            positive_descriptors=tuple(descriptors.get("positive") or _DEFAULT_POSITIVE),
            negative_descriptors=tuple(descriptors.get("negative") or _DEFAULT_NEGATIVE),
            titles=tuple(data.get("titles") or _DEFAULT_TITLES),
        )


@dataclass(frozen=True)
class RewardTuning:
    win_experience_base: float = 160
    win_experience_per_level: float = 25
    win_gold_base: float = 60
    win_gold_per_level: float = 12
    loss_fraction: float = 0.25
    loss_min_experience: int = 20
    loss_min_gold: int = 10
    token_levels_per_tier: int = 4

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> RewardTuning:
        if not data:
            return cls()
        known = cls.__dataclass_fields__
        return cls(**{key: value for key, value in data.items() if key in known})


def random_modifier(rng: RandomSource, spread: float) -> float:
    return round_to(rng() * spread * 2 - spread, 3)


def scale_opponent_stats(player: CombatStats, level: int, modifier: float) -> CombatStats:
    scalar = 1 + modifier * 0.6
    level_bonus = max(level, 1)

    health = max(90, round_half_up(player.max_health * scalar + level_bonus * 6))
    attack = max(
        14, round_half_up(player.attack * (0.9 + modifier * 0.5) + level_bonus * 2)
    )
    defense = max(
        10, round_half_up(player.defense * (0.9 + modifier * 0.4) + level_bonus * 1.6)
    )
    speed = max(
        9, round_half_up(player.speed * (0.95 + modifier * 0.3) + level_bonus)
    )
    return CombatStats(
        health=health, max_health=health, attack=attack, defense=defense, speed=speed
    )


def opponent_weapon(level: int, modifier: float) -> Weapon:
    return Weapon(
        id=f"arena-weapon-{level}",
        name="Arena Forged Weapon",
        base_damage=round_half_up(9 + level * 1.7 + modifier * 5),
        multiplier=round_to(1 + level * 0.035 + modifier * 0.05, 2),
    )


@dataclass
class OpponentGenerator:
    """Builds scaled opponents from a challenger's stats and level."""

    rng: RandomSource
    tuning: MatchmakingTuning = field(default_factory=MatchmakingTuning)

    def generate(
        self, player_id: str, player_level: int, player_stats: CombatStats
    ) -> ArenaOpponent:
        modifier = random_modifier(self.rng, self.tuning.modifier_spread)
        level = max(1, round_half_up(player_level * (1 + modifier)))
        stats = scale_opponent_stats(player_stats, level, modifier)
        weapon = opponent_weapon(level, modifier)
        seed = abs(math.floor(self.rng() * self.tuning.seed_range))

        return ArenaOpponent(
            id=f"arena-opponent-{player_id}-{seed}",
            name=self._name(level, modifier),
            level=level,
            stats=stats,
            weapon=weapon,
            modifier=modifier,
            seed=seed,
        )

    def _name(self, level: int, modifier: float) -> str:
        descriptors: Sequence[str] = (
            self.tuning.positive_descriptors
            if modifier >= 0
            else self.tuning.negative_descriptors
        )
        descriptor = descriptors[math.floor(self.rng() * len(descriptors))]
        title = self.tuning.titles[math.floor(self.rng() * len(self.tuning.titles))]
        return f"{descriptor} {title} Lv.{level}"


def calculate_rewards(level: int, won: bool, tuning: RewardTuning) -> CombatRewards:
    """Full band plus a level-tiered token on a win; a fraction on a loss."""
    experience = round_half_up(
        tuning.win_experience_base + level * tuning.win_experience_per_level
    )
    gold = round_half_up(tuning.win_gold_base + level * tuning.win_gold_per_level)

    if won:
        tier = max(1, math.ceil(level / tuning.token_levels_per_tier))
        return CombatRewards(experience=experience, gold=gold, items=[f"arena-token-{tier}"])

    return CombatRewards(
        experience=max(
            tuning.loss_min_experience, round_half_up(experience * tuning.loss_fraction)
        ),
        gold=max(tuning.loss_min_gold, round_half_up(gold * tuning.loss_fraction)),
        items=[],
    )
