"""
ArenaService: competitive ladder with scaled, reproducible opponents.

Purpose
-------
Generate opponents around a player's own strength, resolve matches through
the combat engine and keep each player's rating, streak and bounded match
history.

Responsibilities
----------------
- Opponent generation (`OpponentGenerator`) from arena-tuned player stats.
- Match resolution and reward bands (win: full band plus token; loss: a
  fraction, no items).
- Rating: win adds ``win_delta + modifier * modifier_weight``; loss removes
  ``loss_delta``. Either way the rating never drops below
  ``base_rating * floor_fraction``.
- History: newest first, truncated to ``history_limit``.
- Leaderboard ordered by rating, wins, then best streak (all descending).
- Emit ``arena.match_recorded``.

Design Decisions
----------------
- The random source is injected (``rng``) so matchmaking is reproducible.
- The engine receives an empty reward payload; rewards are attached to the
  result once the outcome is known.
- One store write per challenge; reads never write.
"""

from __future__ import annotations

import math
import random
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from gauntlet.core.infra.locks import KeyedLock
from gauntlet.core.validation import InputValidator
from gauntlet.modules.arena.matchmaking import (
    MatchmakingTuning,
    OpponentGenerator,
    RandomSource,
    RewardTuning,
    calculate_rewards,
)
from gauntlet.modules.arena.models import ArenaMatchRecord, ArenaOpponent, PlayerArenaState
from gauntlet.modules.combat.engine import CombatEngine
from gauntlet.modules.combat.formulas import DamageTuning, round_half_up
from gauntlet.modules.combat.models import CombatRewards
from gauntlet.modules.shared.base_service import BaseService, Clock, utc_now
from gauntlet.modules.shared.exceptions import ValidationError
from gauntlet.modules.shared.player_stats import (
    StatTuning,
    WeaponTuning,
    build_player_combatant,
    derive_combat_stats,
)

if TYPE_CHECKING:
    from logging import Logger

    from gauntlet.core.config.manager import ConfigManager
    from gauntlet.core.event.bus import EventBus
    from gauntlet.core.storage.base import StateStore
    from gauntlet.modules.shared.progression import ProgressionProvider


class ArenaService(BaseService):
    """
    Arena ladder.

    Args:
        store: Persistence for `PlayerArenaState` documents
        progression: Source of player level and stats
        config_manager: Reads ``arena.*`` and ``combat.*`` tuning
        event_bus: Receives ``arena.match_recorded``
        logger: Structured logger
        clock: Timestamp source
        rng: Float source in [0, 1) for matchmaking and match ids
    """

    def __init__(
        self,
        store: StateStore,
        progression: ProgressionProvider,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._store = store
        self._progression = progression
        self._clock = clock or utc_now
        self._rng: RandomSource = rng or random.random
        self._locks = KeyedLock()

        self.history_limit = self._config.get_int("arena.history_limit", 15)
        self.base_rating = self._config.get_int("arena.base_rating", 1000)
        self.win_delta = self._config.get_int("arena.rating.win_delta", 24)
        self.loss_delta = self._config.get_int("arena.rating.loss_delta", 14)
        self.modifier_weight = self._config.get_float("arena.rating.modifier_weight", 30)
        self.floor_fraction = self._config.get_float("arena.rating.floor_fraction", 0.5)
        self.validate_range(self.history_limit, "arena.history_limit", 1, 1000)

        self._generator = OpponentGenerator(
            self._rng, MatchmakingTuning.from_config(self.get_config("arena.matchmaking"))
        )
        self._reward_tuning = RewardTuning.from_config(self.get_config("arena.rewards"))
        self._stat_tuning = StatTuning.from_config(self.get_config("arena.player_tuning"))
        self._weapon_tuning = WeaponTuning.from_config(
            self.get_config("arena.player_weapon")
        )
        self._damage_tuning = DamageTuning.from_config(self.get_config("combat"))

    @property
    def rating_floor(self) -> int:
        return math.floor(self.base_rating * self.floor_fraction)

    # ========================================================================
    # Reads
    # ========================================================================

    async def get_state(self, player_id: str) -> Dict[str, Any]:
        """Player's ladder record; a fresh default when none exists (not persisted)."""
        player_id = InputValidator.validate_player_id(player_id)
        state = await self._load_state(player_id)
        return state.to_dict()

    async def get_leaderboard(self, limit: int = 10) -> List[Dict[str, Any]]:
        limit = InputValidator.validate_integer(limit, "limit", min_value=1, max_value=1000)
        states = [PlayerArenaState.from_dict(doc) for doc in await self._store.list_values()]
        states.sort(key=lambda s: (-s.rating, -s.wins, -s.best_streak))
        return [state.to_dict() for state in states[:limit]]

    # ========================================================================
    # Matches
    # ========================================================================

    async def generate_opponent(self, player_id: str) -> Dict[str, Any]:
        player_id = InputValidator.validate_player_id(player_id)
        opponent = await self._generate_opponent(player_id)
        return opponent.to_dict()

    async def _generate_opponent(self, player_id: str) -> ArenaOpponent:
        progression = await self._progression.get_or_create_player(player_id)
        player_stats = derive_combat_stats(progression, self._stat_tuning)
        return self._generator.generate(player_id, progression.level, player_stats)

    async def challenge(
        self,
        player_id: str,
        opponent: Optional[Union[ArenaOpponent, Dict[str, Any]]] = None,
        seed: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Fight one arena match and record it.

        Args:
            player_id: Challenger
            opponent: Pre-generated opponent, either an `ArenaOpponent` or the
                dict returned by `generate_opponent`; generated when omitted
            seed: Battle seed; defaults to the opponent's embedded seed

        Returns:
            ``{"outcome", "opponent", "result", "rewards", "match", "state"}``
        """
        player_id = InputValidator.validate_player_id(player_id)
        seed = InputValidator.validate_optional_seed(seed)
        if isinstance(opponent, dict):
            opponent = self._opponent_from_dict(opponent)

        async with self._locks.acquire(player_id):
            if opponent is None:
                opponent = await self._generate_opponent(player_id)
            battle_seed = seed if seed is not None else opponent.seed

            progression = await self._progression.get_or_create_player(player_id)
            player = build_player_combatant(
                progression, self._stat_tuning, self._weapon_tuning
            )

            engine = CombatEngine(battle_seed, tuning=self._damage_tuning, clock=self._clock)
            result = engine.resolve_combat(
                player, opponent.to_combatant(), CombatRewards()
            )
            won = result.winner == player.id
            outcome = "win" if won else "loss"
            result = result.with_rewards(
                calculate_rewards(opponent.level, won, self._reward_tuning)
            )

            state = await self._load_state(player_id)
            now = self._clock()
            match = ArenaMatchRecord(
                match_id=f"arena_{int(now.timestamp() * 1000)}_{math.floor(self._rng() * 1e6)}",
                player_id=player_id,
                opponent=opponent,
                outcome=outcome,
                turns=result.turns,
                rewards=result.rewards.copy(),
                timestamp=now,
                logs=result.logs,
            )
            state.record(match, self.history_limit)
            self._apply_rating(state, won, opponent.modifier)
            state.updated_at = now
            await self._store.set(player_id, state.to_dict())

        self.log_operation(
            "arena_challenge",
            player_id=player_id,
            opponent_id=opponent.id,
            outcome=outcome,
            rating=state.rating,
            turns=result.turns,
        )
        await self.emit_event(
            "arena.match_recorded",
            {
                "player_id": player_id,
                "match_id": match.match_id,
                "outcome": outcome,
                "rating": state.rating,
                "rewards": result.rewards.to_dict(),
            },
        )

        return {
            "outcome": outcome,
            "opponent": opponent.to_dict(),
            "result": result.to_dict(),
            "rewards": result.rewards.to_dict(),
            "match": match.to_dict(),
            "state": state.to_dict(),
        }

    # ========================================================================
    # State
    # ========================================================================

    @staticmethod
    def _opponent_from_dict(data: Dict[str, Any]) -> ArenaOpponent:
        try:
            return ArenaOpponent.from_dict(data)
        except (KeyError, TypeError) as exc:
            raise ValidationError("opponent", f"Malformed opponent payload: {exc}") from exc

    def _apply_rating(self, state: PlayerArenaState, won: bool, modifier: float) -> None:
        if won:
            state.wins += 1
            state.streak += 1
            state.best_streak = max(state.best_streak, state.streak)
            gain = round_half_up(self.win_delta + modifier * self.modifier_weight)
            state.rating = max(self.rating_floor, state.rating + gain)
        else:
            state.losses += 1
            state.streak = 0
            state.rating = max(self.rating_floor, state.rating - self.loss_delta)

    async def _load_state(self, player_id: str) -> PlayerArenaState:
        document = await self._store.get(player_id)
        if document is not None:
            return PlayerArenaState.from_dict(document)
        now = self._clock()
        return PlayerArenaState(
            player_id=player_id, rating=self.base_rating, created_at=now, updated_at=now
        )
