"""
DungeonService: multi-floor dungeon run orchestration.

Purpose
-------
Own each player's per-dungeon progress and sequence floor attempts,
including multi-phase bosses that resume at the failed phase.

Responsibilities
----------------
- Unlock checks (player level and prerequisite completions).
- Run lifecycle: enter, idempotent re-entry, reset, completion.
- Floor sequencing: a floor can only be entered or resolved when it is the
  current objective of an in-progress run.
- Boss phases: each phase is an independent seeded battle; rewards of
  cleared phases are banked immediately so a later defeat keeps them.
- Emit ``dungeon.run_started``, ``dungeon.run_reset``,
  ``dungeon.floor_resolved`` and ``dungeon.completed``.

Design Decisions
----------------
- Every mutating call holds a per-player lock across its read-modify-write.
- Exactly one store write per successful mutating call; state creation is
  folded into that write. Precondition failures write nothing.
- `enter_floor` writes only when it initialises a boss phase.
- All returned values are fresh plain dicts (ISO-8601 timestamps).

Dependencies
------------
- StateStore: persisted `PlayerDungeonState` documents keyed by player id
- ProgressionProvider: level, base attributes and derived stats
- DungeonCatalog: static definitions
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from gauntlet.core.infra.locks import KeyedLock
from gauntlet.core.logging.logger import LogContext
from gauntlet.core.validation import InputValidator
from gauntlet.modules.combat.engine import CombatEngine
from gauntlet.modules.combat.formulas import DamageTuning
from gauntlet.modules.combat.models import Combatant, CombatResult, CombatRewards
from gauntlet.modules.dungeon.catalog import DungeonCatalog
from gauntlet.modules.dungeon.definitions import DungeonDefinition, DungeonFloor
from gauntlet.modules.dungeon.models import (
    DungeonProgress,
    DungeonRunState,
    Outcome,
    PlayerDungeonState,
    RunStatus,
)
from gauntlet.modules.shared.base_service import BaseService, Clock, utc_now
from gauntlet.modules.shared.exceptions import LockedError, SequenceError
from gauntlet.modules.shared.player_stats import (
    StatTuning,
    WeaponTuning,
    build_player_combatant,
)
from gauntlet.modules.shared.progression import PlayerProgression, ProgressionProvider

if TYPE_CHECKING:
    from logging import Logger

    from gauntlet.core.config.manager import ConfigManager
    from gauntlet.core.event.bus import EventBus
    from gauntlet.core.storage.base import StateStore


class DungeonService(BaseService):
    """
    Dungeon run state machine.

    Args:
        store: Persistence for `PlayerDungeonState` documents
        progression: Source of player level and stats
        config_manager: Reads ``dungeon.*`` and ``combat.*`` tuning
        event_bus: Receives ``dungeon.*`` events
        logger: Structured logger
        catalog: Static definitions; packaged YAML when omitted
        clock: Timestamp source
    """

    def __init__(
        self,
        store: StateStore,
        progression: ProgressionProvider,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        catalog: Optional[DungeonCatalog] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._store = store
        self._progression = progression
        self._catalog = catalog or DungeonCatalog.from_yaml()
        self._clock = clock or utc_now
        self._locks = KeyedLock()

        self._stat_tuning = StatTuning.from_config(
            self.get_config("dungeon.player_tuning")
        )
        self._weapon_tuning = WeaponTuning.from_config(
            self.get_config("dungeon.player_weapon")
        )
        self._damage_tuning = DamageTuning.from_config(self.get_config("combat"))

    # ========================================================================
    # Reads
    # ========================================================================

    def list_definitions(self) -> List[Dict[str, Any]]:
        return [definition.to_dict() for definition in self._catalog.all()]

    async def list_for_player(self, player_id: str) -> List[Dict[str, Any]]:
        """
        Every dungeon with the player's progress and unlock flag.

        Missing progress entries are created lazily; the state is persisted
        only when at least one was created.
        """
        player_id = InputValidator.validate_player_id(player_id)

        async with self._locks.acquire(player_id):
            progression = await self._progression.get_or_create_player(player_id)
            state = await self._load_state(player_id)

            created_any = False
            summaries = []
            for definition in self._catalog.all():
                progress, created = state.ensure_progress(definition.id)
                created_any = created_any or created
                summaries.append(
                    {
                        "definition": definition.to_dict(),
                        "progress": progress.to_dict(),
                        "unlocked": self._is_dungeon_unlocked(
                            definition, progression, state
                        ),
                    }
                )

            if created_any:
                await self._save_state(state)

        return summaries

    async def get_player_state(self, player_id: str) -> Dict[str, Any]:
        """Snapshot of the player's dungeon state; never writes."""
        player_id = InputValidator.validate_player_id(player_id)
        state = await self._load_state(player_id)
        return state.to_dict()

    # ========================================================================
    # Run lifecycle
    # ========================================================================

    async def enter_dungeon(
        self, player_id: str, dungeon_id: str, reset: bool = False
    ) -> Dict[str, Any]:
        """
        Enter a dungeon, starting a fresh run when needed.

        A new run starts when ``reset`` is set, no run exists, or the existing
        run is completed. Otherwise the in-progress run is returned unchanged.

        Raises:
            UnknownDefinitionError: Unknown dungeon
            LockedError: Level or prerequisite requirement unmet
        """
        player_id = InputValidator.validate_player_id(player_id)
        definition = self._catalog.get(dungeon_id)

        async with self._locks.acquire(player_id):
            progression = await self._progression.get_or_create_player(player_id)
            state = await self._load_state(player_id)

            if not self._is_dungeon_unlocked(definition, progression, state):
                raise LockedError(
                    "dungeon", dungeon_id, self._lock_reason(definition, progression)
                )

            progress, _ = state.ensure_progress(dungeon_id)
            run = progress.active_run
            started = reset or run is None or not run.is_active
            if started:
                run = self._start_run(progress, dungeon_id)

            await self._save_state(state)
            snapshot = run.to_dict()

        if started:
            self.log_operation(
                "enter_dungeon", player_id=player_id, dungeon_id=dungeon_id, reset=reset
            )
            await self.emit_event(
                "dungeon.run_started",
                {"player_id": player_id, "dungeon_id": dungeon_id, "run": snapshot},
            )
        return snapshot

    async def reset_dungeon(self, player_id: str, dungeon_id: str) -> Dict[str, Any]:
        """Discard the active run and start over at floor 1."""
        player_id = InputValidator.validate_player_id(player_id)
        definition = self._catalog.get(dungeon_id)

        async with self._locks.acquire(player_id):
            state = await self._load_state(player_id)
            progress, _ = state.ensure_progress(definition.id)
            run = self._start_run(progress, definition.id)
            await self._save_state(state)
            snapshot = run.to_dict()

        self.log_operation("reset_dungeon", player_id=player_id, dungeon_id=dungeon_id)
        await self.emit_event(
            "dungeon.run_reset",
            {"player_id": player_id, "dungeon_id": dungeon_id, "run": snapshot},
        )
        return snapshot

    # ========================================================================
    # Floors
    # ========================================================================

    async def enter_floor(
        self, player_id: str, dungeon_id: str, floor_number: int
    ) -> Dict[str, Any]:
        """
        Validate entry to the current floor and derive the player combatant.

        Initialises the boss phase of an unstarted boss floor (the only case
        in which this call writes).

        Raises:
            UnknownDefinitionError: Unknown dungeon or floor
            SequenceError: No in-progress run, or floor is not the objective
            LockedError: Floor level requirement unmet
        """
        player_id = InputValidator.validate_player_id(player_id)
        floor_number = InputValidator.validate_positive_integer(floor_number, "floor_number")
        definition = self._catalog.get(dungeon_id)
        floor = self._catalog.get_floor(dungeon_id, floor_number)

        async with self._locks.acquire(player_id):
            progression = await self._progression.get_or_create_player(player_id)
            state = await self._load_state(player_id)
            progress = state.dungeons.get(definition.id)
            run = self._check_floor_access(
                "enter_floor", progress, floor, progression, dungeon_id
            )

            if floor.is_boss and run.current_boss_phase is None:
                run.current_boss_phase = floor.boss.phases[0].phase
                await self._save_state(state)

            combatant = self._build_player_combatant(progression)
            return {
                "floor": floor.to_dict(),
                "run": run.to_dict(),
                "player_combatant": combatant.to_dict(),
            }

    async def resolve_floor(
        self,
        player_id: str,
        dungeon_id: str,
        floor_number: int,
        seed: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Fight the current floor and advance the run on victory.

        Boss floors resume at ``run.current_boss_phase``; phase ``k`` (0-based
        index) fights with ``seed + k`` when a seed is given.

        Returns:
            ``outcome``, ``floor``, ``rewards_earned``, ``accumulated_rewards``,
            ``combat_results``, ``drops``, ``next_floor``, ``boss_phase``,
            ``completed`` and ``run``

        Raises:
            UnknownDefinitionError: Unknown dungeon or floor
            SequenceError: No in-progress run, or floor is out of order
            LockedError: Floor level requirement unmet
        """
        player_id = InputValidator.validate_player_id(player_id)
        floor_number = InputValidator.validate_positive_integer(floor_number, "floor_number")
        seed = InputValidator.validate_optional_seed(seed)
        definition = self._catalog.get(dungeon_id)
        floor = self._catalog.get_floor(dungeon_id, floor_number)

        async with LogContext(
            player_id=player_id, dungeon_id=dungeon_id, operation="resolve_floor"
        ):
            async with self._locks.acquire(player_id):
                progression = await self._progression.get_or_create_player(player_id)
                state = await self._load_state(player_id)
                progress = state.dungeons.get(definition.id)
                run = self._check_floor_access(
                    "resolve_floor", progress, floor, progression, dungeon_id
                )
                player = self._build_player_combatant(progression)

                if floor.is_boss:
                    attempt = self._fight_boss(run, floor, player, seed)
                else:
                    attempt = self._fight_floor(floor, player, seed)

                now = self._clock()
                run.updated_at = now
                if attempt.outcome is Outcome.LOSS:
                    run.last_outcome = Outcome.LOSS
                    next_floor: Optional[int] = run.current_floor
                    completed = False
                else:
                    next_floor, completed = self._advance_run(
                        progress, run, definition, floor_number, now
                    )
                run.accumulated_rewards.add(attempt.earned)
                await self._save_state(state)

                result = {
                    "outcome": attempt.outcome.value,
                    "floor": floor_number,
                    "rewards_earned": attempt.earned.to_dict(),
                    "accumulated_rewards": run.accumulated_rewards.to_dict(),
                    "combat_results": [r.to_dict() for r in attempt.results],
                    "drops": list(attempt.drops),
                    "next_floor": next_floor,
                    "boss_phase": (
                        run.current_boss_phase
                        if attempt.outcome is Outcome.LOSS
                        else None
                    ),
                    "completed": completed,
                    "run": run.to_dict(),
                }

            self.log_operation(
                "resolve_floor",
                player_id=player_id,
                dungeon_id=dungeon_id,
                floor_number=floor_number,
                outcome=attempt.outcome.value,
                battles=len(attempt.results),
                completed=completed,
            )

        await self.emit_event(
            "dungeon.floor_resolved",
            {
                "player_id": player_id,
                "dungeon_id": dungeon_id,
                "floor": floor_number,
                "outcome": attempt.outcome.value,
                "rewards_earned": result["rewards_earned"],
                "drops": result["drops"],
            },
        )
        if completed:
            await self.emit_event(
                "dungeon.completed",
                {
                    "player_id": player_id,
                    "dungeon_id": dungeon_id,
                    "times_completed": progress.times_completed,
                    "accumulated_rewards": result["accumulated_rewards"],
                },
            )
        return result

    # ========================================================================
    # Battles
    # ========================================================================

    def _engine(self, seed: Optional[int]) -> CombatEngine:
        return CombatEngine(seed, tuning=self._damage_tuning, clock=self._clock)

    def _fight_floor(
        self, floor: DungeonFloor, player: Combatant, seed: Optional[int]
    ) -> _FloorAttempt:
        attempt = _FloorAttempt()
        result = self._engine(seed).resolve_combat(
            player, floor.enemy.to_combatant(), floor.rewards
        )
        attempt.results.append(result)

        if result.winner != player.id:
            attempt.outcome = Outcome.LOSS
            return attempt

        attempt.bank(result.rewards)
        return attempt

    def _fight_boss(
        self,
        run: DungeonRunState,
        floor: DungeonFloor,
        player: Combatant,
        seed: Optional[int],
    ) -> _FloorAttempt:
        boss = floor.boss
        attempt = _FloorAttempt()

        if run.current_boss_phase is None:
            run.current_boss_phase = boss.phases[0].phase
        start = boss.phase_index(run.current_boss_phase)

        for index in range(start, len(boss.phases)):
            phase = boss.phases[index]
            phase_seed = seed + index if seed is not None else None
            result = self._engine(phase_seed).resolve_combat(
                player,
                phase.enemy.to_combatant(phase.combatant_id()),
                phase.rewards,
            )
            attempt.results.append(result)

            if result.winner != player.id:
                run.current_boss_phase = phase.phase
                attempt.outcome = Outcome.LOSS
                return attempt

            attempt.bank(result.rewards, extra_drops=phase.drops)
            has_next = index + 1 < len(boss.phases)
            run.current_boss_phase = boss.phases[index + 1].phase if has_next else None

        attempt.bank(floor.rewards)
        if boss.rewards is not None:
            attempt.bank(boss.rewards, extra_drops=boss.drops)
        return attempt

    def _advance_run(
        self,
        progress: DungeonProgress,
        run: DungeonRunState,
        definition: DungeonDefinition,
        floor_number: int,
        now: datetime,
    ) -> Tuple[Optional[int], bool]:
        run.last_outcome = Outcome.WIN
        run.mark_cleared(floor_number)

        if floor_number >= definition.floor_count:
            run.status = RunStatus.COMPLETED
            progress.times_completed += 1
            progress.last_completed_at = now
            next_floor = None
            completed = True
        else:
            run.current_floor = floor_number + 1
            run.current_boss_phase = None
            next_floor = run.current_floor
            completed = False

        progress.highest_floor_reached = max(progress.highest_floor_reached, floor_number)
        return next_floor, completed

    # ========================================================================
    # State & rules
    # ========================================================================

    async def _load_state(self, player_id: str) -> PlayerDungeonState:
        document = await self._store.get(player_id)
        if document is not None:
            return PlayerDungeonState.from_dict(document)
        now = self._clock()
        return PlayerDungeonState(player_id=player_id, created_at=now, updated_at=now)

    async def _save_state(self, state: PlayerDungeonState) -> None:
        state.updated_at = self._clock()
        await self._store.set(state.player_id, state.to_dict())

    def _start_run(self, progress: DungeonProgress, dungeon_id: str) -> DungeonRunState:
        now = self._clock()
        progress.active_run = DungeonRunState.new(dungeon_id, now)
        progress.last_reset_at = now
        return progress.active_run

    def _build_player_combatant(self, progression: PlayerProgression) -> Combatant:
        return build_player_combatant(progression, self._stat_tuning, self._weapon_tuning)

    @staticmethod
    def _is_dungeon_unlocked(
        definition: DungeonDefinition,
        progression: PlayerProgression,
        state: PlayerDungeonState,
    ) -> bool:
        requirements = definition.unlock_requirements
        if progression.level < requirements.min_level:
            return False
        return all(
            state.times_completed(prerequisite) > 0
            for prerequisite in requirements.prerequisites
        )

    @staticmethod
    def _lock_reason(
        definition: DungeonDefinition, progression: PlayerProgression
    ) -> str:
        requirements = definition.unlock_requirements
        if progression.level < requirements.min_level:
            return f"requires level {requirements.min_level}, player is {progression.level}"
        return f"requires completing {', '.join(requirements.prerequisites)}"

    @staticmethod
    def _check_floor_access(
        action: str,
        progress: Optional[DungeonProgress],
        floor: DungeonFloor,
        progression: PlayerProgression,
        dungeon_id: str,
    ) -> DungeonRunState:
        run = progress.active_run if progress else None
        if run is None or not run.is_active:
            raise SequenceError(
                action,
                f"no active run for dungeon '{dungeon_id}'",
                requested_floor=floor.floor,
            )

        if run.current_floor != floor.floor:
            raise SequenceError(
                action,
                "floor is not the current objective",
                expected_floor=run.current_floor,
                requested_floor=floor.floor,
            )

        requirements = floor.unlock_requirements
        if requirements is not None and progression.level < requirements.min_level:
            raise LockedError(
                "floor",
                floor.floor,
                f"requires level {requirements.min_level}, player is {progression.level}",
            )
        return run


class _FloorAttempt:
    """Working tally of one `resolve_floor` call."""

    def __init__(self) -> None:
        self.outcome = Outcome.WIN
        self.earned = CombatRewards()
        self.drops: List[str] = []
        self.results: List[CombatResult] = []

    def bank(self, rewards: CombatRewards, extra_drops: Iterable[str] = ()) -> None:
        self.earned.add(rewards)
        self.drops.extend(rewards.items)
        self.drops.extend(extra_drops)
