"""
Pytest Configuration and Fixtures for Gauntlet Tests
====================================================

Purpose
-------
Shared fixtures for the unit and integration suites: configuration,
event bus, in-memory stores, a fake progression collaborator, a
controllable clock and small dungeon catalogs with predictable fights.

Architecture Notes
------------------
- Battle outcomes in service tests are made deterministic by stat gaps
  (an overwhelming player or an overwhelming enemy), never by seed luck.
- Every fixture is function-scoped; services hold no module-level state.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from gauntlet.core.config.config import Config
from gauntlet.core.config.manager import ConfigManager
from gauntlet.core.event.bus import EventBus
from gauntlet.core.logging.logger import get_logger
from gauntlet.core.storage.memory import InMemoryStateStore
from gauntlet.modules.arena.service import ArenaService
from gauntlet.modules.combat.models import CombatRewards, CombatStats, EnemyTemplate, Weapon
from gauntlet.modules.dungeon.catalog import DungeonCatalog
from gauntlet.modules.dungeon.definitions import (
    BossDefinition,
    BossPhase,
    DungeonDefinition,
    DungeonFloor,
    FloorType,
    UnlockRequirements,
)
from gauntlet.modules.dungeon.service import DungeonService
from gauntlet.modules.shared.progression import BaseStats, DerivedStats, PlayerProgression

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ.setdefault("ENVIRONMENT", "testing")
    os.environ.setdefault("LOG_LEVEL", "WARNING")
    Config.reload()


# ============================================================================
# COLLABORATOR FAKES
# ============================================================================


class FakeProgressionProvider:
    """In-memory `ProgressionProvider` with per-player overrides."""

    def __init__(self, default_level: int = 20) -> None:
        self.default_level = default_level
        self._players: Dict[str, PlayerProgression] = {}
        self.calls: List[str] = []

    @staticmethod
    def derive(level: int, base: BaseStats) -> DerivedStats:
        return DerivedStats(
            health=base.constitution * 10 + level * 5,
            mana=base.intelligence * 8 + level * 3,
            attack_power=base.strength * 2 + level,
            defense_power=base.constitution * 1.5 + level * 0.5,
        )

    def set_player(
        self,
        player_id: str,
        level: int,
        health: Optional[float] = None,
        attack_power: Optional[float] = None,
        defense_power: Optional[float] = None,
    ) -> PlayerProgression:
        base = BaseStats()
        derived = self.derive(level, base)
        derived = DerivedStats(
            health=derived.health if health is None else health,
            mana=derived.mana,
            attack_power=derived.attack_power if attack_power is None else attack_power,
            defense_power=derived.defense_power if defense_power is None else defense_power,
        )
        progression = PlayerProgression(
            player_id=player_id, level=level, base_stats=base, derived_stats=derived
        )
        self._players[player_id] = progression
        return progression

    def make_champion(self, player_id: str, level: int = 20) -> PlayerProgression:
        """A player no floor enemy can survive or hurt meaningfully."""
        return self.set_player(player_id, level, health=1_000_000, attack_power=5_000)

    def make_weakling(self, player_id: str, level: int = 1) -> PlayerProgression:
        return self.set_player(player_id, level, health=1, attack_power=1, defense_power=0)

    async def get_or_create_player(self, player_id: str) -> PlayerProgression:
        self.calls.append(player_id)
        if player_id not in self._players:
            self.set_player(player_id, self.default_level)
        return self._players[player_id]


class FakeClock:
    """Deterministic clock; advances one second per call."""

    def __init__(self, start: Optional[datetime] = None, step_seconds: float = 1.0) -> None:
        self.current = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step_seconds)

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value

    def advance(self, **kwargs: float) -> None:
        self.current = self.current + timedelta(**kwargs)


class SequenceRNG:
    """Replays a fixed list of floats, then repeats the last one."""

    def __init__(self, values: List[float]) -> None:
        self._values = list(values)
        self.calls = 0

    def __call__(self) -> float:
        index = min(self.calls, len(self._values) - 1)
        self.calls += 1
        return self._values[index]


# ============================================================================
# DEFINITION BUILDERS
# ============================================================================


def make_enemy(
    enemy_id: str,
    health: int,
    attack: int,
    defense: int = 0,
    speed: int = 1,
    weapon: Optional[Weapon] = None,
) -> EnemyTemplate:
    return EnemyTemplate(
        id=enemy_id,
        name=enemy_id.replace("-", " ").title(),
        stats=CombatStats(
            health=health, max_health=health, attack=attack, defense=defense, speed=speed
        ),
        weapon=weapon,
    )


def weak_enemy(enemy_id: str) -> EnemyTemplate:
    return make_enemy(enemy_id, health=10, attack=1)


def brute_enemy(enemy_id: str) -> EnemyTemplate:
    """Acts first and one-shots any player."""
    return make_enemy(enemy_id, health=10_000_000, attack=10_000_000, speed=100_000)


def build_trial_dungeon(
    phase_two_enemy: Optional[EnemyTemplate] = None,
    floor_two_enemy: Optional[EnemyTemplate] = None,
    floor_two_min_level: int = 0,
) -> DungeonDefinition:
    """
    Three floors: two combat floors and a two-phase boss.

    Phase 2 defaults to a sturdy enemy that only a high-health player beats.
    """
    boss = BossDefinition(
        id="trial-warden",
        name="Trial Warden",
        phases=(
            BossPhase(
                phase=1,
                enemy=weak_enemy("warden-shell"),
                description="The shell cracks.",
                rewards=CombatRewards(100, 10, ["warden-shard"]),
                drops=("warden-shard",),
            ),
            BossPhase(
                phase=2,
                enemy=phase_two_enemy
                or make_enemy("warden-core", health=2_000, attack=60),
                description="The core awakens.",
                rewards=CombatRewards(200, 20, ["warden-heart"]),
                drops=("warden-heart",),
            ),
        ),
        rewards=CombatRewards(300, 30, ["warden-crown"]),
        drops=("warden-crown",),
    )
    return DungeonDefinition(
        id="trial-halls",
        name="Trial Halls",
        area="greenwood",
        unlock_requirements=UnlockRequirements(min_level=1),
        floors=(
            DungeonFloor(
                floor=1,
                name="Gate",
                type=FloorType.COMBAT,
                enemy=weak_enemy("gate-rat"),
                rewards=CombatRewards(10, 1, ["rat-tail"]),
            ),
            DungeonFloor(
                floor=2,
                name="Hall",
                type=FloorType.COMBAT,
                enemy=floor_two_enemy or weak_enemy("hall-bat"),
                rewards=CombatRewards(20, 2, ["bat-wing"]),
                unlock_requirements=(
                    UnlockRequirements(min_level=floor_two_min_level)
                    if floor_two_min_level
                    else None
                ),
            ),
            DungeonFloor(
                floor=3,
                name="Throne",
                type=FloorType.BOSS,
                boss=boss,
                rewards=CombatRewards(50, 5, ["throne-key"]),
            ),
        ),
    )


def build_sequel_dungeon() -> DungeonDefinition:
    return DungeonDefinition(
        id="trial-depths",
        name="Trial Depths",
        area="ashen_waste",
        unlock_requirements=UnlockRequirements(min_level=5, prerequisites=("trial-halls",)),
        floors=(
            DungeonFloor(
                floor=1,
                name="Depths",
                type=FloorType.COMBAT,
                enemy=weak_enemy("depth-crawler"),
                rewards=CombatRewards(5, 5, []),
            ),
        ),
    )


# ============================================================================
# CORE FIXTURES
# ============================================================================


@pytest.fixture
def config_manager() -> ConfigManager:
    return ConfigManager.from_yaml()


@pytest.fixture
def event_bus(config_manager: ConfigManager) -> EventBus:
    return EventBus(config_manager)


@pytest.fixture
def test_logger():
    return get_logger("tests.gauntlet")


@pytest.fixture
def mock_event_bus(mocker):
    """
    Mock EventBus for isolating services from listeners.

    `publish` is an AsyncMock so emitted events can be asserted directly.
    """
    mock_bus = mocker.MagicMock()
    mock_bus.publish = mocker.AsyncMock(return_value=[])
    mock_bus.subscribe = mocker.MagicMock()
    return mock_bus


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def progression() -> FakeProgressionProvider:
    return FakeProgressionProvider()


@pytest.fixture
def dungeon_store() -> InMemoryStateStore:
    return InMemoryStateStore("dungeon_state")


@pytest.fixture
def arena_store() -> InMemoryStateStore:
    return InMemoryStateStore("arena_state")


DOMAIN_EVENTS = (
    "dungeon.run_started",
    "dungeon.run_reset",
    "dungeon.floor_resolved",
    "dungeon.completed",
    "arena.match_recorded",
    "combat.simulated",
)


@pytest.fixture
def captured_events(event_bus: EventBus) -> List[tuple]:
    """Every domain event published on the bus, as (name, payload) pairs."""
    events: List[tuple] = []

    def _recorder(name: str):
        async def _record(payload):
            events.append((name, payload))

        return _record

    for name in DOMAIN_EVENTS:
        event_bus.subscribe(name, _recorder(name), identifier=f"capture-{name}")
    return events


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================


@pytest.fixture
def trial_catalog() -> DungeonCatalog:
    return DungeonCatalog([build_trial_dungeon(), build_sequel_dungeon()])


@pytest.fixture
def make_dungeon_service(
    dungeon_store, progression, config_manager, event_bus, test_logger, clock
):
    def _factory(catalog: Optional[DungeonCatalog] = None) -> DungeonService:
        return DungeonService(
            dungeon_store,
            progression,
            config_manager,
            event_bus,
            test_logger,
            catalog=catalog,
            clock=clock,
        )

    return _factory


@pytest.fixture
def dungeon_service(make_dungeon_service, trial_catalog) -> DungeonService:
    return make_dungeon_service(trial_catalog)


@pytest.fixture
def make_arena_service(
    arena_store, progression, config_manager, event_bus, test_logger, clock
):
    def _factory(rng=None) -> ArenaService:
        return ArenaService(
            arena_store,
            progression,
            config_manager,
            event_bus,
            test_logger,
            clock=clock,
            rng=rng,
        )

    return _factory


@pytest.fixture
def arena_service(make_arena_service) -> ArenaService:
    return make_arena_service(SequenceRNG([0.5]))
