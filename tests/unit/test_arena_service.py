"""
Unit tests for the arena ladder: matchmaking, rewards, ratings and history.
"""

from datetime import datetime, timezone

import pytest

from gauntlet.modules.arena.matchmaking import (
    MatchmakingTuning,
    OpponentGenerator,
    RewardTuning,
    calculate_rewards,
    opponent_weapon,
    random_modifier,
    scale_opponent_stats,
)
from gauntlet.modules.arena.models import ArenaOpponent, PlayerArenaState
from gauntlet.modules.combat.models import CombatStats, Weapon
from gauntlet.modules.shared.exceptions import ValidationError
from tests.conftest import SequenceRNG

ARENA_STATS = CombatStats(health=150, max_health=150, attack=50, defense=38, speed=26)


def make_opponent(level=5, modifier=0.1, huge=False):
    if huge:
        stats = CombatStats(10_000_000, 10_000_000, 10_000_000, 0, 1000)
    else:
        stats = CombatStats(1, 1, 1, 0, 0)
    return ArenaOpponent(
        id="huge-opponent" if huge else "training-dummy",
        name="Colossus" if huge else "Training Dummy",
        level=level,
        stats=stats,
        weapon=Weapon("arena-weapon-5", "Arena Forged Weapon", 17, 1.18),
        modifier=modifier,
        seed=42,
    )


def stored_state(player_id, rating, wins=0, best_streak=0):
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return PlayerArenaState(
        player_id=player_id,
        rating=rating,
        created_at=now,
        updated_at=now,
        wins=wins,
        best_streak=best_streak,
    ).to_dict()


# ============================================================================
# MATCHMAKING
# ============================================================================


class TestMatchmaking:
    """Test opponent generation and reward bands."""

    def test_deterministic_opponent(self):
        generator = OpponentGenerator(SequenceRNG([0.75, 0.5, 0.0, 0.99]))

        opponent = generator.generate("p1", 20, ARENA_STATS)

        assert opponent.modifier == 0.05
        assert opponent.level == 21
        assert opponent.seed == 500000
        assert opponent.id == "arena-opponent-p1-500000"
        assert opponent.name == "Fierce Veteran Lv.21"
        assert opponent.weapon.id == "arena-weapon-21"

    def test_negative_modifier_uses_wary_descriptors(self):
        generator = OpponentGenerator(SequenceRNG([0.0, 0.5, 0.0, 0.0]))

        opponent = generator.generate("p1", 20, ARENA_STATS)

        assert opponent.modifier == -0.1
        assert opponent.level == 18
        assert opponent.name == "Wary Gladiator Lv.18"

    def test_modifier_bounds(self):
        assert random_modifier(lambda: 0.0, 0.1) == -0.1
        assert -0.1 <= random_modifier(lambda: 0.9999, 0.1) <= 0.1

    def test_stat_floors(self):
        weakling = CombatStats(1, 1, 1, 1, 1)

        stats = scale_opponent_stats(weakling, 1, 0.0)

        assert stats.to_dict() == {
            "health": 90,
            "max_health": 90,
            "attack": 14,
            "defense": 10,
            "speed": 9,
        }

    def test_opponent_weapon_scales_with_level(self):
        weapon = opponent_weapon(10, 0.0)

        assert weapon.base_damage == 26
        assert weapon.multiplier == 1.35

    def test_win_rewards(self):
        rewards = calculate_rewards(21, True, RewardTuning())

        assert rewards.to_dict() == {
            "experience": 685,
            "gold": 312,
            "items": ["arena-token-6"],
        }

    def test_loss_rewards(self):
        rewards = calculate_rewards(21, False, RewardTuning())

        assert rewards.to_dict() == {"experience": 171, "gold": 78, "items": []}

    def test_loss_reward_minimums(self):
        rewards = calculate_rewards(1, False, RewardTuning(loss_fraction=0.01))

        assert rewards.experience == 20
        assert rewards.gold == 10

    def test_tuning_from_packaged_config(self, config_manager):
        assert MatchmakingTuning.from_config(
            config_manager.get("arena.matchmaking")
        ) == MatchmakingTuning()
        assert RewardTuning.from_config(config_manager.get("arena.rewards")) == RewardTuning()


# ============================================================================
# SERVICE READS
# ============================================================================


@pytest.mark.asyncio
class TestArenaReads:
    """Test state reads and the leaderboard."""

    async def test_default_state_not_persisted(self, arena_service, arena_store):
        state = await arena_service.get_state("p1")

        assert state["rating"] == 1000
        assert state["history"] == []
        assert arena_store.write_count == 0

    async def test_leaderboard_ordering(self, arena_service, arena_store):
        await arena_store.set("a", stored_state("a", 1100, wins=2))
        await arena_store.set("b", stored_state("b", 1100, wins=5, best_streak=1))
        await arena_store.set("c", stored_state("c", 900, wins=9))
        await arena_store.set("d", stored_state("d", 1100, wins=5, best_streak=3))

        board = await arena_service.get_leaderboard()

        assert [entry["player_id"] for entry in board] == ["d", "b", "a", "c"]

    async def test_leaderboard_limit(self, arena_service, arena_store):
        for index in range(5):
            await arena_store.set(f"p{index}", stored_state(f"p{index}", 1000 + index))

        board = await arena_service.get_leaderboard(limit=2)

        assert [entry["player_id"] for entry in board] == ["p4", "p3"]

    async def test_leaderboard_limit_validated(self, arena_service):
        with pytest.raises(ValidationError):
            await arena_service.get_leaderboard(limit=0)

    async def test_generate_opponent(self, make_arena_service):
        service = make_arena_service(SequenceRNG([0.75, 0.5, 0.0, 0.99]))

        opponent = await service.generate_opponent("p1")

        assert opponent["name"] == "Fierce Veteran Lv.21"
        assert opponent["seed"] == 500000


# ============================================================================
# CHALLENGES
# ============================================================================


@pytest.mark.asyncio
class TestArenaChallenge:
    """Test match resolution, ratings and history."""

    async def test_win_updates_rating_and_rewards(self, arena_service, arena_store):
        response = await arena_service.challenge("p1", make_opponent())

        assert response["outcome"] == "win"
        assert response["rewards"] == {
            "experience": 285,
            "gold": 120,
            "items": ["arena-token-2"],
        }
        assert response["result"]["rewards"] == response["rewards"]
        state = response["state"]
        assert state["rating"] == 1027
        assert state["wins"] == 1
        assert state["streak"] == 1
        assert state["best_streak"] == 1
        assert arena_store.write_count == 1

    async def test_loss_updates_rating(self, arena_service):
        response = await arena_service.challenge("p1", make_opponent(huge=True))

        assert response["outcome"] == "loss"
        assert response["rewards"] == {"experience": 71, "gold": 30, "items": []}
        assert response["state"]["rating"] == 986
        assert response["state"]["losses"] == 1

    async def test_rating_floor(self, arena_service, arena_store):
        await arena_store.set("p1", stored_state("p1", 505))

        response = await arena_service.challenge("p1", make_opponent(huge=True))

        assert response["state"]["rating"] == 500
        assert arena_service.rating_floor == 500

    async def test_rating_floor_holds_on_negative_modifier_win(
        self, arena_service, arena_store
    ):
        await arena_store.set("p1", stored_state("p1", 502))

        response = await arena_service.challenge("p1", make_opponent(modifier=-1.0))

        assert response["outcome"] == "win"
        assert response["state"]["rating"] == 500
        assert response["state"]["wins"] == 1

    async def test_challenge_generated_opponent(self, make_arena_service, arena_store):
        service = make_arena_service(SequenceRNG([0.5]))
        opponent = await service.generate_opponent("p1")

        response = await service.challenge("p1", opponent)
        replay = await service.challenge("p2", ArenaOpponent.from_dict(opponent))

        assert response["opponent"] == opponent
        assert response["match"]["opponent"]["seed"] == opponent["seed"]
        assert [log["action"]["damage"] for log in response["result"]["logs"]] == [
            log["action"]["damage"] for log in replay["result"]["logs"]
        ]
        assert arena_store.write_count == 2

    async def test_malformed_opponent_payload(self, arena_service, arena_store):
        with pytest.raises(ValidationError):
            await arena_service.challenge("p1", {"id": "ghost"})

        assert arena_store.write_count == 0

    async def test_streaks(self, arena_service):
        await arena_service.challenge("p1", make_opponent())
        await arena_service.challenge("p1", make_opponent())
        response = await arena_service.challenge("p1", make_opponent(huge=True))

        state = response["state"]
        assert state["wins"] == 2
        assert state["losses"] == 1
        assert state["streak"] == 0
        assert state["best_streak"] == 2

    async def test_history_newest_first_and_truncated(
        self, config_manager, make_arena_service
    ):
        config_manager.set_override("arena.history_limit", 3)
        service = make_arena_service(SequenceRNG([0.5]))

        match_ids = []
        for _ in range(5):
            response = await service.challenge("p1", make_opponent())
            match_ids.append(response["match"]["match_id"])

        state = await service.get_state("p1")
        assert [m["match_id"] for m in state["history"]] == list(reversed(match_ids))[:3]
        assert state["wins"] == 5

    async def test_invalid_history_limit(self, config_manager, make_arena_service):
        config_manager.set_override("arena.history_limit", 0)

        with pytest.raises(ValidationError):
            make_arena_service()

    async def test_match_record(self, arena_service):
        response = await arena_service.challenge("p1", make_opponent())

        match = response["match"]
        assert match["match_id"].startswith("arena_")
        assert match["match_id"].endswith("_500000")
        assert match["opponent"]["id"] == "training-dummy"
        assert match["turns"] == response["result"]["turns"]
        assert match["logs"] == response["result"]["logs"]

    async def test_generated_opponent_and_rng_order(self, make_arena_service):
        rng = SequenceRNG([0.75, 0.5, 0.0, 0.99])
        service = make_arena_service(rng)

        response = await service.challenge("p1")

        assert response["opponent"]["name"] == "Fierce Veteran Lv.21"
        assert response["match"]["match_id"].endswith("_990000")
        assert rng.calls == 5

    async def test_same_seed_replays_match(self, make_arena_service, arena_store):
        opponent = make_opponent(level=20)
        opponent = ArenaOpponent(
            id=opponent.id,
            name=opponent.name,
            level=20,
            stats=CombatStats(400, 400, 40, 20, 20),
            weapon=opponent.weapon,
            modifier=0.0,
            seed=9,
        )
        service = make_arena_service(SequenceRNG([0.5]))

        first = await service.challenge("p1", opponent)
        second = await service.challenge("p2", opponent)

        def damages(response):
            return [log["action"]["damage"] for log in response["result"]["logs"]]

        assert damages(first) == damages(second)
        assert first["outcome"] == second["outcome"]

    async def test_event_emitted(self, arena_service, captured_events):
        response = await arena_service.challenge("p1", make_opponent())

        name, payload = captured_events[-1]
        assert name == "arena.match_recorded"
        assert payload["match_id"] == response["match"]["match_id"]
        assert payload["rating"] == 1027

    async def test_invalid_player_id(self, arena_service, arena_store):
        with pytest.raises(ValidationError):
            await arena_service.challenge("", make_opponent())

        assert arena_store.write_count == 0
