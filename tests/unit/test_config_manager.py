"""
Unit tests for ConfigManager.

Tests YAML loading, dot-notation lookups, overrides and typed accessors.
"""

from pathlib import Path

import pytest

from gauntlet.core.config.errors import (
    ConfigInitializationError,
    ConfigurationError,
    ConfigValidationError,
)
from gauntlet.core.config.manager import ConfigManager


class TestYamlLoading:
    """Test packaged and override directories."""

    def test_packaged_defaults(self, config_manager):
        assert config_manager.get("arena.base_rating") == 1000
        assert config_manager.get("combat.defense.armed_coefficient") == 0.009
        assert config_manager.get("dungeon.player_tuning.combatant_name") == "Adventurer"

    def test_top_level_sections(self, config_manager):
        keys = config_manager.get_all_keys()

        for section in ("arena", "combat", "combat_log", "core", "dungeon"):
            assert section in keys

    def test_override_directory_deep_merges(self, tmp_path: Path):
        (tmp_path / "arena.yaml").write_text(
            "arena:\n  rating:\n    win_delta: 40\n", encoding="utf-8"
        )

        manager = ConfigManager.from_yaml(
            [Path(__file__).resolve().parents[2] / "gauntlet" / "config", tmp_path]
        )

        assert manager.get("arena.rating.win_delta") == 40
        assert manager.get("arena.rating.loss_delta") == 14

    def test_missing_directory_is_skipped(self, tmp_path: Path):
        manager = ConfigManager.from_yaml([tmp_path / "absent"])

        assert manager.get_all_keys() == []

    def test_invalid_yaml_raises(self, tmp_path: Path):
        (tmp_path / "broken.yaml").write_text("arena: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigInitializationError):
            ConfigManager.from_yaml([tmp_path])


class TestLookups:
    """Test reads, defaults and overrides."""

    def test_missing_key_returns_default(self, config_manager):
        assert config_manager.get("arena.nope", 7) == 7
        assert config_manager.get("nope.deeper.still") is None

    def test_override_wins(self, config_manager):
        config_manager.set_override("arena.history_limit", 3)

        assert config_manager.get("arena.history_limit") == 3
        assert config_manager.get("arena.base_rating") == 1000

    def test_clear_overrides(self, config_manager):
        config_manager.set_override("arena.history_limit", 3)

        config_manager.clear_overrides()

        assert config_manager.get("arena.history_limit") == 15

    def test_mutable_values_are_copies(self, config_manager):
        tuning = config_manager.get("arena.player_tuning")
        tuning["min_health"] = 1

        assert config_manager.get("arena.player_tuning.min_health") == 80

    def test_get_required(self, config_manager):
        with pytest.raises(ConfigurationError):
            config_manager.get_required("arena.nope")

    def test_typed_accessors(self):
        manager = ConfigManager({"a": {"n": "12", "f": "0.5", "bad": "x"}})

        assert manager.get_int("a.n", 0) == 12
        assert manager.get_float("a.f", 0.0) == 0.5
        with pytest.raises(ConfigValidationError):
            manager.get_int("a.bad", 0)

    def test_metrics(self):
        manager = ConfigManager({"a": 1}, overrides={"b": 2})
        manager.get("a")
        manager.get("zzz")

        metrics = manager.get_metrics()

        assert metrics == {"gets": 2, "hits": 1, "misses": 1, "overrides": 1}
