"""
Unit tests for DungeonCatalog and dungeon definitions.
"""

from dataclasses import replace
from pathlib import Path

import pytest
import yaml

from gauntlet.modules.combat.models import CombatRewards
from gauntlet.modules.dungeon.catalog import DungeonCatalog
from gauntlet.modules.dungeon.definitions import (
    BossDefinition,
    DungeonDefinition,
    DungeonFloor,
    FloorType,
)
from gauntlet.modules.shared.exceptions import DefinitionError, UnknownDefinitionError
from tests.conftest import build_sequel_dungeon, build_trial_dungeon, weak_enemy


class TestPackagedCatalog:
    """Test the YAML definitions shipped with the package."""

    def test_loads_both_dungeons(self):
        catalog = DungeonCatalog.from_yaml()

        assert [d.id for d in catalog.all()] == [
            "forgotten-catacombs",
            "ember-spire-gauntlet",
        ]

    def test_catacombs_layout(self):
        catacombs = DungeonCatalog.from_yaml().get("forgotten-catacombs")

        assert catacombs.floor_count == 3
        assert [f.type for f in catacombs.floors] == [
            FloorType.COMBAT,
            FloorType.COMBAT,
            FloorType.BOSS,
        ]
        boss = catacombs.get_floor(3).boss
        assert [phase.phase for phase in boss.phases] == [1, 2]
        assert boss.phases[1].combatant_id() == "lich-true-phase-2"

    def test_ember_spire_requirements(self):
        spire = DungeonCatalog.from_yaml().get("ember-spire-gauntlet")

        assert spire.unlock_requirements.min_level == 8
        assert spire.unlock_requirements.prerequisites == ("forgotten-catacombs",)
        assert len(spire.get_floor(3).boss.phases) == 3

    def test_floors_sorted_when_parsed(self):
        data = build_trial_dungeon().to_dict()
        data["floors"] = list(reversed(data["floors"]))

        definition = DungeonDefinition.from_dict(data)

        assert [f.floor for f in definition.floors] == [1, 2, 3]


class TestCatalogLookups:
    """Test lookups and unknown ids."""

    def test_get_unknown_dungeon(self, trial_catalog):
        with pytest.raises(UnknownDefinitionError) as exc_info:
            trial_catalog.get("nowhere")

        assert exc_info.value.error_code == "UNKNOWN_DUNGEON"

    def test_get_unknown_floor(self, trial_catalog):
        with pytest.raises(UnknownDefinitionError) as exc_info:
            trial_catalog.get_floor("trial-halls", 9)

        assert exc_info.value.identifier == "trial-halls#9"

    def test_contains_and_len(self, trial_catalog):
        assert "trial-halls" in trial_catalog
        assert "nowhere" not in trial_catalog
        assert len(trial_catalog) == 2

    def test_unknown_boss_phase_resumes_at_start(self, trial_catalog):
        boss = trial_catalog.get_floor("trial-halls", 3).boss

        assert boss.phase_index(2) == 1
        assert boss.phase_index(None) == 0
        assert boss.phase_index(99) == 0


class TestCatalogValidation:
    """Malformed definitions are rejected up front."""

    def test_duplicate_ids(self):
        with pytest.raises(DefinitionError):
            DungeonCatalog([build_trial_dungeon(), build_trial_dungeon()])

    def test_no_floors(self):
        empty = replace(build_sequel_dungeon(), floors=())

        with pytest.raises(DefinitionError):
            DungeonCatalog([empty])

    def test_gap_in_floor_numbers(self):
        definition = build_trial_dungeon()
        gapped = replace(definition, floors=(definition.floors[0], definition.floors[2]))

        with pytest.raises(DefinitionError):
            DungeonCatalog([gapped])

    def test_combat_floor_without_enemy(self):
        floor = DungeonFloor(floor=1, name="Empty", type=FloorType.COMBAT)
        definition = replace(build_sequel_dungeon(), floors=(floor,))

        with pytest.raises(DefinitionError):
            DungeonCatalog([definition])

    def test_boss_floor_without_phases(self):
        floor = DungeonFloor(
            floor=1,
            name="Hollow Throne",
            type=FloorType.BOSS,
            boss=BossDefinition(id="nobody", name="Nobody", phases=()),
            rewards=CombatRewards(),
        )
        definition = replace(build_sequel_dungeon(), floors=(floor,))

        with pytest.raises(DefinitionError):
            DungeonCatalog([definition])

    def test_yaml_without_dungeon_list(self, tmp_path: Path):
        path = tmp_path / "dungeons.yaml"
        path.write_text("dungeons: nope\n", encoding="utf-8")

        with pytest.raises(DefinitionError):
            DungeonCatalog.from_yaml(path)

    def test_yaml_round_trip_of_custom_catalog(self, tmp_path: Path):
        path = tmp_path / "dungeons.yaml"
        sequel = replace(
            build_sequel_dungeon(),
            floors=(
                DungeonFloor(
                    floor=1,
                    name="Depths",
                    type=FloorType.COMBAT,
                    enemy=weak_enemy("depth-crawler"),
                ),
            ),
        )
        path.write_text(yaml.safe_dump({"dungeons": [sequel.to_dict()]}), encoding="utf-8")

        catalog = DungeonCatalog.from_yaml(path)

        assert catalog.get("trial-depths").to_dict() == sequel.to_dict()
