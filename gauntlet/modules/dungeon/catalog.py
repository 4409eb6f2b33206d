"""
DungeonCatalog: validated registry of static dungeon definitions.

Loads ``data/dungeons.yaml`` with pyyaml (or accepts prebuilt definitions),
sorts floors by number and rejects malformed data up front: combat floors
must have an enemy, boss floors at least one phase, floor numbers must run
1..N without gaps. Everything here is read-only after construction.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml

from gauntlet.core.logging.logger import get_logger
from gauntlet.modules.dungeon.definitions import DungeonDefinition, DungeonFloor
from gauntlet.modules.shared.exceptions import DefinitionError, UnknownDefinitionError

logger = get_logger(__name__)

DUNGEONS_FILE = Path(__file__).resolve().parents[2] / "data" / "dungeons.yaml"


class DungeonCatalog:
    """Ordered, validated dungeon definitions keyed by id."""

    def __init__(self, definitions: Iterable[DungeonDefinition]) -> None:
        self._definitions: Dict[str, DungeonDefinition] = {}
        for definition in definitions:
            self._validate(definition)
            if definition.id in self._definitions:
                raise DefinitionError(definition.id, "duplicate dungeon id")
            self._definitions[definition.id] = definition

    @classmethod
    def from_yaml(cls, path: Optional[Path] = None) -> DungeonCatalog:
        path = path or DUNGEONS_FILE
        with Path(path).open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}

        entries = data.get("dungeons")
        if not isinstance(entries, list):
            raise DefinitionError(Path(path).name, "expected a top-level 'dungeons' list")

        definitions = []
        for entry in entries:
            try:
                definitions.append(DungeonDefinition.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                raise DefinitionError(
                    str(entry.get("id", "?")), f"malformed dungeon entry: {exc}"
                ) from exc

        catalog = cls(definitions)
        logger.info(
            "Dungeon catalog loaded",
            extra={"source": str(path), "dungeon_count": len(catalog)},
        )
        return catalog

    @staticmethod
    def _validate(definition: DungeonDefinition) -> None:
        if not definition.floors:
            raise DefinitionError(definition.id, "dungeon has no floors")

        numbers = [floor.floor for floor in definition.floors]
        if numbers != list(range(1, len(numbers) + 1)):
            raise DefinitionError(
                definition.id, f"floors must be numbered 1..N, got {numbers}"
            )

        for floor in definition.floors:
            DungeonCatalog._validate_floor(definition.id, floor)

    @staticmethod
    def _validate_floor(dungeon_id: str, floor: DungeonFloor) -> None:
        where = f"{dungeon_id}/floor-{floor.floor}"
        if floor.is_boss:
            if floor.boss is None or not floor.boss.phases:
                raise DefinitionError(where, "boss floor is missing phases")
        elif floor.enemy is None:
            raise DefinitionError(where, "combat floor is missing an enemy")

    # ========================================================================
    # Lookups
    # ========================================================================

    def get(self, dungeon_id: str) -> DungeonDefinition:
        definition = self._definitions.get(dungeon_id)
        if definition is None:
            raise UnknownDefinitionError("Dungeon", dungeon_id)
        return definition

    def get_floor(self, dungeon_id: str, floor_number: int) -> DungeonFloor:
        floor = self.get(dungeon_id).get_floor(floor_number)
        if floor is None:
            raise UnknownDefinitionError("Floor", f"{dungeon_id}#{floor_number}")
        return floor

    def all(self) -> List[DungeonDefinition]:
        return list(self._definitions.values())

    def __contains__(self, dungeon_id: object) -> bool:
        return dungeon_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)
