"""
CombatService: ad-hoc combat simulations against enemy templates.

Purpose
-------
Run a single seeded fight between caller-supplied player stats and a named
enemy template, archive the resulting log and hand back the result together
with the player's stats restored to full health.

Responsibilities
----------------
- Own the enemy template registry (loaded from ``data/enemies.yaml``).
- Resolve fights through `CombatEngine` with configured damage tuning.
- Archive logs through `CombatLogArchive` and expose archive reads.
- Emit ``combat.simulated`` after every simulation.

Design Decisions
----------------
- Templates are instance state; nothing is registered at module level.
- Unknown template ids raise `UnknownDefinitionError` before any fight.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import yaml

from gauntlet.core.validation import InputValidator
from gauntlet.modules.combat.engine import CombatEngine
from gauntlet.modules.combat.formulas import DamageTuning
from gauntlet.modules.combat.log_archive import CombatLogArchive
from gauntlet.modules.combat.models import (
    Combatant,
    CombatStats,
    EnemyTemplate,
    Weapon,
)
from gauntlet.modules.shared.base_service import BaseService
from gauntlet.modules.shared.exceptions import DefinitionError, UnknownDefinitionError

if TYPE_CHECKING:
    from logging import Logger

    from gauntlet.core.config.manager import ConfigManager
    from gauntlet.core.event.bus import EventBus

DATA_DIR = Path(__file__).resolve().parents[2] / "data"
ENEMIES_FILE = DATA_DIR / "enemies.yaml"


def load_enemy_templates(path: Path = ENEMIES_FILE) -> List[EnemyTemplate]:
    """Parse enemy templates from a YAML file with a top-level ``enemies`` list."""
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    entries = data.get("enemies")
    if not isinstance(entries, list):
        raise DefinitionError(str(path.name), "expected a top-level 'enemies' list")

    templates = []
    for entry in entries:
        try:
            templates.append(EnemyTemplate.from_dict(entry))
        except (KeyError, TypeError) as exc:
            raise DefinitionError(
                str(entry.get("id", "?")), f"malformed enemy template: {exc}"
            ) from exc
    return templates


class CombatService(BaseService):
    """
    Simulation front-end over the combat engine.

    Args:
        config_manager: Reads ``combat.*`` tuning
        event_bus: Receives ``combat.simulated``
        logger: Structured logger
        archive: Combat log archive
        templates: Enemy templates; packaged defaults when omitted
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        archive: CombatLogArchive,
        templates: Optional[Iterable[EnemyTemplate]] = None,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._archive = archive
        self._tuning = DamageTuning.from_config(self.get_config("combat"))
        if templates is None:
            templates = load_enemy_templates()
        self._templates: Dict[str, EnemyTemplate] = {t.id: t for t in templates}

    # ========================================================================
    # Templates
    # ========================================================================

    def get_enemy_templates(self) -> List[EnemyTemplate]:
        return list(self._templates.values())

    def get_enemy_template(self, template_id: str) -> Optional[EnemyTemplate]:
        return self._templates.get(template_id)

    def set_enemy_template(self, template: EnemyTemplate) -> None:
        """Add or replace a template."""
        self._templates[template.id] = template

    # ========================================================================
    # Simulation
    # ========================================================================

    async def simulate_combat(
        self,
        player_id: str,
        player_stats: CombatStats,
        enemy_template_id: str,
        player_weapon: Optional[Weapon] = None,
        seed: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Fight one enemy template and archive the log.

        Returns:
            ``{"result", "updated_player_stats", "session_id"}`` as plain dicts

        Raises:
            ValidationError: Malformed player id or seed
            UnknownDefinitionError: Unknown enemy template
        """
        player_id = InputValidator.validate_player_id(player_id)
        seed = InputValidator.validate_optional_seed(seed)

        template = self._templates.get(enemy_template_id)
        if template is None:
            raise UnknownDefinitionError("Enemy template", enemy_template_id)

        player = Combatant(
            id=player_id,
            name="Player",
            stats=player_stats,
            weapon=player_weapon,
            is_player=True,
        )
        engine = CombatEngine(seed, tuning=self._tuning)
        result = engine.resolve_combat(
            player, template.to_combatant(), template.rewards
        )
        session_id = await self._archive.store_logs(player_id, result.logs)

        self.log_operation(
            "simulate_combat",
            player_id=player_id,
            enemy_template_id=enemy_template_id,
            winner=result.winner,
            turns=result.turns,
            seed=engine.seed,
        )
        await self.emit_event(
            "combat.simulated",
            {
                "player_id": player_id,
                "enemy_template_id": enemy_template_id,
                "winner": result.winner,
                "turns": result.turns,
                "session_id": session_id,
            },
        )

        return {
            "result": result.to_dict(),
            "updated_player_stats": player_stats.restored().to_dict(),
            "session_id": session_id,
        }

    async def get_player_combat_logs(
        self, player_id: str, limit: int = 10
    ) -> List[Dict[str, Any]]:
        limit = InputValidator.validate_integer(limit, "limit", min_value=1, max_value=100)
        return await self._archive.get_player_logs(player_id, limit)

    async def get_combat_logs(
        self, player_id: str, session_id: str
    ) -> Optional[List[Dict[str, Any]]]:
        return await self._archive.get_combat_logs(player_id, session_id)
