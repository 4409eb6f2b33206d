"""
ConfigManager: hierarchical, YAML-backed game configuration for Gauntlet.

Purpose
-------
- Provide dot-notation access to tunable game configuration values
  (e.g. ``"arena.base_rating"``, ``"dungeon.player_tuning.min_health"``).
- Back configuration with packaged YAML defaults plus an optional override
  directory and programmatic overrides.

Responsibilities
----------------
- Load and deep-merge every YAML file under the packaged ``gauntlet/config``
  directory, then under ``Config.CONFIG_DIR`` when set.
- Layer in-process overrides (``set_override``) above YAML values.
- Serve reads from an in-memory dictionary with simple hit/miss metrics.

Key Design Decisions
--------------------
- Instance-based: each service receives the manager it should read from, so
  tests can build isolated managers without touching global state.
- YAML is the single source for **defaults**; overrides never write back.
- Lookups never raise unless ``get_required`` is used.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml

from gauntlet.core.config.config import Config
from gauntlet.core.config.errors import (
    ConfigInitializationError,
    ConfigurationError,
    ConfigValidationError,
)
from gauntlet.core.logging.logger import get_logger

logger = get_logger(__name__)

PACKAGED_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


@dataclass(slots=True)
class ConfigMetrics:
    gets: int = 0
    hits: int = 0
    misses: int = 0
    overrides: int = 0


class ConfigManager:
    """
    Hierarchical configuration access with YAML defaults and overrides.

    Examples
    --------
    >>> manager = ConfigManager.from_yaml()
    >>> manager.get("arena.base_rating", 1000)
    1000
    >>> manager.set_override("arena.history_limit", 5)
    """

    def __init__(
        self,
        defaults: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._defaults: Dict[str, Any] = copy.deepcopy(dict(defaults or {}))
        self._overrides: Dict[str, Any] = {}
        self._metrics = ConfigMetrics()

        for key, value in (overrides or {}).items():
            self.set_override(key, value)

    # ========================================================================
    # Construction
    # ========================================================================

    @classmethod
    def from_yaml(
        cls,
        directories: Optional[Iterable[Path]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "ConfigManager":
        """
        Build a manager from YAML directories (packaged defaults first).

        Parameters
        ----------
        directories:
            Directories to load, in merge order. Defaults to the packaged
            config directory followed by ``Config.CONFIG_DIR`` if set.
        overrides:
            Dot-notation overrides applied on top.
        """
        if directories is None:
            directories = [PACKAGED_CONFIG_DIR]
            if Config.CONFIG_DIR is not None:
                directories.append(Config.CONFIG_DIR)

        merged: Dict[str, Any] = {}
        loaded = 0
        for directory in directories:
            loaded += cls._load_yaml_directory(Path(directory), merged)

        logger.info(
            "ConfigManager loaded YAML defaults",
            extra={
                "yaml_file_count": loaded,
                "top_level_keys": sorted(merged.keys()),
            },
        )
        return cls(defaults=merged, overrides=overrides)

    @staticmethod
    def _deep_merge_dict(target: Dict[str, Any], source: Mapping[str, Any]) -> None:
        for key, value in source.items():
            if isinstance(value, Mapping) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = copy.deepcopy(value)

    @classmethod
    def _load_yaml_directory(cls, config_dir: Path, target: Dict[str, Any]) -> int:
        if not config_dir.exists():
            logger.warning(
                "Config directory not found; skipping",
                extra={"config_dir": str(config_dir)},
            )
            return 0

        yaml_files = sorted(
            list(config_dir.rglob("*.yaml")) + list(config_dir.rglob("*.yml"))
        )
        loaded = 0
        for yaml_file in yaml_files:
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except (OSError, yaml.YAMLError) as exc:
                raise ConfigInitializationError(
                    f"Failed to load YAML config {yaml_file}: {exc}"
                ) from exc

            if isinstance(data, dict):
                cls._deep_merge_dict(target, data)
                loaded += 1
                logger.debug(
                    "Loaded YAML config",
                    extra={"file": str(yaml_file.relative_to(config_dir))},
                )
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={
                        "file": str(yaml_file.relative_to(config_dir)),
                        "root_type": type(data).__name__,
                    },
                )
        return loaded

    # ========================================================================
    # Reads
    # ========================================================================

    @staticmethod
    def _lookup(tree: Mapping[str, Any], key: str) -> Any:
        value: Any = tree
        for part in key.split("."):
            if not isinstance(value, Mapping) or part not in value:
                return _MISSING
            value = value[part]
        return value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Overrides win over YAML defaults. Returns ``default`` when the key is
        absent from both. Mutable values are returned as copies.
        """
        self._metrics.gets += 1

        value = self._lookup(self._overrides, key)
        if value is _MISSING:
            value = self._lookup(self._defaults, key)

        if value is _MISSING or value is None:
            self._metrics.misses += 1
            return default

        self._metrics.hits += 1
        if isinstance(value, (dict, list)):
            return copy.deepcopy(value)
        return value

    def get_required(self, key: str) -> Any:
        value = self.get(key)
        if value is None:
            raise ConfigurationError(
                key, f"Required configuration key '{key}' is missing"
            )
        return value

    def get_int(self, key: str, default: int) -> int:
        value = self.get(key, default)
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigValidationError(key, f"expected int, got {value!r}") from exc

    def get_float(self, key: str, default: float) -> float:
        value = self.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigValidationError(
                key, f"expected float, got {value!r}"
            ) from exc

    def get_all_keys(self) -> List[str]:
        return sorted(set(self._defaults) | set(self._overrides))

    # ========================================================================
    # Overrides
    # ========================================================================

    def set_override(self, key: str, value: Any) -> None:
        """Layer a dot-notation value above YAML defaults."""
        parts = key.split(".")
        node = self._overrides
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)
        self._metrics.overrides += 1

        logger.debug(
            "Configuration override applied",
            extra={"config_key": key},
        )

    def clear_overrides(self) -> None:
        self._overrides.clear()

    def get_metrics(self) -> Dict[str, int]:
        return {
            "gets": self._metrics.gets,
            "hits": self._metrics.hits,
            "misses": self._metrics.misses,
            "overrides": self._metrics.overrides,
        }


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


_MISSING = _Missing()
