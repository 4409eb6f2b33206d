"""
Configuration subsystem for Gauntlet.

- **config.py**: static configuration from environment variables (.env support)
- **manager.py**: YAML-backed game configuration with dot-notation access
- **errors.py**: configuration exception hierarchy

Static vs Dynamic Configuration
--------------------------------
**Static (Config):** logging, database and redis settings read once at
process start.

**Game tuning (ConfigManager):** combat variance, dungeon and arena stat
tuning, ladder deltas. Loaded from packaged YAML, optionally merged with a
``CONFIG_DIR`` directory and in-process overrides.

```python
from gauntlet.core.config.manager import ConfigManager

config = ConfigManager.from_yaml()
history_limit = config.get("arena.history_limit", 15)
```

ConfigManager is not re-exported here: it logs through the logging
subsystem, which itself reads static ``Config`` during import.
"""

from gauntlet.core.config.config import Config, Environment
from gauntlet.core.config.errors import (
    ConfigError,
    ConfigInitializationError,
    ConfigurationError,
    ConfigValidationError,
)

__all__ = [
    "Config",
    "Environment",
    "ConfigError",
    "ConfigInitializationError",
    "ConfigurationError",
    "ConfigValidationError",
]
