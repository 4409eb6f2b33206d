"""
Gauntlet: deterministic combat engine, dungeon runs and arena ladder.

Top-level package. Infrastructure lives under ``gauntlet.core``; game
domains live under ``gauntlet.modules``.
"""

__version__ = "0.4.0"
