"""
Gauntlet validation package.

Exposes `InputValidator`, the single entry point for caller-supplied input
checks performed by the encounter services.
"""

from gauntlet.core.validation.input_validator import InputValidator

__all__ = ["InputValidator"]
