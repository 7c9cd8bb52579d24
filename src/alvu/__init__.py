"""Alvu envelope budgeting core: debt payoff, savings goals and goal notifications."""

from __future__ import annotations

from .config import BaseConfig, DevConfig, TestingConfig
from .errors import AlvuError, InvalidArgument

__all__ = ["AlvuError", "BaseConfig", "DevConfig", "InvalidArgument", "TestingConfig"]
