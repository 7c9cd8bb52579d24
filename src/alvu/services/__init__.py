"""Service module exports."""

from . import (
    debts,
    goal_history,
    goal_notifications,
    goal_projections,
    savings_goals,
)

__all__ = [
    "debts",
    "goal_history",
    "goal_notifications",
    "goal_projections",
    "savings_goals",
]
