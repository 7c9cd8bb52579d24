"""Concrete repository implementations using SQLModel."""

from .goal_history import SQLModelGoalHistoryRepository

__all__ = [
    "SQLModelGoalHistoryRepository",
]
