"""Repository protocol definitions for domain layer."""

from .goal_history import GoalHistoryRepository, GoalHistorySummary, ProgressTimelineEntry

__all__ = [
    "GoalHistoryRepository",
    "GoalHistorySummary",
    "ProgressTimelineEntry",
]
