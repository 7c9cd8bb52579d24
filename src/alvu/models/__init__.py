"""SQLModel table exports."""

from .envelope import Envelope
from .goal_history import GoalHistoryEntry
from .transaction import Transaction

__all__ = [
    "Envelope",
    "GoalHistoryEntry",
    "Transaction",
]
