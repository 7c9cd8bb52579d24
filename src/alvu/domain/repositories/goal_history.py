"""Goal history repository protocol."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional, Protocol

from ...models.goal_history import GoalHistoryEntry


@dataclass(frozen=True, slots=True)
class GoalHistorySummary:
    """Aggregate view over every history event of one goal."""

    total_events: int = 0
    milestones_reached: int = 0
    modifications_made: int = 0
    days_since_created: int = 0
    first_event_date: Optional[dt.datetime] = None
    last_event_date: Optional[dt.datetime] = None
    completion_date: Optional[dt.datetime] = None


@dataclass(frozen=True, slots=True)
class ProgressTimelineEntry:
    event_date: dt.date
    progress_percentage: float
    balance_at_event: float
    target_amount_at_event: Optional[float]
    event_type: str


class GoalHistoryRepository(Protocol):
    """Repository for savings goal history events."""

    def add(self, entry: GoalHistoryEntry, *, user_id: str) -> GoalHistoryEntry:
        """Persist a new history entry."""
        ...

    def list_for_envelope(
        self, envelope_id: str, *, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[GoalHistoryEntry]:
        """List history entries for a goal, newest first."""
        ...

    def get_summary(
        self, envelope_id: str, *, user_id: str, now: Optional[dt.datetime] = None
    ) -> GoalHistorySummary:
        """Summarise all events recorded for a goal."""
        ...

    def get_progress_timeline(
        self,
        envelope_id: str,
        *,
        user_id: str,
        days_back: int = 90,
        now: Optional[dt.datetime] = None,
    ) -> list[ProgressTimelineEntry]:
        """Progress snapshots from the last ``days_back`` days, oldest first."""
        ...
