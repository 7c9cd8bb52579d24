"""SQLModel implementation of GoalHistory repository."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Optional

from sqlmodel import Session, select

from ...domain.repositories.goal_history import GoalHistorySummary, ProgressTimelineEntry
from ...models.goal_history import MODIFICATION_EVENT_TYPES, GoalHistoryEntry


def _as_utc(value: dt.datetime) -> dt.datetime:
    # SQLite hands datetimes back without tzinfo; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


class SQLModelGoalHistoryRepository:
    """SQLModel-based goal history repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def add(self, entry: GoalHistoryEntry, *, user_id: str) -> GoalHistoryEntry:
        """Persist a new history entry."""
        with self.session_factory() as session:
            entry.user_id = user_id
            session.add(entry)
            session.commit()
            session.refresh(entry)
            return entry

    def list_for_envelope(
        self, envelope_id: str, *, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[GoalHistoryEntry]:
        """List history entries for a goal, newest first."""
        with self.session_factory() as session:
            statement = (
                select(GoalHistoryEntry)
                .where(
                    GoalHistoryEntry.user_id == user_id,
                    GoalHistoryEntry.envelope_id == envelope_id,
                )
                .order_by(GoalHistoryEntry.event_date.desc())  # type: ignore
                .offset(offset)
                .limit(limit)
            )
            return list(session.exec(statement).all())

    def get_summary(
        self, envelope_id: str, *, user_id: str, now: Optional[dt.datetime] = None
    ) -> GoalHistorySummary:
        """Summarise all events recorded for a goal."""
        with self.session_factory() as session:
            entries = list(
                session.exec(
                    select(GoalHistoryEntry).where(
                        GoalHistoryEntry.user_id == user_id,
                        GoalHistoryEntry.envelope_id == envelope_id,
                    )
                ).all()
            )

        if not entries:
            return GoalHistorySummary()

        dates = [_as_utc(entry.event_date) for entry in entries]
        completions = [
            _as_utc(entry.event_date) for entry in entries if entry.event_type == "goal_completed"
        ]
        current = now or dt.datetime.now(dt.timezone.utc)
        return GoalHistorySummary(
            total_events=len(entries),
            milestones_reached=sum(1 for entry in entries if entry.event_type == "milestone_reached"),
            modifications_made=sum(
                1 for entry in entries if entry.event_type in MODIFICATION_EVENT_TYPES
            ),
            days_since_created=max(0, (_as_utc(current) - min(dates)).days),
            first_event_date=min(dates),
            last_event_date=max(dates),
            completion_date=max(completions) if completions else None,
        )

    def get_progress_timeline(
        self,
        envelope_id: str,
        *,
        user_id: str,
        days_back: int = 90,
        now: Optional[dt.datetime] = None,
    ) -> list[ProgressTimelineEntry]:
        """Progress snapshots from the last ``days_back`` days, oldest first."""
        current = _as_utc(now or dt.datetime.now(dt.timezone.utc))
        cutoff = current - dt.timedelta(days=days_back)
        with self.session_factory() as session:
            statement = (
                select(GoalHistoryEntry)
                .where(
                    GoalHistoryEntry.user_id == user_id,
                    GoalHistoryEntry.envelope_id == envelope_id,
                    GoalHistoryEntry.event_date >= cutoff,
                )
                .order_by(GoalHistoryEntry.event_date)  # type: ignore
            )
            entries = list(session.exec(statement).all())

        return [
            ProgressTimelineEntry(
                event_date=entry.event_date.date(),
                progress_percentage=entry.progress_percentage,
                balance_at_event=entry.balance_at_event,
                target_amount_at_event=entry.target_amount_at_event,
                event_type=entry.event_type,
            )
            for entry in entries
        ]
