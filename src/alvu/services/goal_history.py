"""Savings goal history tracking.

Records milestone, completion and modification events for savings goals
through a :class:`~alvu.domain.repositories.GoalHistoryRepository`, and
turns stored history into display-ready entries and statistics.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional

from ..domain.repositories.goal_history import GoalHistoryRepository
from ..logging_config import get_logger
from ..models.envelope import Envelope
from ..models.goal_history import MODIFICATION_EVENT_TYPES, GoalHistoryEntry, GoalHistoryEventType
from .savings_goals import calculate_savings_goal_progress

logger = get_logger(__name__)

EVENT_LABELS: dict[GoalHistoryEventType, str] = {
    "goal_created": "Goal Created",
    "goal_modified": "Goal Modified",
    "milestone_reached": "Milestone Reached",
    "goal_completed": "Goal Completed",
    "progress_update": "Progress Updated",
    "target_date_changed": "Target Date Changed",
    "target_amount_changed": "Target Amount Changed",
}

EVENT_ICONS: dict[GoalHistoryEventType, str] = {
    "goal_created": "🎯",
    "goal_modified": "✏️",
    "milestone_reached": "🏆",
    "goal_completed": "🎉",
    "progress_update": "📈",
    "target_date_changed": "📅",
    "target_amount_changed": "💰",
}

EVENT_COLORS: dict[GoalHistoryEventType, str] = {
    "goal_created": "blue",
    "goal_modified": "yellow",
    "milestone_reached": "green",
    "goal_completed": "green",
    "progress_update": "blue",
    "target_date_changed": "yellow",
    "target_amount_changed": "yellow",
}

CHANGE_NOTES: dict[GoalHistoryEventType, str] = {
    "goal_modified": "Target amount and date modified",
    "target_amount_changed": "Target amount changed",
    "target_date_changed": "Target date changed",
    "progress_update": "Balance updated",
}


@dataclass(frozen=True, slots=True)
class GoalModificationChange:
    """What changed when a user edited a goal, and how progress moved."""

    target_amount_changed: bool
    target_date_changed: bool
    old_progress: float
    new_progress: float
    old_target_amount: Optional[float] = None
    new_target_amount: Optional[float] = None
    old_target_date: Optional[date] = None
    new_target_date: Optional[date] = None

    @property
    def progress_change(self) -> float:
        return self.new_progress - self.old_progress


@dataclass(frozen=True, slots=True)
class FormattedHistoryEntry:
    title: str
    description: str
    icon: str
    color: str
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class GoalStatistics:
    total_days: int = 0
    average_progress_per_day: float = 0.0
    milestone_dates: dict[int, datetime] = field(default_factory=dict)
    completion_date: Optional[datetime] = None
    modification_count: int = 0


def format_event_type(event_type: str) -> str:
    return EVENT_LABELS.get(event_type, event_type)


def get_event_type_icon(event_type: str) -> str:
    return EVENT_ICONS.get(event_type, "📝")


def get_event_type_color(event_type: str) -> str:
    return EVENT_COLORS.get(event_type, "gray")


def _goal_progress(envelope: Envelope, today: date | None):
    return calculate_savings_goal_progress(
        envelope.balance,
        envelope.target_amount,
        envelope.target_date,
        today=today,
    )


def _record(
    repository: GoalHistoryRepository,
    user_id: str,
    envelope: Envelope,
    event_type: GoalHistoryEventType,
    progress_percentage: float,
    *,
    notes: str,
    details: dict[str, Any],
    **fields: Any,
) -> GoalHistoryEntry:
    entry = GoalHistoryEntry(
        user_id=user_id,
        envelope_id=envelope.id,
        event_type=event_type,
        balance_at_event=envelope.balance,
        target_amount_at_event=envelope.target_amount,
        target_date_at_event=envelope.target_date,
        progress_percentage=progress_percentage,
        notes=notes,
        details={"envelope_name": envelope.name, **details},
        **fields,
    )
    saved = repository.add(entry, user_id=user_id)
    logger.info(
        f"Recorded {event_type} for goal {envelope.id}",
        extra={"progress_percentage": progress_percentage},
    )
    return saved


def track_milestone_achievement(
    repository: GoalHistoryRepository,
    user_id: str,
    envelope: Envelope,
    milestone_percentage: int,
    *,
    today: date | None = None,
) -> bool:
    """Record that a goal passed ``milestone_percentage``. False when it has no target."""

    if not envelope.target_amount:
        return False

    progress = _goal_progress(envelope, today)
    _record(
        repository,
        user_id,
        envelope,
        "milestone_reached",
        progress.progress_percentage,
        notes=f"{milestone_percentage}% milestone reached",
        details={"milestone_amount": envelope.target_amount * milestone_percentage / 100},
        milestone_percentage=milestone_percentage,
    )
    return True


def track_goal_completion(
    repository: GoalHistoryRepository,
    user_id: str,
    envelope: Envelope,
    *,
    today: date | None = None,
) -> bool:
    if not envelope.target_amount:
        return False

    progress = _goal_progress(envelope, today)
    days_to_complete = None
    if progress.time is not None:
        days_to_complete = progress.time.days_total - progress.time.days_remaining

    _record(
        repository,
        user_id,
        envelope,
        "goal_completed",
        progress.progress_percentage,
        notes="Goal completed successfully!",
        details={"completion_amount": envelope.balance, "days_to_complete": days_to_complete},
        milestone_percentage=100,
    )
    return True


def track_goal_modification(
    repository: GoalHistoryRepository,
    user_id: str,
    envelope: Envelope,
    change: GoalModificationChange,
    *,
    today: date | None = None,
) -> bool:
    """Record a user edit of a goal's target amount and/or date."""

    if not envelope.target_amount:
        return False

    event_type: GoalHistoryEventType
    if change.target_amount_changed and change.target_date_changed:
        event_type = "goal_modified"
        notes = CHANGE_NOTES[event_type]
    elif change.target_amount_changed:
        event_type = "target_amount_changed"
        notes = CHANGE_NOTES[event_type]
    elif change.target_date_changed:
        event_type = "target_date_changed"
        notes = CHANGE_NOTES[event_type]
    else:
        event_type = "goal_modified"
        notes = "Goal modified"

    progress = _goal_progress(envelope, today)
    _record(
        repository,
        user_id,
        envelope,
        event_type,
        progress.progress_percentage,
        notes=notes,
        details={
            "changes": {
                "target_amount_changed": change.target_amount_changed,
                "target_date_changed": change.target_date_changed,
                "progress_change": change.progress_change,
            }
        },
        previous_target_amount=change.old_target_amount,
        previous_target_date=change.old_target_date,
        previous_progress_percentage=change.old_progress,
    )
    return True


def classify_goal_change(old: Envelope, new: Envelope) -> Optional[GoalHistoryEventType]:
    """Pick the history event type for an envelope update, or None if nothing tracked changed."""

    amount_changed = old.target_amount != new.target_amount
    date_changed = old.target_date != new.target_date
    if amount_changed and date_changed:
        return "goal_modified"
    if amount_changed:
        return "target_amount_changed"
    if date_changed:
        return "target_date_changed"
    if old.balance != new.balance:
        return "progress_update"
    return None


def track_goal_update(
    repository: GoalHistoryRepository,
    user_id: str,
    old: Envelope,
    new: Envelope,
    *,
    today: date | None = None,
) -> Optional[GoalHistoryEntry]:
    """Record whatever changed between two versions of a savings goal envelope.

    Only savings envelopes with a target are tracked; returns the stored entry
    or None when nothing was recorded.
    """

    if not new.is_savings_goal:
        return None

    event_type = classify_goal_change(old, new)
    if event_type is None:
        return None

    old_progress = 0.0
    if old.target_amount and old.target_amount > 0:
        old_progress = _goal_progress(old, today).progress_percentage
    new_progress = _goal_progress(new, today).progress_percentage

    return _record(
        repository,
        user_id,
        new,
        event_type,
        new_progress,
        notes=CHANGE_NOTES[event_type],
        details={"balance_change": new.balance - old.balance},
        previous_target_amount=old.target_amount,
        previous_target_date=old.target_date,
        previous_progress_percentage=old_progress,
    )


def format_history_entry(entry: GoalHistoryEntry) -> FormattedHistoryEntry:
    """Title, description, icon and colour for showing one history event."""

    title = format_event_type(entry.event_type)
    description = entry.notes or ""

    if entry.event_type == "milestone_reached":
        if entry.milestone_percentage:
            title = f"{entry.milestone_percentage}% Milestone Reached"
            description = f"Reached {entry.milestone_percentage}% of your savings goal"
    elif entry.event_type == "goal_completed":
        title = "Goal Completed! 🎉"
        description = "Congratulations! You've reached your savings target"
    elif entry.event_type == "target_amount_changed":
        if entry.previous_target_amount and entry.target_amount_at_event:
            change = entry.target_amount_at_event - entry.previous_target_amount
            direction = "increased" if change > 0 else "decreased"
            description = f"Target amount {direction} by ${abs(change):.2f}"
    elif entry.event_type == "progress_update":
        if entry.previous_progress_percentage is not None:
            change = entry.progress_percentage - entry.previous_progress_percentage
            if abs(change) > 0.1:
                direction = "increased" if change > 0 else "decreased"
                description = f"Progress {direction} by {abs(change):.1f}%"

    return FormattedHistoryEntry(
        title=title,
        description=description,
        icon=get_event_type_icon(entry.event_type),
        color=get_event_type_color(entry.event_type),
        timestamp=entry.event_date,
    )


def calculate_goal_statistics(history: Iterable[GoalHistoryEntry]) -> GoalStatistics:
    entries = sorted(history, key=lambda entry: entry.event_date)
    if not entries:
        return GoalStatistics()

    first, last = entries[0], entries[-1]
    elapsed = (last.event_date - first.event_date).total_seconds()
    total_days = math.ceil(elapsed / 86400)
    progress_change = last.progress_percentage - first.progress_percentage

    milestone_dates = {
        entry.milestone_percentage: entry.event_date
        for entry in entries
        if entry.event_type == "milestone_reached" and entry.milestone_percentage
    }
    completion = next((entry.event_date for entry in entries if entry.event_type == "goal_completed"), None)

    return GoalStatistics(
        total_days=total_days,
        average_progress_per_day=progress_change / total_days if total_days > 0 else 0.0,
        milestone_dates=milestone_dates,
        completion_date=completion,
        modification_count=sum(1 for entry in entries if entry.event_type in MODIFICATION_EVENT_TYPES),
    )
