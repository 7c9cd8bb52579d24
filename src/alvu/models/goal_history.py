"""SQLModel definition for savings goal history events."""

from __future__ import annotations

import datetime as dt
from typing import Any, ClassVar, Literal, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from ._ids import new_id, utcnow

GoalHistoryEventType = Literal[
    "goal_created",
    "goal_modified",
    "milestone_reached",
    "goal_completed",
    "progress_update",
    "target_date_changed",
    "target_amount_changed",
]

# Event types counted as user modifications of a goal
MODIFICATION_EVENT_TYPES: frozenset[GoalHistoryEventType] = frozenset(
    {"goal_modified", "target_amount_changed", "target_date_changed"}
)


class GoalHistoryEntry(SQLModel, table=True):
    """Snapshot of a savings goal at the moment something happened to it."""

    __tablename__: ClassVar[str] = "goal_history"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    envelope_id: str = Field(foreign_key="envelope.id", index=True, max_length=36)
    # One of GoalHistoryEventType; stored as plain text
    event_type: str = Field(index=True, max_length=32)
    event_date: dt.datetime = Field(default_factory=utcnow, index=True)

    # Goal state at time of event
    balance_at_event: float = Field(nullable=False)
    target_amount_at_event: Optional[float] = Field(default=None)
    target_date_at_event: Optional[dt.date] = Field(default=None)
    progress_percentage: float = Field(default=0.0, ge=0, le=100)

    # Change details (modification events)
    previous_target_amount: Optional[float] = Field(default=None)
    previous_target_date: Optional[dt.date] = Field(default=None)
    previous_progress_percentage: Optional[float] = Field(default=None, ge=0, le=100)

    # Milestone details (milestone and completion events)
    milestone_percentage: Optional[int] = Field(default=None, index=True)

    notes: Optional[str] = Field(default=None)
    # ``metadata`` is reserved by SQLAlchemy's declarative base
    details: dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON))

    created_at: dt.datetime = Field(default_factory=utcnow)
