"""Savings goal notifications.

Each rule evaluator compares two progress snapshots of the same goal and
returns the notifications it wants to emit. Completion and milestones fire
only on the transition into the new state; warnings are re-evaluated on
every call and the caller decides whether to de-duplicate them.
Encouragement is gated by a 10% random draw.

Nothing here shows anything to the user: :func:`presentation_for` picks a
severity and a suggested duration, and :func:`display_notification` hands
them to whatever :class:`NotificationSink` the caller provides.
"""

from __future__ import annotations

import json
import random
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Literal, Protocol
from uuid import uuid4

from ..constants import NOTIFICATION_MILESTONES
from ..errors import InvalidArgument
from ..logging_config import get_logger
from .savings_goals import SavingsGoalProgress

logger = get_logger(__name__)

NotificationType = Literal["milestone", "achievement", "warning", "encouragement"]
NotificationColor = Literal["green", "blue", "yellow", "red"]
Severity = Literal["success", "info", "warning", "error"]
NotificationFrequency = Literal["immediate", "daily", "weekly"]
Clock = Callable[[], datetime]

ENCOURAGEMENT_PROBABILITY = 0.1
DISPLAY_STAGGER_MS = 1000

COMPLETION_MESSAGES = (
    "🎉 Congratulations! You've reached your {goal} goal!",
    "🌟 Amazing! Your {goal} goal is complete!",
    "🎊 Success! You've achieved your {goal} target!",
    "🏆 Well done! Your {goal} goal has been reached!",
)

MILESTONE_COPY: dict[int, dict[str, Any]] = {
    25: {
        "title": "Quarter Way There!",
        "icon": "🌱",
        "messages": (
            "🌱 Great start! You're 25% of the way to your {goal} goal!",
            "📈 Nice progress! A quarter of your {goal} goal is complete!",
            "🎯 Keep it up! You've reached 25% of your {goal} target!",
        ),
    },
    50: {
        "title": "Halfway Point!",
        "icon": "🎯",
        "messages": (
            "🎯 Fantastic! You're halfway to your {goal} goal!",
            "⭐ Amazing progress! 50% of your {goal} goal is done!",
            "🚀 You're on fire! Halfway to your {goal} target!",
        ),
    },
    75: {
        "title": "Almost There!",
        "icon": "🔥",
        "messages": (
            "🔥 So close! You're 75% of the way to your {goal} goal!",
            "💪 Incredible! Three quarters of your {goal} goal is complete!",
            "🌟 Final stretch! 75% of your {goal} target achieved!",
        ),
    },
}


@dataclass(slots=True)
class GoalNotification:
    id: str
    type: NotificationType
    title: str
    message: str
    icon: str
    color: NotificationColor
    timestamp: datetime
    goal_id: str | None = None
    milestone_percentage: int | None = None


@dataclass(frozen=True, slots=True)
class NotificationPreferences:
    """Which notification categories a user wants to receive."""

    enable_milestone_notifications: bool = True
    enable_achievement_notifications: bool = True
    enable_warning_notifications: bool = True
    enable_encouragement_notifications: bool = True
    notification_frequency: NotificationFrequency = "immediate"


DEFAULT_NOTIFICATION_PREFERENCES = NotificationPreferences()


@dataclass(frozen=True, slots=True)
class Presentation:
    severity: Severity
    duration_ms: int


@dataclass(frozen=True, slots=True)
class ScheduledNotification:
    """A notification paired with how and when it should be shown."""

    notification: GoalNotification
    presentation: Presentation
    delay_ms: int


@dataclass(frozen=True, slots=True)
class NotificationSummary:
    total: int = 0
    achievements: int = 0
    milestones: int = 0
    warnings: int = 0
    encouragements: int = 0


class NotificationSink(Protocol):
    """Anything able to show a toast-style message at one of four severities."""

    def success(self, message: str, *, title: str, duration: int) -> None:
        ...

    def info(self, message: str, *, title: str, duration: int) -> None:
        ...

    def warning(self, message: str, *, title: str, duration: int) -> None:
        ...

    def error(self, message: str, *, title: str, duration: int) -> None:
        ...


@dataclass(slots=True)
class _Emitter:
    """Shared source of randomness, time and ids for one evaluation."""

    goal_name: str
    goal_id: str
    rng: random.Random
    clock: Clock = field(default=lambda: datetime.now(timezone.utc))

    def make(
        self,
        prefix: str,
        type_: NotificationType,
        title: str,
        message: str,
        icon: str,
        color: NotificationColor,
        milestone_percentage: int | None = None,
    ) -> GoalNotification:
        timestamp = self.clock()
        millis = int(timestamp.timestamp() * 1000)
        return GoalNotification(
            id=f"{prefix}-{self.goal_id}-{millis}-{uuid4().hex[:8]}",
            type=type_,
            title=title,
            message=message,
            icon=icon,
            color=color,
            timestamp=timestamp,
            goal_id=self.goal_id,
            milestone_percentage=milestone_percentage,
        )

    def pick(self, templates: tuple[str, ...]) -> str:
        return self.rng.choice(templates).format(goal=self.goal_name)


_default_rng = random.Random()


def _emitter(
    goal_name: str, goal_id: str, rng: random.Random | None, clock: Clock | None
) -> _Emitter:
    emitter = _Emitter(goal_name=goal_name, goal_id=goal_id, rng=rng or _default_rng)
    if clock is not None:
        emitter.clock = clock
    return emitter


def check_completion(
    current: SavingsGoalProgress,
    previous: SavingsGoalProgress | None,
    goal_name: str,
    goal_id: str,
    *,
    rng: random.Random | None = None,
    clock: Clock | None = None,
) -> list[GoalNotification]:
    """Emit an achievement when the goal has just become complete."""

    if not current.is_completed or (previous is not None and previous.is_completed):
        return []

    emitter = _emitter(goal_name, goal_id, rng, clock)
    return [
        emitter.make(
            "goal-complete",
            "achievement",
            "Goal Achieved!",
            emitter.pick(COMPLETION_MESSAGES),
            "🎉",
            "green",
        )
    ]


def check_milestones(
    current: SavingsGoalProgress,
    previous: SavingsGoalProgress | None,
    goal_name: str,
    goal_id: str,
    *,
    rng: random.Random | None = None,
    clock: Clock | None = None,
) -> list[GoalNotification]:
    """Emit one notification per 25/50/75% threshold crossed since ``previous``."""

    emitter = _emitter(goal_name, goal_id, rng, clock)
    notifications = []
    for milestone in NOTIFICATION_MILESTONES:
        reached = current.progress_percentage >= milestone
        reached_before = previous is not None and previous.progress_percentage >= milestone
        if not reached or reached_before:
            continue

        copy = MILESTONE_COPY[milestone]
        notifications.append(
            emitter.make(
                f"milestone-{milestone}",
                "milestone",
                copy["title"],
                emitter.pick(copy["messages"]),
                copy["icon"],
                "blue",
                milestone_percentage=milestone,
            )
        )
    return notifications


def check_warnings(
    current: SavingsGoalProgress,
    goal_name: str,
    goal_id: str,
    *,
    clock: Clock | None = None,
) -> list[GoalNotification]:
    """Behind-schedule and deadline warnings; fires on every call while the condition holds."""

    emitter = _emitter(goal_name, goal_id, None, clock)
    notifications = []

    time_progress = current.time_progress_percentage
    if (
        current.is_on_track is False
        and time_progress is not None
        and time_progress > 50
        and current.progress_percentage < time_progress - 20
    ):
        notifications.append(
            emitter.make(
                "warning-behind",
                "warning",
                "Behind Schedule",
                f"⚠️ Your {goal_name} goal is falling behind schedule. "
                "Consider increasing your savings rate to stay on track.",
                "⚠️",
                "yellow",
            )
        )

    days_remaining = current.days_remaining
    if (
        days_remaining is not None
        and days_remaining <= 30
        and current.progress_percentage < 80
        and not current.is_completed
    ):
        notifications.append(
            emitter.make(
                "warning-deadline",
                "warning",
                "Deadline Approaching",
                f"🕒 Your {goal_name} goal deadline is approaching in {days_remaining} days. "
                "You may need to adjust your target or increase savings.",
                "🕒",
                "yellow",
            )
        )

    return notifications


def check_encouragement(
    current: SavingsGoalProgress,
    goal_name: str,
    goal_id: str,
    *,
    rng: random.Random | None = None,
    clock: Clock | None = None,
) -> list[GoalNotification]:
    """Occasionally cheer on a goal that is on track and between 10% and 90%."""

    if current.is_on_track is not True or not 10 < current.progress_percentage < 90:
        return []

    emitter = _emitter(goal_name, goal_id, rng, clock)
    if emitter.rng.random() >= ENCOURAGEMENT_PROBABILITY:
        return []

    return [
        emitter.make(
            "encouragement",
            "encouragement",
            "Great Progress!",
            f"💪 You're doing great with your {goal_name} goal! Keep up the excellent work!",
            "💪",
            "green",
        )
    ]


def check_goal_achievements(
    current: SavingsGoalProgress,
    previous: SavingsGoalProgress | None,
    goal_name: str,
    goal_id: str,
    preferences: NotificationPreferences = DEFAULT_NOTIFICATION_PREFERENCES,
    *,
    rng: random.Random | None = None,
    clock: Clock | None = None,
) -> list[GoalNotification]:
    """Run every enabled rule evaluator, in completion/milestone/warning/encouragement order."""

    notifications: list[GoalNotification] = []
    if preferences.enable_achievement_notifications:
        notifications.extend(check_completion(current, previous, goal_name, goal_id, rng=rng, clock=clock))
    if preferences.enable_milestone_notifications:
        notifications.extend(check_milestones(current, previous, goal_name, goal_id, rng=rng, clock=clock))
    if preferences.enable_warning_notifications:
        notifications.extend(check_warnings(current, goal_name, goal_id, clock=clock))
    if preferences.enable_encouragement_notifications:
        notifications.extend(check_encouragement(current, goal_name, goal_id, rng=rng, clock=clock))

    if notifications:
        logger.info(
            f"Generated {len(notifications)} notification(s) for goal {goal_id}",
            extra={"types": [n.type for n in notifications]},
        )
    return notifications


_SEVERITY_BY_TYPE: dict[str, Severity] = {
    "achievement": "success",
    "milestone": "success",
    "encouragement": "success",
    "warning": "warning",
}

_DURATION_BY_SEVERITY: dict[Severity, int] = {
    "success": 5000,
    "info": 5000,
    "warning": 7000,
    "error": 6000,
}

ACHIEVEMENT_DURATION_MS = 8000


def presentation_for(notification: GoalNotification) -> Presentation:
    """Severity and suggested on-screen duration for ``notification``."""

    severity = _SEVERITY_BY_TYPE.get(notification.type, "info")
    duration = _DURATION_BY_SEVERITY[severity]
    if notification.type == "achievement":
        duration = ACHIEVEMENT_DURATION_MS
    return Presentation(severity=severity, duration_ms=duration)


def display_notification(notification: GoalNotification, sink: NotificationSink) -> Presentation:
    presentation = presentation_for(notification)
    show = getattr(sink, presentation.severity)
    show(notification.message, title=notification.title, duration=presentation.duration_ms)
    logger.debug(f"Displayed {notification.type} notification {notification.id}")
    return presentation


def plan_notification_display(
    notifications: Iterable[GoalNotification],
) -> list[ScheduledNotification]:
    """Stagger notifications one second apart so they do not arrive at once."""

    return [
        ScheduledNotification(
            notification=notification,
            presentation=presentation_for(notification),
            delay_ms=index * DISPLAY_STAGGER_MS,
        )
        for index, notification in enumerate(notifications)
    ]


def format_notification_for_storage(notification: GoalNotification) -> str:
    data = asdict(notification)
    data["timestamp"] = notification.timestamp.isoformat()
    return json.dumps(data, ensure_ascii=False)


def parse_stored_notification(stored: str) -> GoalNotification:
    """Rebuild a notification saved by :func:`format_notification_for_storage`."""

    try:
        data = json.loads(stored)
        return GoalNotification(
            id=data["id"],
            type=data["type"],
            title=data["title"],
            message=data["message"],
            icon=data["icon"],
            color=data["color"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            goal_id=data.get("goal_id"),
            milestone_percentage=data.get("milestone_percentage"),
        )
    except (ValueError, KeyError, TypeError) as exc:
        raise InvalidArgument(f"Malformed stored notification: {exc}") from exc


def get_notification_summary(notifications: Iterable[GoalNotification]) -> NotificationSummary:
    counts = Counter(notification.type for notification in notifications)
    return NotificationSummary(
        total=sum(counts.values()),
        achievements=counts["achievement"],
        milestones=counts["milestone"],
        warnings=counts["warning"],
        encouragements=counts["encouragement"],
    )
