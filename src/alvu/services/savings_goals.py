"""Savings goal progress and projection calculators.

Point-in-time progress for one goal, straight-line projections of where a
monthly contribution leads, what-if comparisons across contribution
amounts, and velocity analysis over a balance history.

Month counts use calendar arithmetic (see :func:`alvu.dates.months_between`)
and fractional months are turned into dates with
:func:`alvu.dates.add_fractional_months`, so every function here agrees on
what "N months from today" means.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Literal, Sequence

from ..constants import GOAL_MILESTONES
from ..dates import (
    DAYS_PER_MONTH,
    FAR_FUTURE,
    WEEKS_PER_MONTH,
    DateLike,
    add_days,
    add_fractional_months,
    coerce_date,
    months_between,
)
from ..errors import InvalidArgument
from ..logging_config import get_logger

logger = get_logger(__name__)

VelocityTrend = Literal["accelerating", "decelerating", "steady"]

MILESTONE_LABELS = {
    25: "Quarter way there!",
    50: "Halfway point!",
    75: "Three quarters done!",
    100: "Goal achieved!",
}


@dataclass(frozen=True, slots=True)
class ContributionTargets:
    """Amounts needed per day/week/month to close the remaining gap in time."""

    daily: float
    weekly: float
    monthly: float


@dataclass(frozen=True, slots=True)
class TimeTracking:
    """Deadline-related progress, only computed when a goal has a target date.

    ``is_on_track`` is ``None`` once the goal is completed or no days remain.
    ``contribution_targets`` is ``None`` unless money and days both remain.
    ``projected_completion_date`` is a naive extrapolation of the average
    daily rate since the start date; it ignores irregular contribution timing.
    """

    target_date: date
    days_remaining: int
    days_total: int
    time_progress_percentage: float
    is_on_track: bool | None = None
    contribution_targets: ContributionTargets | None = None
    projected_completion_date: date | None = None


@dataclass(frozen=True, slots=True)
class SavingsGoalProgress:
    """Progress snapshot for one savings goal."""

    current_amount: float
    target_amount: float
    progress_percentage: float
    remaining_amount: float
    is_completed: bool
    time: TimeTracking | None = None

    @property
    def has_target_date(self) -> bool:
        return self.time is not None

    @property
    def target_date(self) -> date | None:
        return self.time.target_date if self.time else None

    @property
    def days_remaining(self) -> int | None:
        return self.time.days_remaining if self.time else None

    @property
    def days_total(self) -> int | None:
        return self.time.days_total if self.time else None

    @property
    def time_progress_percentage(self) -> float | None:
        return self.time.time_progress_percentage if self.time else None

    @property
    def is_on_track(self) -> bool | None:
        return self.time.is_on_track if self.time else None


@dataclass(frozen=True, slots=True)
class SavingsGoalProjection:
    """Where a fixed monthly contribution leaves the goal on its target date.

    Exactly one of ``shortfall`` and ``surplus`` is set, unless the projection
    lands exactly on target.
    """

    projected_amount: float
    projected_date: date
    shortfall: float | None = None
    surplus: float | None = None
    recommended_daily_amount: float | None = None
    recommended_weekly_amount: float | None = None
    recommended_monthly_amount: float | None = None


@dataclass(frozen=True, slots=True)
class WhatIfScenario:
    """Outcome of saving ``monthly_contribution`` every month.

    Non-positive contributions never reach the goal: ``months_to_complete``
    is ``None`` and ``projected_completion_date`` is :data:`FAR_FUTURE`.
    """

    monthly_contribution: float
    projected_completion_date: date
    months_to_complete: int | None
    will_meet_target: bool
    surplus: float | None = None
    shortfall: float | None = None

    @property
    def is_reachable(self) -> bool:
        return self.months_to_complete is not None


@dataclass(frozen=True, slots=True)
class OptimalContribution:
    monthly_amount: float
    weekly_amount: float
    daily_amount: float
    total_required: float
    months_available: int


@dataclass(frozen=True, slots=True)
class ProgressPoint:
    """Goal balance observed on a given date."""

    date: date
    amount: float


@dataclass(frozen=True, slots=True)
class GoalVelocity:
    daily_velocity: float
    weekly_velocity: float
    monthly_velocity: float
    trend: VelocityTrend
    confidence: float


@dataclass(frozen=True, slots=True)
class Milestone:
    percentage: int
    amount: float
    achieved: bool
    label: str


def calculate_savings_goal_progress(
    current_amount: float,
    target_amount: float,
    target_date: DateLike | None = None,
    start_date: DateLike | None = None,
    *,
    today: date | None = None,
) -> SavingsGoalProgress:
    """Compute progress, and deadline tracking when ``target_date`` is given.

    Raises:
        InvalidArgument: if ``target_amount`` is zero or negative.
    """

    if target_amount <= 0:
        raise InvalidArgument("Target amount must be greater than 0")

    current = max(0.0, float(current_amount))
    progress_percentage = min(100.0, (current / target_amount) * 100)
    remaining = max(0.0, target_amount - current)
    is_completed = current >= target_amount

    time_tracking = None
    if target_date is not None:
        now = today or date.today()
        target = coerce_date(target_date)
        start = coerce_date(start_date) if start_date is not None else now

        days_remaining = max(0, (target - now).days)
        days_total = max(1, (target - start).days)
        days_passed = days_total - days_remaining
        time_progress = max(0.0, min(100.0, (days_passed / days_total) * 100))

        is_on_track = None
        if not is_completed and days_remaining > 0:
            is_on_track = progress_percentage >= time_progress

        targets = None
        if days_remaining > 0 and remaining > 0:
            daily = remaining / days_remaining
            targets = ContributionTargets(daily=daily, weekly=daily * 7, monthly=daily * DAYS_PER_MONTH)

        projected = None
        if not is_completed and days_passed > 0 and current > 0:
            daily_rate = current / days_passed
            projected = add_days(now, math.ceil(remaining / daily_rate))

        time_tracking = TimeTracking(
            target_date=target,
            days_remaining=days_remaining,
            days_total=days_total,
            time_progress_percentage=time_progress,
            is_on_track=is_on_track,
            contribution_targets=targets,
            projected_completion_date=projected,
        )

    return SavingsGoalProgress(
        current_amount=current,
        target_amount=target_amount,
        progress_percentage=progress_percentage,
        remaining_amount=remaining,
        is_completed=is_completed,
        time=time_tracking,
    )


def calculate_savings_goal_projections(
    current_amount: float,
    target_amount: float,
    target_date: DateLike,
    monthly_contribution: float = 0.0,
    *,
    today: date | None = None,
) -> SavingsGoalProjection:
    """Project the balance on ``target_date`` given a fixed monthly contribution."""

    now = today or date.today()
    target = coerce_date(target_date)
    months_remaining = max(0, months_between(now, target))

    if months_remaining <= 0:
        return SavingsGoalProjection(
            projected_amount=current_amount,
            projected_date=now,
            shortfall=max(0.0, target_amount - current_amount),
        )

    projected_amount = current_amount + monthly_contribution * months_remaining
    recommended_monthly = max(0.0, target_amount - current_amount) / months_remaining

    shortfall = surplus = None
    if projected_amount < target_amount:
        shortfall = target_amount - projected_amount
    elif projected_amount > target_amount:
        surplus = projected_amount - target_amount

    return SavingsGoalProjection(
        projected_amount=projected_amount,
        projected_date=target,
        shortfall=shortfall,
        surplus=surplus,
        recommended_daily_amount=recommended_monthly / DAYS_PER_MONTH,
        recommended_weekly_amount=recommended_monthly / WEEKS_PER_MONTH,
        recommended_monthly_amount=recommended_monthly,
    )


def calculate_what_if_scenarios(
    current_amount: float,
    target_amount: float,
    target_date: DateLike,
    contribution_options: Iterable[float],
    *,
    today: date | None = None,
) -> list[WhatIfScenario]:
    """Evaluate each candidate monthly contribution independently."""

    now = today or date.today()
    target = coerce_date(target_date)
    remaining = max(0.0, target_amount - current_amount)
    months_to_target = max(0, months_between(now, target))

    scenarios: list[WhatIfScenario] = []
    for contribution in contribution_options:
        if contribution <= 0:
            scenarios.append(
                WhatIfScenario(
                    monthly_contribution=contribution,
                    projected_completion_date=FAR_FUTURE,
                    months_to_complete=None,
                    will_meet_target=False,
                    shortfall=remaining,
                )
            )
            continue

        months_to_complete = remaining / contribution
        completion = add_fractional_months(now, months_to_complete)
        projected_by_target = current_amount + contribution * months_to_target

        surplus = shortfall = None
        if projected_by_target >= target_amount:
            surplus = projected_by_target - target_amount
        else:
            shortfall = target_amount - projected_by_target

        scenarios.append(
            WhatIfScenario(
                monthly_contribution=contribution,
                projected_completion_date=completion,
                months_to_complete=math.ceil(months_to_complete),
                will_meet_target=completion <= target,
                surplus=surplus,
                shortfall=shortfall,
            )
        )
    return scenarios


def calculate_optimal_contribution(
    current_amount: float,
    target_amount: float,
    target_date: DateLike,
    *,
    today: date | None = None,
) -> OptimalContribution:
    """Constant contribution needed to hit the target, over at least one month."""

    now = today or date.today()
    remaining = max(0.0, target_amount - current_amount)
    months_available = max(1, months_between(now, coerce_date(target_date)))
    monthly = remaining / months_available

    return OptimalContribution(
        monthly_amount=monthly,
        weekly_amount=monthly / WEEKS_PER_MONTH,
        daily_amount=monthly / DAYS_PER_MONTH,
        total_required=remaining,
        months_available=months_available,
    )


def _half_velocity(points: Sequence[ProgressPoint]) -> float:
    elapsed = max(1, (points[-1].date - points[0].date).days)
    return (points[-1].amount - points[0].amount) / elapsed


def calculate_goal_velocity(
    history: Iterable[ProgressPoint | tuple[DateLike, float]],
) -> GoalVelocity:
    """Average savings speed over a balance history, with a trend classification.

    The trend needs at least four points and compares the first and second
    halves of the history with a 10% band either way. Confidence grows with
    the number of points and is full at twelve.
    """

    points = sorted(
        (
            point
            if isinstance(point, ProgressPoint)
            else ProgressPoint(date=coerce_date(point[0]), amount=float(point[1]))
            for point in history
        ),
        key=lambda p: p.date,
    )

    if len(points) < 2:
        logger.debug(f"Velocity needs at least two points, got {len(points)}")
        return GoalVelocity(0.0, 0.0, 0.0, "steady", 0.0)

    daily = _half_velocity(points)

    trend: VelocityTrend = "steady"
    if len(points) >= 4:
        mid = len(points) // 2
        first = _half_velocity(points[:mid])
        second = _half_velocity(points[mid:])
        if second > first * 1.1:
            trend = "accelerating"
        elif second < first * 0.9:
            trend = "decelerating"

    return GoalVelocity(
        daily_velocity=daily,
        weekly_velocity=daily * 7,
        monthly_velocity=daily * DAYS_PER_MONTH,
        trend=trend,
        confidence=min(100.0, len(points) / 12 * 100),
    )


def get_progress_status_color(progress: SavingsGoalProgress) -> str:
    """Traffic-light colour for a progress snapshot."""

    if progress.is_completed:
        return "green"

    if progress.is_on_track is None:
        if progress.progress_percentage >= 75:
            return "green"
        if progress.progress_percentage >= 50:
            return "yellow"
        return "red"

    if progress.is_on_track:
        return "green"
    return "yellow" if progress.progress_percentage >= 50 else "red"


def get_progress_status_text(progress: SavingsGoalProgress) -> str:
    if progress.is_completed:
        return "Goal Completed! 🎉"

    if progress.is_on_track is None:
        if progress.progress_percentage >= 75:
            return "Great progress!"
        if progress.progress_percentage >= 50:
            return "Making progress"
        if progress.progress_percentage >= 25:
            return "Getting started"
        return "Just beginning"

    return "On track" if progress.is_on_track else "Behind schedule"


def calculate_milestones(progress: SavingsGoalProgress) -> list[Milestone]:
    """The fixed 25/50/75/100% milestones with their amounts and status."""

    return [
        Milestone(
            percentage=percentage,
            amount=progress.target_amount * percentage / 100,
            achieved=progress.progress_percentage >= percentage,
            label=MILESTONE_LABELS[percentage],
        )
        for percentage in GOAL_MILESTONES
    ]
