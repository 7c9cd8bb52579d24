"""Multi-scenario savings goal forecasts.

Contribution history is summarised per calendar month, then used to size
conservative, realistic and optimistic monthly contributions. Plain-language
recommendations, risk factors and confidence factors are picked by ordered
rule tables over the same inputs.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Iterable, Literal

from ..constants import CONTRIBUTION_TYPES
from ..dates import (
    DAYS_PER_MONTH,
    WEEKS_PER_MONTH,
    DateLike,
    add_fractional_months,
    coerce_date,
    months_between,
)
from ..formatting import format_currency
from ..logging_config import get_logger
from ..models.transaction import Transaction

logger = get_logger(__name__)

TrendDirection = Literal["increasing", "decreasing", "stable"]
ScenarioName = Literal["conservative", "realistic", "optimistic"]

TREND_THRESHOLD_PERCENT = 10.0
MIN_MONTHS_FOR_TREND = 3

# Fallback multipliers on the naive "remaining / months left" baseline
CONSERVATIVE_MULTIPLIER = 0.7
REALISTIC_MULTIPLIER = 1.0
OPTIMISTIC_MULTIPLIER = 1.3
CONSERVATIVE_FLOOR = 0.5
OPTIMISTIC_CEILING = 2.0

BASE_CONFIDENCE = 50.0
MIN_CONFIDENCE = 10.0
MAX_CONFIDENCE = 95.0


@dataclass(frozen=True, slots=True)
class MonthlyPattern:
    """Average contribution for one calendar month (1-12) across all years seen."""

    month: int
    average_contribution: float
    transaction_count: int


@dataclass(frozen=True, slots=True)
class HistoricalAnalysis:
    average_monthly_contribution: float
    highest_monthly_contribution: float
    lowest_monthly_contribution: float
    consistency_score: float
    trend_direction: TrendDirection
    seasonal_patterns: tuple[MonthlyPattern, ...]
    total_contributions: float
    months_with_data: int


EMPTY_ANALYSIS = HistoricalAnalysis(
    average_monthly_contribution=0.0,
    highest_monthly_contribution=0.0,
    lowest_monthly_contribution=0.0,
    consistency_score=0.0,
    trend_direction="stable",
    seasonal_patterns=(),
    total_contributions=0.0,
    months_with_data=0,
)


@dataclass(frozen=True, slots=True)
class ScenarioData:
    """One forecast tier. At most one of ``shortfall``/``surplus`` is set."""

    monthly_contribution: float
    daily_contribution: float
    weekly_contribution: float
    yearly_contribution: float
    projected_completion_date: date
    confidence: float
    shortfall: float | None = None
    surplus: float | None = None


@dataclass(frozen=True, slots=True)
class ProjectionScenarios:
    conservative: ScenarioData
    realistic: ScenarioData
    optimistic: ScenarioData


@dataclass(frozen=True, slots=True)
class AdvancedGoalProjection:
    scenarios: ProjectionScenarios
    historical_analysis: HistoricalAnalysis
    recommendations: list[str]
    risk_factors: list[str]
    confidence_factors: list[str]


def analyze_historical_contributions(
    transactions: Iterable[Transaction],
    goal_start_date: DateLike | None = None,
) -> HistoricalAnalysis:
    """Summarise positive income/allocation/transfer transactions per calendar month.

    When ``goal_start_date`` is given, earlier transactions are ignored.
    Months are ordered chronologically before the trend is measured.
    """

    start = coerce_date(goal_start_date) if goal_start_date is not None else None

    monthly_totals: dict[tuple[int, int], float] = defaultdict(float)
    monthly_counts: dict[tuple[int, int], int] = defaultdict(int)
    for txn in transactions:
        if txn.type not in CONTRIBUTION_TYPES or txn.amount <= 0:
            continue
        txn_date = coerce_date(txn.date)
        if start is not None and txn_date < start:
            continue
        key = (txn_date.year, txn_date.month)
        monthly_totals[key] += float(txn.amount)
        monthly_counts[key] += 1

    if not monthly_totals:
        return EMPTY_ANALYSIS

    keys = sorted(monthly_totals)
    amounts = [monthly_totals[key] for key in keys]
    months_with_data = len(amounts)
    total = sum(amounts)
    average = total / months_with_data

    variance = (
        sum((amount - average) ** 2 for amount in amounts) / months_with_data
        if months_with_data > 1
        else 0.0
    )
    coefficient_of_variation = math.sqrt(variance) / average if average > 0 else 1.0
    consistency_score = max(0.0, min(100.0, (1 - coefficient_of_variation) * 100))

    trend: TrendDirection = "stable"
    if months_with_data >= MIN_MONTHS_FOR_TREND:
        first_half = amounts[: months_with_data // 2]
        second_half = amounts[math.ceil(months_with_data / 2):]
        first_avg = sum(first_half) / len(first_half)
        second_avg = sum(second_half) / len(second_half)
        change = (second_avg - first_avg) / first_avg * 100
        if change > TREND_THRESHOLD_PERCENT:
            trend = "increasing"
        elif change < -TREND_THRESHOLD_PERCENT:
            trend = "decreasing"

    patterns = []
    for month in range(1, 13):
        month_keys = [key for key in keys if key[1] == month]
        if not month_keys:
            continue
        patterns.append(
            MonthlyPattern(
                month=month,
                average_contribution=sum(monthly_totals[key] for key in month_keys) / len(month_keys),
                transaction_count=sum(monthly_counts[key] for key in month_keys),
            )
        )

    return HistoricalAnalysis(
        average_monthly_contribution=average,
        highest_monthly_contribution=max(amounts),
        lowest_monthly_contribution=min(amounts),
        consistency_score=consistency_score,
        trend_direction=trend,
        seasonal_patterns=tuple(patterns),
        total_contributions=total,
        months_with_data=months_with_data,
    )


def _scenario_confidence(analysis: HistoricalAnalysis | None, scenario: ScenarioName) -> float:
    if analysis is None:
        return BASE_CONFIDENCE

    confidence = analysis.consistency_score
    if scenario == "conservative":
        confidence = min(MAX_CONFIDENCE, confidence + 20)
    elif scenario == "optimistic":
        confidence = max(20.0, confidence - 20)

    if analysis.trend_direction == "increasing":
        confidence += 10
    elif analysis.trend_direction == "decreasing":
        confidence -= 10

    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence))


def _calculate_scenario(
    current_amount: float,
    target_amount: float,
    target: date,
    monthly_contribution: float,
    analysis: HistoricalAnalysis | None,
    scenario: ScenarioName,
    today: date,
) -> ScenarioData:
    remaining = max(0.0, target_amount - current_amount)

    completion = target
    if monthly_contribution > 0 and remaining > 0:
        completion = add_fractional_months(today, remaining / monthly_contribution)

    months_to_target = max(0, months_between(today, target))
    projected = current_amount + monthly_contribution * months_to_target

    shortfall = surplus = None
    if projected < target_amount:
        shortfall = target_amount - projected
    elif projected > target_amount:
        surplus = projected - target_amount

    return ScenarioData(
        monthly_contribution=monthly_contribution,
        daily_contribution=monthly_contribution / DAYS_PER_MONTH,
        weekly_contribution=monthly_contribution / WEEKS_PER_MONTH,
        yearly_contribution=monthly_contribution * 12,
        projected_completion_date=completion,
        confidence=_scenario_confidence(analysis, scenario),
        shortfall=shortfall,
        surplus=surplus,
    )


def calculate_projection_scenarios(
    current_amount: float,
    target_amount: float,
    target_date: DateLike | None = None,
    historical_analysis: HistoricalAnalysis | None = None,
    *,
    today: date | None = None,
) -> ProjectionScenarios:
    """Build the three forecast tiers.

    Without a target date the goal is assumed due one year from today. The
    conservative and optimistic contributions scale the baseline by the
    historical lowest/average and highest/average ratios (floored at 0.5,
    capped at 2.0) when history exists, else by fixed 0.7 and 1.3.
    """

    now = today or date.today()
    target = coerce_date(target_date) if target_date is not None else now + timedelta(days=365)
    remaining = max(0.0, target_amount - current_amount)
    months_remaining = max(1, months_between(now, target))
    baseline = remaining / months_remaining

    conservative_multiplier = CONSERVATIVE_MULTIPLIER
    optimistic_multiplier = OPTIMISTIC_MULTIPLIER
    realistic_contribution = baseline * REALISTIC_MULTIPLIER

    analysis = historical_analysis
    if analysis is not None and analysis.months_with_data > 0:
        average = analysis.average_monthly_contribution
        if average > 0:
            conservative_multiplier = max(CONSERVATIVE_FLOOR, analysis.lowest_monthly_contribution / average)
            optimistic_multiplier = min(OPTIMISTIC_CEILING, analysis.highest_monthly_contribution / average)
            realistic_contribution = average

    logger.debug(
        "Scenario multipliers",
        extra={
            "baseline": baseline,
            "conservative": conservative_multiplier,
            "optimistic": optimistic_multiplier,
        },
    )

    def build(contribution: float, scenario: ScenarioName) -> ScenarioData:
        return _calculate_scenario(
            current_amount, target_amount, target, contribution, analysis, scenario, now
        )

    return ProjectionScenarios(
        conservative=build(baseline * conservative_multiplier, "conservative"),
        realistic=build(realistic_contribution, "realistic"),
        optimistic=build(baseline * optimistic_multiplier, "optimistic"),
    )


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _ForecastContext:
    current_amount: float
    target_amount: float
    target_date: date | None
    analysis: HistoricalAnalysis
    scenarios: ProjectionScenarios | None
    today: date

    @property
    def has_deadline(self) -> bool:
        return self.scenarios is not None and self.target_date is not None

    @property
    def realistic(self) -> ScenarioData | None:
        return self.scenarios.realistic if self.scenarios else None

    @property
    def percentage_complete(self) -> float:
        return self.current_amount / self.target_amount * 100 if self.target_amount else 0.0


@dataclass(frozen=True, slots=True)
class _Rule:
    applies: Callable[[_ForecastContext], bool]
    message: str | Callable[[_ForecastContext], str]

    def render(self, ctx: _ForecastContext) -> str:
        return self.message(ctx) if callable(self.message) else self.message


def _evaluate(rules: tuple[_Rule, ...], ctx: _ForecastContext) -> list[str]:
    return [rule.render(ctx) for rule in rules if rule.applies(ctx)]


def _realistic_shortfall(ctx: _ForecastContext) -> float:
    realistic = ctx.realistic
    return realistic.shortfall if realistic and realistic.shortfall else 0.0


def _additional_monthly_message(ctx: _ForecastContext) -> str:
    months_left = max(1, months_between(ctx.today, ctx.target_date)) if ctx.target_date else 1
    additional = _realistic_shortfall(ctx) / months_left
    return f"Increase monthly contributions by {format_currency(additional)} to meet your target date"


def _is_low_consistency(ctx: _ForecastContext) -> bool:
    return ctx.analysis.consistency_score < 60


def _is_declining(ctx: _ForecastContext) -> bool:
    return ctx.analysis.trend_direction == "decreasing"


def _is_growing(ctx: _ForecastContext) -> bool:
    return ctx.analysis.trend_direction == "increasing"


def _has_remaining(ctx: _ForecastContext) -> bool:
    return ctx.target_amount - ctx.current_amount > 0


NO_HISTORY_RECOMMENDATIONS = (
    "Start tracking your contributions to get more accurate projections",
    "Set up automatic transfers to maintain consistent savings",
)

RECOMMENDATION_RULES: tuple[_Rule, ...] = (
    _Rule(_is_low_consistency, "Try to maintain more consistent monthly contributions for better results"),
    _Rule(_is_low_consistency, "Consider setting up automatic transfers to improve consistency"),
    _Rule(_is_declining, "Your contribution trend is declining - consider reviewing your budget"),
    _Rule(_is_declining, "Look for areas to cut expenses and increase savings"),
    _Rule(_is_growing, "Great job! Your contributions are trending upward"),
    _Rule(
        lambda ctx: ctx.has_deadline and _realistic_shortfall(ctx) > 0,
        _additional_monthly_message,
    ),
    _Rule(
        lambda ctx: ctx.has_deadline
        and ctx.realistic is not None
        and ctx.realistic.projected_completion_date > ctx.target_date,
        "Consider extending your target date or increasing contributions",
    ),
    _Rule(
        lambda ctx: _has_remaining(ctx) and ctx.percentage_complete < 25,
        "You're just getting started - focus on building the habit of regular contributions",
    ),
    _Rule(
        lambda ctx: _has_remaining(ctx) and 25 <= ctx.percentage_complete < 75,
        "You're making good progress - stay consistent with your contributions",
    ),
    _Rule(
        lambda ctx: _has_remaining(ctx) and ctx.percentage_complete >= 75,
        "You're almost there! Keep up the momentum to reach your goal",
    ),
)

RISK_RULES: tuple[_Rule, ...] = (
    _Rule(
        lambda ctx: ctx.analysis.consistency_score < 40,
        "High variability in contributions may impact goal achievement",
    ),
    _Rule(_is_declining, "Declining contribution trend poses risk to timeline"),
    _Rule(
        lambda ctx: ctx.analysis.months_with_data < MIN_MONTHS_FOR_TREND,
        "Limited historical data reduces projection accuracy",
    ),
    _Rule(
        lambda ctx: ctx.has_deadline and months_between(ctx.today, ctx.target_date) < 6,
        "Short timeline increases difficulty of goal achievement",
    ),
    _Rule(
        lambda ctx: ctx.has_deadline and _realistic_shortfall(ctx) > 0,
        "Current contribution rate insufficient for target date",
    ),
)

CONFIDENCE_RULES: tuple[_Rule, ...] = (
    _Rule(
        lambda ctx: ctx.analysis.consistency_score > 70,
        "Consistent contribution history increases confidence",
    ),
    _Rule(_is_growing, "Improving contribution trend supports projections"),
    _Rule(
        lambda ctx: ctx.analysis.months_with_data >= 6,
        "Sufficient historical data improves accuracy",
    ),
    _Rule(
        lambda ctx: ctx.realistic is not None and (ctx.realistic.surplus or 0) > 0,
        "Current pace exceeds minimum requirements",
    ),
)


def _context(
    current_amount: float,
    target_amount: float,
    target_date: DateLike | None,
    analysis: HistoricalAnalysis,
    scenarios: ProjectionScenarios | None,
    today: date | None,
) -> _ForecastContext:
    return _ForecastContext(
        current_amount=current_amount,
        target_amount=target_amount,
        target_date=coerce_date(target_date) if target_date is not None else None,
        analysis=analysis,
        scenarios=scenarios,
        today=today or date.today(),
    )


def generate_recommendations(
    current_amount: float,
    target_amount: float,
    target_date: DateLike | None = None,
    historical_analysis: HistoricalAnalysis | None = None,
    scenarios: ProjectionScenarios | None = None,
    *,
    today: date | None = None,
) -> list[str]:
    """Personalised advice, in rule-table order."""

    if historical_analysis is None or historical_analysis.months_with_data == 0:
        return list(NO_HISTORY_RECOMMENDATIONS)

    ctx = _context(current_amount, target_amount, target_date, historical_analysis, scenarios, today)
    return _evaluate(RECOMMENDATION_RULES, ctx)


def identify_risk_factors(
    historical_analysis: HistoricalAnalysis | None,
    scenarios: ProjectionScenarios | None = None,
    target_date: DateLike | None = None,
    *,
    today: date | None = None,
) -> list[str]:
    if historical_analysis is None:
        return []
    ctx = _context(0.0, 0.0, target_date, historical_analysis, scenarios, today)
    return _evaluate(RISK_RULES, ctx)


def identify_confidence_factors(
    historical_analysis: HistoricalAnalysis | None,
    scenarios: ProjectionScenarios | None = None,
) -> list[str]:
    if historical_analysis is None:
        return []
    ctx = _context(0.0, 0.0, None, historical_analysis, scenarios, None)
    return _evaluate(CONFIDENCE_RULES, ctx)


def calculate_advanced_goal_projections(
    current_amount: float,
    target_amount: float,
    target_date: DateLike | None = None,
    historical_transactions: Iterable[Transaction] = (),
    goal_start_date: DateLike | None = None,
    *,
    today: date | None = None,
) -> AdvancedGoalProjection:
    """Full forecast for one goal: history, scenarios and the three text lists."""

    now = today or date.today()
    analysis = analyze_historical_contributions(historical_transactions, goal_start_date)
    scenarios = calculate_projection_scenarios(
        current_amount, target_amount, target_date, analysis, today=now
    )

    return AdvancedGoalProjection(
        scenarios=scenarios,
        historical_analysis=analysis,
        recommendations=generate_recommendations(
            current_amount, target_amount, target_date, analysis, scenarios, today=now
        ),
        risk_factors=identify_risk_factors(analysis, scenarios, target_date, today=now),
        confidence_factors=identify_confidence_factors(analysis, scenarios),
    )
