"""Debt payoff calculators.

Fixed-rate, fixed-payment amortization for a single debt envelope: progress
estimates, payoff projections, payment schedules, the payment required to
finish within a deadline, and a comparison of simple payoff strategies.

All amounts are kept at full float precision; rounding to cents is a
formatting concern (see :mod:`alvu.formatting`).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Iterable

from ..dates import DateLike, add_months, coerce_date
from ..errors import InvalidArgument
from ..logging_config import get_logger
from ..models.envelope import Envelope
from ..models.transaction import Transaction

logger = get_logger(__name__)

MAX_PAYOFF_MONTHS = 600  # 50 years; guards against non-terminating simulations
PAYOFF_THRESHOLD = 0.01  # balances at or below one cent count as paid off
NEVER_PAYOFF_HORIZON_MONTHS = 50 * 12

AGGRESSIVE_MIN_MONTHS = 36
AGGRESSIVE_MAX_MONTHS = 60


@dataclass(frozen=True, slots=True)
class DebtProgress:
    """How far a debt envelope has been paid down.

    ``original_balance`` is an estimate: the current balance plus every
    positive payment recorded against the envelope. The original principal
    is not stored anywhere, so principal reductions that happened outside
    tracked transactions are not reflected.
    """

    current_balance: float
    original_balance: float
    total_paid: float
    progress_percentage: float
    remaining_balance: float


@dataclass(frozen=True, slots=True)
class PayoffProjection:
    """A debt that reaches zero within the simulation horizon."""

    is_reachable: ClassVar[bool] = True

    months_to_payoff: int
    total_interest_paid: float
    total_amount_paid: float
    payoff_date: date
    monthly_payment: float


@dataclass(frozen=True, slots=True)
class NeverPaysOff:
    """A debt whose payment does not cover the interest accruing each month.

    The infinite totals are exposed for callers that compare projections,
    but they must never be formatted as money; check ``is_reachable`` first.
    """

    is_reachable: ClassVar[bool] = False
    months_to_payoff: ClassVar[float] = math.inf
    total_interest_paid: ClassVar[float] = math.inf
    total_amount_paid: ClassVar[float] = math.inf

    monthly_payment: float
    monthly_interest: float
    payoff_date: date  # the 50-year horizon, not a real payoff date


PayoffResult = PayoffProjection | NeverPaysOff


@dataclass(frozen=True, slots=True)
class PaymentScheduleEntry:
    """One month of a payment schedule."""

    payment_number: int
    date: date
    payment: float
    principal: float
    interest: float
    remaining_balance: float


@dataclass(frozen=True, slots=True)
class DebtStrategy:
    """A named payoff scenario.

    ``monthly_savings`` is the total interest saved compared with paying only
    the minimum; it is ``None`` for the minimum strategy itself.
    """

    name: str
    description: str
    months_to_payoff: int
    total_interest_paid: float
    monthly_payment: float
    monthly_savings: float | None = None


def _monthly_rate(apr: float) -> float:
    return apr / 100 / 12


def calculate_debt_progress(
    envelope: Envelope, transactions: Iterable[Transaction] = ()
) -> DebtProgress:
    """Compute paid-down progress for a debt envelope from its payment history."""

    if not envelope.is_debt:
        raise InvalidArgument('Envelope must be of type "debt"')

    current_balance = abs(float(envelope.balance or 0.0))
    total_paid = sum(
        float(txn.amount)
        for txn in transactions
        if txn.envelope_id == envelope.id and txn.amount > 0
    )
    original_balance = current_balance + total_paid
    progress = (total_paid / original_balance) * 100 if original_balance > 0 else 0.0

    return DebtProgress(
        current_balance=current_balance,
        original_balance=original_balance,
        total_paid=total_paid,
        progress_percentage=max(0.0, min(progress, 100.0)),
        remaining_balance=current_balance,
    )


def calculate_debt_payoff_projection(
    current_balance: float,
    apr: float,
    monthly_payment: float,
    *,
    today: date | None = None,
) -> PayoffResult:
    """Project when a debt is paid off with a fixed monthly payment."""

    start = today or date.today()

    if current_balance <= 0 or monthly_payment <= 0:
        return PayoffProjection(
            months_to_payoff=0,
            total_interest_paid=0.0,
            total_amount_paid=current_balance,
            payoff_date=start,
            monthly_payment=monthly_payment,
        )

    monthly_rate = _monthly_rate(apr)
    monthly_interest = current_balance * monthly_rate
    if monthly_payment <= monthly_interest:
        logger.warning(
            "Payment does not cover monthly interest; debt never pays off",
            extra={"monthly_payment": monthly_payment, "monthly_interest": monthly_interest},
        )
        return NeverPaysOff(
            monthly_payment=monthly_payment,
            monthly_interest=monthly_interest,
            payoff_date=add_months(start, NEVER_PAYOFF_HORIZON_MONTHS),
        )

    balance = float(current_balance)
    total_interest = 0.0
    months = 0
    while balance > PAYOFF_THRESHOLD and months < MAX_PAYOFF_MONTHS:
        interest = balance * monthly_rate
        principal = min(monthly_payment - interest, balance)
        total_interest += interest
        balance -= principal
        months += 1

    if balance > PAYOFF_THRESHOLD:
        logger.warning(f"Payoff simulation stopped at the {MAX_PAYOFF_MONTHS}-month cap")

    return PayoffProjection(
        months_to_payoff=months,
        total_interest_paid=total_interest,
        total_amount_paid=current_balance + total_interest,
        payoff_date=add_months(start, months),
        monthly_payment=monthly_payment,
    )


def generate_debt_payment_schedule(
    current_balance: float,
    apr: float,
    monthly_payment: float,
    max_payments: int = 60,
    *,
    today: date | None = None,
) -> list[PaymentScheduleEntry]:
    """Return month-by-month payments until the balance clears or ``max_payments`` is hit.

    The first payment is dated ``today``; each following one a calendar month later.
    """

    start = today or date.today()
    monthly_rate = _monthly_rate(apr)
    balance = float(current_balance)
    schedule: list[PaymentScheduleEntry] = []

    payment_number = 1
    while balance > PAYOFF_THRESHOLD and payment_number <= max_payments:
        interest = balance * monthly_rate
        principal = min(monthly_payment - interest, balance)
        balance -= principal

        schedule.append(
            PaymentScheduleEntry(
                payment_number=payment_number,
                date=add_months(start, payment_number - 1),
                payment=interest + principal,
                principal=principal,
                interest=interest,
                remaining_balance=max(balance, 0.0),
            )
        )
        payment_number += 1

    return schedule


def calculate_required_payment(current_balance: float, apr: float, target_months: float) -> float:
    """Monthly payment that clears ``current_balance`` in ``target_months``.

    Uses the annuity formula ``PMT = PV * r * (1 + r)^n / ((1 + r)^n - 1)``;
    at a zero rate this is plain division.
    """

    if current_balance <= 0 or target_months <= 0:
        return 0.0

    monthly_rate = _monthly_rate(apr)
    if monthly_rate == 0:
        return current_balance / target_months

    growth = (1 + monthly_rate) ** target_months
    return current_balance * monthly_rate * growth / (growth - 1)


def compare_debt_strategies(
    current_balance: float, apr: float, minimum_payment: float
) -> list[DebtStrategy]:
    """Compare minimum, double-minimum and aggressive payoff plans.

    Strategies that never pay the debt off are left out.
    """

    minimum = calculate_debt_payoff_projection(current_balance, apr, minimum_payment)
    candidates: list[tuple[str, str, float, PayoffResult]] = [
        ("Minimum Payment", "Pay only the minimum required amount", minimum_payment, minimum),
    ]

    if minimum_payment > 0:
        double_payment = minimum_payment * 2
        candidates.append(
            (
                "Double Minimum",
                "Pay twice the minimum amount",
                double_payment,
                calculate_debt_payoff_projection(current_balance, apr, double_payment),
            )
        )

    aggressive_months = min(
        AGGRESSIVE_MAX_MONTHS, max(AGGRESSIVE_MIN_MONTHS, minimum.months_to_payoff * 0.5)
    )
    aggressive_payment = calculate_required_payment(current_balance, apr, aggressive_months)
    candidates.append(
        (
            "Aggressive Payoff",
            f"Pay off in {math.floor(aggressive_months + 0.5)} months",
            aggressive_payment,
            calculate_debt_payoff_projection(current_balance, apr, aggressive_payment),
        )
    )

    strategies: list[DebtStrategy] = []
    for index, (name, description, payment, projection) in enumerate(candidates):
        if not projection.is_reachable:
            logger.debug(f"Dropping unreachable strategy {name!r}")
            continue
        savings = None
        if index > 0 and minimum.is_reachable:
            savings = minimum.total_interest_paid - projection.total_interest_paid
        strategies.append(
            DebtStrategy(
                name=name,
                description=description,
                months_to_payoff=projection.months_to_payoff,
                total_interest_paid=projection.total_interest_paid,
                monthly_payment=payment,
                monthly_savings=savings,
            )
        )
    return strategies


def calculate_next_payment_date(
    last_payment_date: DateLike | None = None, *, today: date | None = None
) -> date:
    """Next due date: a month after the last payment if still ahead, else a month from today."""

    current = today or date.today()
    next_month = add_months(current, 1)
    if last_payment_date is not None:
        candidate = add_months(coerce_date(last_payment_date), 1)
        return candidate if candidate > current else next_month
    return next_month


def is_payment_overdue(
    envelope: Envelope,
    transactions: Iterable[Transaction] = (),
    *,
    today: date | None = None,
) -> bool:
    """Return True when a month has passed since the latest payment to a debt envelope.

    Envelopes that are not debts, have no minimum payment, or have no recorded
    payments are never reported overdue.
    """

    if not envelope.is_debt or not envelope.minimum_payment:
        return False

    payments = [
        coerce_date(txn.date)
        for txn in transactions
        if txn.envelope_id == envelope.id and txn.amount > 0
    ]
    if not payments:
        return False

    current = today or date.today()
    return current > add_months(max(payments), 1)
