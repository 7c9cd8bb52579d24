"""Tests for debt payoff calculations.

These tests verify the amortization logic for a single debt envelope:
- Progress estimates from payment history
- Payoff projections, including debts that never pay off
- Month-by-month payment schedules
- Required payment for a deadline (annuity formula)
- Strategy comparison
- Next due date and overdue detection
"""

from __future__ import annotations

import math
from datetime import date

import pytest

from alvu.errors import InvalidArgument
from alvu.models import Envelope
from alvu.services.debts import (
    NeverPaysOff,
    PayoffProjection,
    calculate_debt_payoff_projection,
    calculate_debt_progress,
    calculate_next_payment_date,
    calculate_required_payment,
    compare_debt_strategies,
    generate_debt_payment_schedule,
    is_payment_overdue,
)
from tests.conftest import TODAY, assert_float_equal, make_debt_envelope, make_transaction


class TestDebtProgress:
    """Tests for paid-down progress of a debt envelope."""

    def test_non_debt_envelope_is_rejected(self):
        """Progress only makes sense for debt envelopes."""
        envelope = Envelope(name="Groceries", type="regular", balance=100.0)

        with pytest.raises(InvalidArgument):
            calculate_debt_progress(envelope)

    def test_original_balance_is_current_plus_payments(self):
        """Original balance is estimated from current balance and positive payments."""
        envelope = make_debt_envelope(balance=-600.0)
        transactions = [
            make_transaction(250.0, date(2024, 11, 1), "expense", envelope.id),
            make_transaction(150.0, date(2024, 12, 1), "expense", envelope.id),
            make_transaction(-75.0, date(2024, 12, 5), "expense", envelope.id),  # charge, not a payment
            make_transaction(500.0, date(2024, 12, 1), "expense", "another-envelope"),
        ]

        progress = calculate_debt_progress(envelope, transactions)

        assert progress.current_balance == 600.0
        assert progress.total_paid == 400.0
        assert progress.original_balance == 1000.0
        assert_float_equal(progress.progress_percentage, 40.0)
        assert progress.remaining_balance == 600.0

    def test_no_payments_means_no_progress(self):
        envelope = make_debt_envelope(balance=-1200.0)

        progress = calculate_debt_progress(envelope, [])

        assert progress.original_balance == 1200.0
        assert progress.progress_percentage == 0.0

    def test_zero_balance_without_payments(self):
        """A debt with nothing owed and no history reports zero progress, not an error."""
        envelope = make_debt_envelope(balance=0.0)

        progress = calculate_debt_progress(envelope)

        assert progress.original_balance == 0.0
        assert progress.progress_percentage == 0.0


class TestPayoffProjection:
    """Tests for fixed-payment payoff projections."""

    def test_zero_interest_pays_off_in_exact_months(self):
        """$1000 at 0% with $100/month takes exactly 10 months and no interest."""
        projection = calculate_debt_payoff_projection(1000, 0, 100, today=TODAY)

        assert isinstance(projection, PayoffProjection)
        assert projection.is_reachable
        assert projection.months_to_payoff == 10
        assert projection.total_interest_paid == 0
        assert projection.total_amount_paid == 1000
        assert projection.payoff_date == date(2025, 11, 15)

    def test_payment_below_interest_never_pays_off(self):
        """2% monthly interest on $1000 is $20, so a $10 payment never clears it."""
        projection = calculate_debt_payoff_projection(1000, 24, 10, today=TODAY)

        assert isinstance(projection, NeverPaysOff)
        assert not projection.is_reachable
        assert projection.months_to_payoff == math.inf
        assert projection.total_interest_paid == math.inf
        assert_float_equal(projection.monthly_interest, 20.0)
        assert projection.payoff_date == date(2075, 1, 15)

    def test_payment_equal_to_interest_never_pays_off(self):
        projection = calculate_debt_payoff_projection(1000, 24, 20, today=TODAY)

        assert not projection.is_reachable

    def test_interest_bearing_payoff(self):
        """$1000 at 12% APR with $100/month clears in 11 months."""
        projection = calculate_debt_payoff_projection(1000, 12, 100, today=TODAY)

        assert projection.months_to_payoff == 11
        assert 0 < projection.total_interest_paid < 100
        assert_float_equal(
            projection.total_amount_paid, 1000 + projection.total_interest_paid
        )
        assert projection.payoff_date == date(2025, 12, 15)

    def test_nothing_owed_is_already_paid_off(self):
        projection = calculate_debt_payoff_projection(0, 18, 50, today=TODAY)

        assert projection.months_to_payoff == 0
        assert projection.total_interest_paid == 0
        assert projection.payoff_date == TODAY

    def test_same_inputs_give_same_projection(self):
        first = calculate_debt_payoff_projection(2500, 19.99, 120, today=TODAY)
        second = calculate_debt_payoff_projection(2500, 19.99, 120, today=TODAY)

        assert first == second


class TestPaymentSchedule:
    """Tests for month-by-month payment schedules."""

    def test_remaining_balance_never_increases(self):
        schedule = generate_debt_payment_schedule(3000, 18, 150, max_payments=120, today=TODAY)

        balances = [entry.remaining_balance for entry in schedule]
        assert all(later <= earlier for earlier, later in zip(balances, balances[1:]))
        assert balances[-1] <= 0.01

    def test_zero_interest_schedule(self):
        schedule = generate_debt_payment_schedule(1000, 0, 100, today=TODAY)

        assert len(schedule) == 10
        assert [entry.payment_number for entry in schedule] == list(range(1, 11))
        assert all(entry.interest == 0 for entry in schedule)
        assert all(entry.principal == 100 for entry in schedule)
        assert schedule[0].date == TODAY
        assert schedule[1].date == date(2025, 2, 15)
        assert schedule[-1].remaining_balance == 0

    def test_truncated_at_max_payments(self):
        """A long payoff is cut off at max_payments with balance still owed."""
        schedule = generate_debt_payment_schedule(10000, 18, 200, max_payments=12, today=TODAY)

        assert len(schedule) == 12
        assert schedule[-1].remaining_balance > 0

    def test_first_payment_splits_interest_and_principal(self):
        schedule = generate_debt_payment_schedule(1000, 12, 100, today=TODAY)

        first = schedule[0]
        assert_float_equal(first.interest, 10.0)
        assert_float_equal(first.principal, 90.0)
        assert_float_equal(first.payment, 100.0)
        assert_float_equal(first.remaining_balance, 910.0)

    def test_final_payment_is_only_what_is_owed(self):
        schedule = generate_debt_payment_schedule(1000, 12, 100, today=TODAY)

        assert schedule[-1].payment < 100


class TestRequiredPayment:
    """Tests for the payment needed to clear a debt by a deadline."""

    def test_zero_rate_is_plain_division(self):
        assert calculate_required_payment(1200, 0, 12) == 100

    def test_annuity_formula(self):
        """$1000 at 12% APR over 12 months needs about $88.85/month."""
        payment = calculate_required_payment(1000, 12, 12)

        assert_float_equal(payment, 88.85)

    def test_required_payment_clears_debt_on_schedule(self):
        payment = calculate_required_payment(1000, 12, 12)

        projection = calculate_debt_payoff_projection(1000, 12, payment, today=TODAY)

        assert projection.months_to_payoff == 12

    @pytest.mark.parametrize("balance,months", [(0, 12), (-50, 12), (1000, 0)])
    def test_degenerate_inputs_need_no_payment(self, balance, months):
        assert calculate_required_payment(balance, 18, months) == 0


class TestCompareDebtStrategies:
    """Tests for the minimum / double / aggressive comparison."""

    def test_all_strategies_when_minimum_pays_off(self):
        strategies = compare_debt_strategies(1000, 12, 50)

        assert [s.name for s in strategies] == [
            "Minimum Payment",
            "Double Minimum",
            "Aggressive Payoff",
        ]
        minimum, double, aggressive = strategies
        assert minimum.monthly_savings is None
        assert double.monthly_payment == 100
        assert double.months_to_payoff < minimum.months_to_payoff
        assert double.monthly_savings > 0
        assert aggressive.description == "Pay off in 36 months"
        assert aggressive.months_to_payoff == 36

    def test_unreachable_strategies_are_excluded(self):
        """$5000 at 18% accrues $75/month, so a $50 minimum never pays off."""
        strategies = compare_debt_strategies(5000, 18, 50)

        names = [s.name for s in strategies]
        assert "Minimum Payment" not in names
        assert names == ["Double Minimum", "Aggressive Payoff"]
        assert all(math.isfinite(s.months_to_payoff) for s in strategies)
        assert all(s.monthly_savings is None for s in strategies)

    def test_aggressive_window_capped_at_sixty_months(self):
        strategies = compare_debt_strategies(5000, 18, 50)

        aggressive = strategies[-1]
        assert aggressive.description == "Pay off in 60 months"
        assert aggressive.months_to_payoff == 60


class TestPaymentDates:
    """Tests for next due date and overdue detection."""

    def test_next_payment_a_month_after_last(self):
        assert calculate_next_payment_date(date(2025, 1, 10), today=TODAY) == date(2025, 2, 10)

    def test_stale_last_payment_falls_back_to_next_month(self):
        assert calculate_next_payment_date(date(2024, 11, 1), today=TODAY) == date(2025, 2, 15)

    def test_no_last_payment(self):
        assert calculate_next_payment_date(today=TODAY) == date(2025, 2, 15)

    def test_month_end_is_clamped(self):
        next_date = calculate_next_payment_date("2025-01-31", today=date(2025, 2, 1))

        assert next_date == date(2025, 2, 28)

    def test_overdue_after_a_month_without_payment(self):
        envelope = make_debt_envelope()
        payments = [make_transaction(50.0, date(2024, 12, 1), "expense", envelope.id)]

        assert is_payment_overdue(envelope, payments, today=TODAY)

    def test_recent_payment_is_not_overdue(self):
        envelope = make_debt_envelope()
        payments = [
            make_transaction(50.0, date(2024, 12, 1), "expense", envelope.id),
            make_transaction(50.0, date(2025, 1, 5), "expense", envelope.id),
        ]

        assert not is_payment_overdue(envelope, payments, today=TODAY)

    def test_no_payments_is_not_overdue(self):
        assert not is_payment_overdue(make_debt_envelope(), [], today=TODAY)

    def test_without_minimum_payment_is_never_overdue(self):
        envelope = make_debt_envelope(minimum_payment=0.0)
        payments = [make_transaction(50.0, date(2024, 6, 1), "expense", envelope.id)]

        assert not is_payment_overdue(envelope, payments, today=TODAY)

    def test_savings_envelope_is_never_overdue(self):
        envelope = make_debt_envelope()
        envelope.type = "savings"
        payments = [make_transaction(50.0, date(2024, 6, 1), "expense", envelope.id)]

        assert not envelope.is_debt
        assert not is_payment_overdue(envelope, payments, today=TODAY)
