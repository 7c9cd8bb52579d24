"""Pytest configuration and shared fixtures for alvu tests.

This module provides database fixtures, record factories, and helper utilities
for testing the calculators, repositories, and services without touching a
real data directory.
"""

from __future__ import annotations

import shutil
from datetime import date

import pytest
from sqlmodel import Session

from alvu.config import TestingConfig
from alvu.constants import ENVELOPE_DEBT, ENVELOPE_SAVINGS, TRANSACTION_ALLOCATION
from alvu.infra.database import create_db_engine, create_session_factory, init_database
from alvu.infra.repositories import SQLModelGoalHistoryRepository
from alvu.models import Envelope, Transaction

TEST_USER_ID = "00000000-0000-0000-0000-000000000001"

# Fixed "today" used by every date-sensitive test
TODAY = date(2025, 1, 15)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def test_config():
    """Testing configuration with a throwaway data directory.

    Yields:
        TestingConfig: configuration whose DATA_DIR is removed afterwards
    """
    config = TestingConfig()
    yield config
    shutil.rmtree(config.DATA_DIR, ignore_errors=True)


@pytest.fixture(scope="function")
def db_engine(test_config):
    """Create an isolated SQLite database for each test.

    Each test gets a fresh database file with all tables created.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    engine = create_db_engine(test_config)
    init_database(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what the repositories expect."""
    return create_session_factory(db_engine)


@pytest.fixture
def history_repo(session_factory):
    return SQLModelGoalHistoryRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def savings_envelope_factory(db_session):
    """Factory for persisted savings goal envelopes.

    Returns:
        Callable: Function that creates and persists Envelope instances
    """

    def _create(
        name: str = "Emergency Fund",
        balance: float = 0.0,
        target_amount: float | None = 1000.0,
        target_date: date | None = None,
        user_id: str = TEST_USER_ID,
    ) -> Envelope:
        envelope = Envelope(
            user_id=user_id,
            name=name,
            type=ENVELOPE_SAVINGS,
            balance=balance,
            target_amount=target_amount,
            target_date=target_date,
        )
        db_session.add(envelope)
        db_session.commit()
        db_session.refresh(envelope)
        return envelope

    return _create


def make_debt_envelope(balance: float = -1000.0, apr: float = 18.0, minimum_payment: float = 50.0) -> Envelope:
    """Unsaved debt envelope; debt balances are stored as negatives."""

    return Envelope(
        user_id=TEST_USER_ID,
        name="Credit Card",
        type=ENVELOPE_DEBT,
        balance=balance,
        apr=apr,
        minimum_payment=minimum_payment,
    )


def make_transaction(
    amount: float,
    on: date,
    type_: str = TRANSACTION_ALLOCATION,
    envelope_id: str | None = None,
) -> Transaction:
    return Transaction(
        user_id=TEST_USER_ID,
        envelope_id=envelope_id,
        type=type_,
        amount=amount,
        date=on,
    )


# =============================================================================
# Assertion Helpers
# =============================================================================


def assert_float_equal(actual: float, expected: float, tolerance: float = 0.01):
    """Assert that two floats are equal within a tolerance.

    Args:
        actual: Actual value
        expected: Expected value
        tolerance: Maximum allowed difference (default 0.01 = 1 cent)

    Raises:
        AssertionError: If values differ by more than tolerance
    """
    assert (
        abs(actual - expected) < tolerance
    ), f"Expected {expected}, got {actual} (diff: {abs(actual - expected)})"
