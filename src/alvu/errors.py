"""Exceptions raised by the financial calculators."""


class AlvuError(Exception):
    """Base exception for the alvu package."""


class InvalidArgument(AlvuError, ValueError):
    """A calculator was called with inputs that violate its preconditions.

    Examples: debt progress requested for a non-debt envelope, or a savings
    goal whose target amount is zero or negative.
    """
