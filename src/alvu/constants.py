"""
Shared vocabularies for envelopes, transactions and currency display.
These values match the check constraints of the hosted database.
"""

# Envelope types
ENVELOPE_REGULAR = "regular"
ENVELOPE_SAVINGS = "savings"
ENVELOPE_DEBT = "debt"

# Transaction types
TRANSACTION_INCOME = "income"
TRANSACTION_EXPENSE = "expense"
TRANSACTION_TRANSFER = "transfer"
TRANSACTION_ALLOCATION = "allocation"

# Transaction types that move money into a savings goal
CONTRIBUTION_TYPES = frozenset({TRANSACTION_INCOME, TRANSACTION_ALLOCATION, TRANSACTION_TRANSFER})

# Currency settings
CURRENCY_SYMBOL = "$"

# Savings goal milestones, in percent
GOAL_MILESTONES = (25, 50, 75, 100)
NOTIFICATION_MILESTONES = (25, 50, 75)
