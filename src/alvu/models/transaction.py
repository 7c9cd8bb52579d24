"""SQLModel definition for ledger transactions."""

from __future__ import annotations

import datetime as dt
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..constants import TRANSACTION_EXPENSE
from ._ids import new_id, utcnow


class Transaction(SQLModel, table=True):
    """A single income, expense, transfer or allocation entry."""

    __tablename__: ClassVar[str] = "transaction"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(default="", index=True, max_length=36)
    envelope_id: Optional[str] = Field(default=None, foreign_key="envelope.id", index=True)
    type: str = Field(default=TRANSACTION_EXPENSE, max_length=16)
    amount: float = Field(nullable=False, description="Positive values move money into the envelope")
    description: str = Field(default="", max_length=200)
    payee: Optional[str] = Field(default=None, max_length=100)
    date: dt.date = Field(default_factory=dt.date.today, index=True)
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)
