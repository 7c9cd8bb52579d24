"""SQLModel definition for budget envelopes."""

from __future__ import annotations

import datetime as dt
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..constants import ENVELOPE_DEBT, ENVELOPE_REGULAR, ENVELOPE_SAVINGS
from ._ids import new_id, utcnow


class Envelope(SQLModel, table=True):
    """A named budget bucket holding a balance.

    Savings envelopes may carry a goal (``target_amount``/``target_date``);
    debt envelopes carry ``apr`` (percent, e.g. 18.5) and ``minimum_payment``.
    """

    __tablename__: ClassVar[str] = "envelope"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(default="", index=True, max_length=36)
    category_id: Optional[str] = Field(default=None, index=True, max_length=36)
    name: str = Field(default="", max_length=50)
    type: str = Field(default=ENVELOPE_REGULAR, max_length=16)
    balance: float = Field(default=0.0)
    target_amount: Optional[float] = Field(default=None)
    target_date: Optional[dt.date] = Field(default=None)
    apr: Optional[float] = Field(default=None, description="Annual percentage rate, in percent")
    minimum_payment: Optional[float] = Field(default=None)
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)

    @property
    def is_debt(self) -> bool:
        return self.type == ENVELOPE_DEBT

    @property
    def is_savings_goal(self) -> bool:
        """True for savings envelopes that have a positive target amount."""
        return self.type == ENVELOPE_SAVINGS and bool(self.target_amount and self.target_amount > 0)
