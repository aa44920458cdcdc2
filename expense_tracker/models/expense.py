"""
Expense Model.

Immutable domain record used by business logic.  Persistence goes
through :class:`~expense_tracker.models.records.DatabaseExpense`.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.enums import Category


class Expense(BaseModel):
    """A single expense entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()).upper(), min_length=1)
    name: str
    amount: Decimal
    date: dt.date
    category: Category = Category.OTHER
    note: str = ""
