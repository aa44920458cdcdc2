"""
Income Model.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.enums import IncomeSource


class Income(BaseModel):
    """A single income entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()).upper(), min_length=1)
    amount: Decimal
    date: dt.date
    source: IncomeSource = IncomeSource.OTHER
    note: str = ""
