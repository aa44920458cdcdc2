"""
Transaction Shape.

Expenses and incomes share no base class; anything exposing ``id``,
``amount`` and ``date`` satisfies :class:`Transaction` and can be fed to
the helpers in :mod:`expense_tracker.services.insights`.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Protocol, runtime_checkable


@runtime_checkable
class Transaction(Protocol):
    """Structural type implemented by ``Expense`` and ``Income``."""

    @property
    def id(self) -> str: ...

    @property
    def amount(self) -> Decimal: ...

    @property
    def date(self) -> dt.date: ...
