"""
Income Repository.
"""

from __future__ import annotations

from expense_tracker.models.income import Income
from expense_tracker.models.records import DatabaseIncome
from expense_tracker.repositories.base_repository import TransactionRepository
from expense_tracker.repositories.conversions import income_to_record, record_to_income


class IncomeRepository(TransactionRepository[Income, DatabaseIncome]):
    """Data access layer for Income entities."""

    ENTITY = "Income"

    _to_record = staticmethod(income_to_record)
    _to_domain = staticmethod(record_to_income)
