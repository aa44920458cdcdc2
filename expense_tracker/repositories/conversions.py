"""
Domain <-> Storage Record Conversion.

The single seam where storage-schema drift is absorbed.  Reading resolves
unknown category/source strings to ``OTHER``; writing always emits the
current canonical enum value.  A record whose date string does not parse
raises ``StorageDecodeError``.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from expense_tracker.errors import StorageDecodeError
from expense_tracker.models.enums import Category, IncomeSource
from expense_tracker.models.expense import Expense
from expense_tracker.models.income import Income
from expense_tracker.models.records import (
    DATE_FORMAT,
    DatabaseExpense,
    DatabaseIncome,
    DatabaseUser,
)
from expense_tracker.models.user import User


def _parse_date(raw: str, entity: str, record_id: str) -> dt.date:
    try:
        return dt.datetime.strptime(raw, DATE_FORMAT).date()
    except ValueError as exc:
        raise StorageDecodeError(f"{entity} {record_id!r}", f"invalid date {raw!r}") from exc


def _to_decimal(amount: float) -> Decimal:
    # str() yields the shortest repr, so 12.5 becomes Decimal("12.5").
    return Decimal(str(amount))


def expense_to_record(expense: Expense) -> DatabaseExpense:
    return DatabaseExpense(
        id=expense.id,
        name=expense.name,
        amount=float(expense.amount),
        date=expense.date.strftime(DATE_FORMAT),
        category=expense.category.value,
        note=expense.note,
    )


def record_to_expense(record: DatabaseExpense) -> Expense:
    return Expense(
        id=record.id,
        name=record.name,
        amount=_to_decimal(record.amount),
        date=_parse_date(record.date, "Expense", record.id),
        category=Category.parse(record.category),
        note=record.note,
    )


def income_to_record(income: Income) -> DatabaseIncome:
    return DatabaseIncome(
        id=income.id,
        amount=float(income.amount),
        date=income.date.strftime(DATE_FORMAT),
        source=income.source.value,
        note=income.note,
    )


def record_to_income(record: DatabaseIncome) -> Income:
    return Income(
        id=record.id,
        amount=_to_decimal(record.amount),
        date=_parse_date(record.date, "Income", record.id),
        source=IncomeSource.parse(record.source),
        note=record.note,
    )


def user_to_record(user: User) -> DatabaseUser:
    return DatabaseUser(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
    )


def record_to_user(record: DatabaseUser) -> User:
    return User(
        id=record.id,
        email=record.email,
        first_name=record.first_name,
        last_name=record.last_name,
    )
