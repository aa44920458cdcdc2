"""
Repository Handler.

Facade composing one expense, one income and one user repository into a
single object representing "a store".  ``DatabaseManager`` treats each
handler as an opaque unit and never reaches past it into repositories or
data sources.

The handler is generic over the three concrete repository types so that
a local handler and a remote handler stay distinguishable to a type
checker, although the composition is fixed at construction and nothing
switches on it at runtime.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from expense_tracker.models.expense import Expense
from expense_tracker.models.income import Income
from expense_tracker.models.user import User
from expense_tracker.repositories.base_repository import UserRepository
from expense_tracker.repositories.expense_repository import ExpenseRepository
from expense_tracker.repositories.income_repository import IncomeRepository

ExpenseRepoT = TypeVar("ExpenseRepoT", bound=ExpenseRepository)
IncomeRepoT = TypeVar("IncomeRepoT", bound=IncomeRepository)
UserRepoT = TypeVar("UserRepoT", bound=UserRepository)


class RepositoryHandler(Generic[ExpenseRepoT, IncomeRepoT, UserRepoT]):
    """Single access point for every entity family of one store.

    Parameters
    ----------
    expenses:
        Expense repository.
    incomes:
        Income repository.
    user:
        User repository.
    name:
        Label used in log messages (``"local"``, ``"remote"`` ...).
    """

    def __init__(
        self,
        expenses: ExpenseRepoT,
        incomes: IncomeRepoT,
        user: UserRepoT,
        name: str = "store",
    ) -> None:
        self._expenses = expenses
        self._incomes = incomes
        self._user = user
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def fetch_expenses(self) -> list[Expense]:
        return await self._expenses.read_all()

    async def save_expense(self, expense: Expense) -> None:
        await self._expenses.create(expense)

    async def update_expense(self, expense: Expense) -> None:
        await self._expenses.update(expense)

    async def delete_expense(self, expense: Expense) -> None:
        await self._expenses.delete(expense)

    async def delete_all_expenses(self) -> None:
        await self._expenses.delete_all()

    # ------------------------------------------------------------------
    # Incomes
    # ------------------------------------------------------------------

    async def fetch_incomes(self) -> list[Income]:
        return await self._incomes.read_all()

    async def save_income(self, income: Income) -> None:
        await self._incomes.create(income)

    async def update_income(self, income: Income) -> None:
        await self._incomes.update(income)

    async def delete_income(self, income: Income) -> None:
        await self._incomes.delete(income)

    async def delete_all_incomes(self) -> None:
        await self._incomes.delete_all()

    # ------------------------------------------------------------------
    # User details
    # ------------------------------------------------------------------

    async def fetch_user(self) -> Optional[User]:
        return await self._user.read()

    async def save_user(self, user: User) -> None:
        await self._user.create(user)

    async def update_user(self, user: User) -> None:
        await self._user.update(user)

    async def delete_user(self, user: User) -> None:
        await self._user.delete(user)
