"""
Sync Report Models.

Counters returned by ``DatabaseManager`` merge passes.  A merge is
idempotent: running it against already reconciled stores yields a
report whose ``total_changes`` is zero.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class FamilySyncResult(BaseModel):
    """Outcome of reconciling one entity family."""

    pushed: int = 0   # local -> remote
    pulled: int = 0   # remote -> local
    failed: int = 0

    @property
    def changes(self) -> int:
        return self.pushed + self.pulled


class SyncReport(BaseModel):
    """Per-family results of one full merge pass."""

    expenses: FamilySyncResult = Field(default_factory=FamilySyncResult)
    incomes: FamilySyncResult = Field(default_factory=FamilySyncResult)
    user: FamilySyncResult = Field(default_factory=FamilySyncResult)

    @property
    def total_changes(self) -> int:
        return self.expenses.changes + self.incomes.changes + self.user.changes

    @property
    def total_failed(self) -> int:
        return self.expenses.failed + self.incomes.failed + self.user.failed

    @property
    def has_failures(self) -> bool:
        return self.total_failed > 0
