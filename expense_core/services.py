"""Framework-agnostic business services for the expense tracker."""

from __future__ import annotations

from datetime import date
from typing import Callable, List, Optional, Tuple

from .models import CATEGORIES, Expense
from .storage import ExpenseStore
from .validators import validate_expense


class ExpenseService:
    """Validates expenses and mediates persistence.

    This is the only entry point the presentation layer uses. Every method may
    raise: ``ValidationError`` before any I/O, then ``ConnectError`` or
    ``PersistenceError`` from the store.
    """

    def __init__(
        self,
        store: ExpenseStore,
        *,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self._store = store
        self._today = today or date.today

    # Public API -----------------------------------------------------------
    def add_expense(self, candidate: Expense) -> Expense:
        self._validate(candidate)
        return self._store.insert(candidate)

    def update_expense(self, candidate: Expense) -> Expense:
        self._validate(candidate)
        return self._store.update(candidate)

    def delete_expense(self, expense_id: int) -> None:
        self._store.delete(expense_id)

    def list_expenses(self) -> List[Expense]:
        return self._store.find_all()

    def categories(self) -> Tuple[str, ...]:
        return CATEGORIES

    # Internal helpers -----------------------------------------------------
    def _validate(self, candidate: Expense) -> None:
        validate_expense(candidate, today=self._today())
        # Length was checked on the trimmed text; store it that way too.
        candidate.description = candidate.description.strip()
