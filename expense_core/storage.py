"""Persistence utilities for the expense tracker core services."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError

from .db import ConnectionProvider, expenses_table
from .exceptions import PersistenceError
from .models import Expense

logger = logging.getLogger(__name__)


def _row_to_expense(row: Row) -> Expense:
    return Expense(
        id=row.id,
        amount=row.amount,
        description=row.description,
        category=row.category,
        expense_date=row.expense_date,
        created_at=row.created_at,
    )


class ExpenseStore:
    """CRUD against the ``expenses`` table, one connection per call."""

    def __init__(self, provider: ConnectionProvider) -> None:
        self._provider = provider

    def insert(self, expense: Expense) -> Expense:
        """Persist a new expense and write the assigned id and created_at back onto it."""
        if expense.id is not None:
            raise PersistenceError(
                f"Expense id={expense.id} is already persisted", record=expense
            )
        table = expenses_table
        with self._provider.acquire() as connection:
            try:
                with connection.begin():
                    result = connection.execute(
                        insert(table).values(
                            amount=expense.amount,
                            description=expense.description,
                            category=expense.category,
                            expense_date=expense.expense_date,
                        )
                    )
                    new_id = result.inserted_primary_key[0]
                    created_at = connection.execute(
                        select(table.c.created_at).where(table.c.id == new_id)
                    ).scalar_one()
            except SQLAlchemyError as exc:
                logger.error("Insert of expense failed: %s", exc)
                raise PersistenceError("Failed to insert expense", record=expense) from exc
        expense.id = new_id
        expense.created_at = created_at
        return expense

    def find_all(self) -> List[Expense]:
        """Return every expense, newest expense date first, ties by id descending."""
        table = expenses_table
        query = select(table).order_by(table.c.expense_date.desc(), table.c.id.desc())
        with self._provider.acquire() as connection:
            try:
                rows = connection.execute(query).all()
            except SQLAlchemyError as exc:
                logger.error("Fetching expenses failed: %s", exc)
                raise PersistenceError("Failed to fetch expenses") from exc
        return [_row_to_expense(row) for row in rows]

    def update(self, expense: Expense) -> Expense:
        # Zero matched rows is not an error here.
        if expense.id is None:
            raise PersistenceError("Cannot update an expense without an id", record=expense)
        table = expenses_table
        statement = (
            update(table)
            .where(table.c.id == expense.id)
            .values(
                amount=expense.amount,
                description=expense.description,
                category=expense.category,
                expense_date=expense.expense_date,
            )
        )
        with self._provider.acquire() as connection:
            try:
                with connection.begin():
                    connection.execute(statement)
            except SQLAlchemyError as exc:
                logger.error("Update of expense id=%s failed: %s", expense.id, exc)
                raise PersistenceError(
                    f"Failed to update expense id={expense.id}", record=expense
                ) from exc
        return expense

    def delete(self, expense_id: int) -> None:
        table = expenses_table
        with self._provider.acquire() as connection:
            try:
                with connection.begin():
                    connection.execute(delete(table).where(table.c.id == expense_id))
            except SQLAlchemyError as exc:
                logger.error("Delete of expense id=%s failed: %s", expense_id, exc)
                raise PersistenceError(f"Failed to delete expense id={expense_id}") from exc
