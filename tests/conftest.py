from datetime import date
from decimal import Decimal

import pymysql
import pytest
from sqlalchemy.exc import OperationalError

from expense_core.config import DatabaseSettings
from expense_core.db import ConnectionProvider, metadata
from expense_core.models import Expense
from expense_core.services import ExpenseService
from expense_core.storage import ExpenseStore

TODAY = date(2024, 6, 30)


def driver_error(code: int, message: str) -> OperationalError:
    """A connection failure shaped like the ones PyMySQL raises through SQLAlchemy."""
    return OperationalError("connect", None, pymysql.err.OperationalError(code, message))


def make_expense(**overrides) -> Expense:
    fields = {
        "amount": "12.50",
        "description": "Coffee",
        "category": "Food",
        "expense_date": date(2024, 1, 10),
    }
    fields.update(overrides)
    if isinstance(fields["amount"], str):
        fields["amount"] = Decimal(fields["amount"])
    return Expense(**fields)


@pytest.fixture
def sqlite_settings(tmp_path):
    return DatabaseSettings(url=f"sqlite:///{tmp_path / 'expenses.db'}")


@pytest.fixture
def provider(sqlite_settings):
    provider = ConnectionProvider(sqlite_settings)
    with provider.acquire() as connection:
        with connection.begin():
            metadata.create_all(connection)
    yield provider
    provider.dispose()


@pytest.fixture
def store(provider):
    return ExpenseStore(provider)


@pytest.fixture
def service(store):
    return ExpenseService(store, today=lambda: TODAY)
