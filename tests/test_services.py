from datetime import date
from decimal import Decimal
from unittest import mock

import pytest

from conftest import TODAY, make_expense
from expense_core.exceptions import ConnectError, PersistenceError, ValidationError
from expense_core.models import CATEGORIES
from expense_core.services import ExpenseService
from expense_core.storage import ExpenseStore


@pytest.fixture
def fake_store():
    return mock.create_autospec(ExpenseStore, instance=True)


@pytest.fixture
def isolated_service(fake_store):
    return ExpenseService(fake_store, today=lambda: TODAY)


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": "0"},
        {"amount": "-5"},
        {"description": "x" * 121},
        {"category": "Travel"},
        {"expense_date": date(2024, 7, 1)},
    ],
)
def test_invalid_candidates_never_reach_the_store(isolated_service, fake_store, overrides):
    with pytest.raises(ValidationError):
        isolated_service.add_expense(make_expense(**overrides))
    with pytest.raises(ValidationError):
        isolated_service.update_expense(make_expense(id=1, **overrides))
    fake_store.insert.assert_not_called()
    fake_store.update.assert_not_called()


def test_validation_error_wins_over_persistence_failure(isolated_service, fake_store):
    fake_store.insert.side_effect = PersistenceError("disk full")
    with pytest.raises(ValidationError, match="Amount must be > 0"):
        isolated_service.add_expense(make_expense(amount="-5"))


def test_store_errors_propagate(isolated_service, fake_store):
    fake_store.find_all.side_effect = ConnectError("Unable to connect")
    with pytest.raises(ConnectError):
        isolated_service.list_expenses()

    fake_store.delete.side_effect = PersistenceError("Failed to delete expense id=1")
    with pytest.raises(PersistenceError):
        isolated_service.delete_expense(1)


def test_description_is_stored_trimmed(isolated_service, fake_store):
    fake_store.insert.side_effect = lambda expense: expense
    expense = isolated_service.add_expense(make_expense(description="  Coffee  "))
    assert expense.description == "Coffee"
    fake_store.insert.assert_called_once_with(expense)


def test_delete_and_list_delegate_to_store(isolated_service, fake_store):
    fake_store.find_all.return_value = []
    assert isolated_service.list_expenses() == []
    isolated_service.delete_expense(7)
    fake_store.delete.assert_called_once_with(7)


def test_categories_exposes_fixed_set(isolated_service):
    assert isolated_service.categories() is CATEGORIES


def test_future_date_uses_injected_clock(fake_store):
    service = ExpenseService(fake_store, today=lambda: date(2024, 1, 9))
    with pytest.raises(ValidationError, match="Date cannot be in the future"):
        service.add_expense(make_expense(expense_date=date(2024, 1, 10)))


def test_add_then_list_scenario(service):
    coffee = service.add_expense(make_expense(amount="12.50", description="Coffee"))
    service.add_expense(make_expense(description="Older lunch", expense_date=date(2024, 1, 2)))

    with pytest.raises(ValidationError, match="Amount must be > 0"):
        service.add_expense(make_expense(amount="-5"))

    listed = service.list_expenses()
    assert [expense.description for expense in listed] == ["Coffee", "Older lunch"]
    assert listed[0].id == coffee.id
    assert listed[0].amount == Decimal("12.50")
    assert listed[0].created_at is not None


def test_update_keeps_identity(service):
    expense = service.add_expense(make_expense())
    created_at = expense.created_at

    expense.amount = Decimal("3.20")
    expense.category = "Transport"
    service.update_expense(expense)

    [stored] = service.list_expenses()
    assert (stored.id, stored.created_at) == (expense.id, created_at)
    assert (stored.amount, stored.category) == (Decimal("3.20"), "Transport")


def test_delete_of_missing_id_is_harmless(service):
    kept = service.add_expense(make_expense())
    service.delete_expense(kept.id + 1)
    assert [expense.id for expense in service.list_expenses()] == [kept.id]
