from datetime import date, datetime
from decimal import Decimal

from expense_core.models import CATEGORIES, Expense


def test_categories_are_fixed_and_ordered():
    assert CATEGORIES == ("Food", "Transport", "Bills", "Entertainment", "Others")
    assert isinstance(CATEGORIES, tuple)


def test_new_expense_is_not_persisted():
    expense = Expense(Decimal("1.00"), "Bus", "Transport", date(2024, 1, 1))
    assert expense.id is None
    assert expense.created_at is None


def test_to_dict_renders_json_natives():
    expense = Expense(
        amount=Decimal("12.5"),
        description="Coffee",
        category="Food",
        expense_date=date(2024, 1, 10),
        id=3,
        created_at=datetime(2024, 1, 10, 9, 15, 0, 123456),
    )
    assert expense.to_dict() == {
        "id": 3,
        "amount": "12.50",
        "description": "Coffee",
        "category": "Food",
        "expense_date": "2024-01-10",
        "created_at": "2024-01-10T09:15:00",
    }
