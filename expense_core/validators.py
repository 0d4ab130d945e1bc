"""Validation helpers shared across expense tracker services."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from .exceptions import ValidationError
from .models import CATEGORIES, Expense

MAX_AMOUNT = Decimal("1000000")
MAX_DESCRIPTION_LENGTH = 120


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def check_expense(expense: Expense, today: Optional[date] = None) -> Optional[ValidationError]:
    """Return the error for the first rule the expense breaks, or ``None``.

    Rules are checked in a fixed order and the first failure wins; errors are
    never aggregated. ``today`` defaults to the caller's current date.
    """
    amount = expense.amount
    if amount is None:
        return ValidationError("Amount is required")
    if isinstance(amount, int) and not isinstance(amount, bool):
        amount = Decimal(amount)
    if not isinstance(amount, Decimal) or not amount.is_finite():
        return ValidationError("Amount must be a numeric value")
    if amount <= 0:
        return ValidationError("Amount must be > 0")
    if amount.as_tuple().exponent < -2:
        return ValidationError("Amount can have at most 2 decimals")
    if amount > MAX_AMOUNT:
        return ValidationError("Amount must be <= 1,000,000")

    if _is_blank(expense.description):
        return ValidationError("Description is required")
    if len(expense.description.strip()) > MAX_DESCRIPTION_LENGTH:
        return ValidationError(f"Description max length is {MAX_DESCRIPTION_LENGTH}")

    if _is_blank(expense.category):
        return ValidationError("Category is required")
    if expense.category not in CATEGORIES:
        return ValidationError(f"Category must be one of: {', '.join(CATEGORIES)}")

    if expense.expense_date is None:
        return ValidationError("Date is required")
    if expense.expense_date > (today or date.today()):
        return ValidationError("Date cannot be in the future")
    return None


def validate_expense(expense: Expense, today: Optional[date] = None) -> None:
    error = check_expense(expense, today)
    if error is not None:
        raise error


def parse_amount(raw: object) -> Optional[Decimal]:
    """Convert raw input to a Decimal without rounding; ``None`` passes through."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, bool):
        raise ValidationError("Amount must be a numeric value")
    try:
        # str() first so floats keep their shortest repr instead of binary noise.
        return Decimal(str(raw).strip())
    except (InvalidOperation, TypeError) as exc:
        raise ValidationError("Amount must be a numeric value") from exc


def parse_date(raw: object) -> Optional[date]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        raise ValidationError("Date must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise ValidationError("Date must be in YYYY-MM-DD format") from exc


def _optional_str(value: object) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Text fields must be strings")
    return value


def expense_from_payload(payload: Mapping[str, object], expense_id: Optional[int] = None) -> Expense:
    """Build a candidate Expense from JSON-style input.

    Only type coercion happens here; domain rules are left to
    :func:`validate_expense`.
    """
    return Expense(
        id=expense_id,
        amount=parse_amount(payload.get("amount")),
        description=_optional_str(payload.get("description")),
        category=_optional_str(payload.get("category")),
        expense_date=parse_date(payload.get("expense_date")),
    )
