"""Data models for the expense tracker domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

__all__ = ["CATEGORIES", "Expense"]

CATEGORIES: Tuple[str, ...] = ("Food", "Transport", "Bills", "Entertainment", "Others")


@dataclass
class Expense:
    """A single expense record.

    ``id`` and ``created_at`` stay ``None`` until the store persists the
    record and writes them back.
    """

    amount: Optional[Decimal]
    description: Optional[str]
    category: Optional[str]
    expense_date: Optional[date]
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to JSON-friendly natives."""
        return {
            "id": self.id,
            "amount": f"{self.amount:.2f}" if self.amount is not None else None,
            "description": self.description,
            "category": self.category,
            "expense_date": self.expense_date.isoformat() if self.expense_date else None,
            "created_at": (
                self.created_at.isoformat(timespec="seconds") if self.created_at else None
            ),
        }
