"""Core persistence and validation services for the expense tracker."""

from typing import Optional, Tuple

from .config import DatabaseSettings
from .db import BootstrapState, ConnectionProvider
from .exceptions import ConnectError, PersistenceError, ValidationError
from .models import CATEGORIES, Expense
from .services import ExpenseService
from .storage import ExpenseStore

__all__ = [
    "CATEGORIES",
    "Expense",
    "DatabaseSettings",
    "BootstrapState",
    "ConnectionProvider",
    "ExpenseStore",
    "ExpenseService",
    "build_service",
    "ConnectError",
    "PersistenceError",
    "ValidationError",
]


def build_service(
    settings: Optional[DatabaseSettings] = None,
) -> Tuple[ExpenseService, ConnectionProvider]:
    """Wire a provider, store and service from settings (environment by default)."""
    provider = ConnectionProvider(settings)
    return ExpenseService(ExpenseStore(provider)), provider
