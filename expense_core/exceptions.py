"""Domain-specific exceptions for the expense tracker core services."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import Expense


class ValidationError(ValueError):
    """Raised when an expense does not meet validation requirements."""


class ConnectError(ConnectionError):
    """Raised when no usable database connection could be obtained.

    ``__cause__`` holds the last failed attempt; ``suppressed`` holds the
    failures of earlier attempts that a recovery step tried to work around.
    """

    def __init__(
        self,
        message: str,
        *,
        target: Optional[str] = None,
        suppressed: Iterable[BaseException] = (),
    ) -> None:
        super().__init__(message)
        self.target = target
        self.suppressed: Tuple[BaseException, ...] = tuple(suppressed)


class PersistenceError(IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""

    def __init__(self, message: str, *, record: Optional["Expense"] = None) -> None:
        super().__init__(message)
        self.record = record
