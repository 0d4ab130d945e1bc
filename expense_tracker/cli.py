"""Console interface for the expense tracker."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from expense_core import build_service
from expense_core.db import ConnectionProvider
from expense_core.exceptions import ConnectError, PersistenceError, ValidationError
from expense_core.models import Expense
from expense_core.services import ExpenseService


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid date '{value}'. Expected format YYYY-MM-DD."
        ) from exc


def _parse_amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc


def _format_expense(expense: Expense) -> str:
    return (
        f"[{expense.id}] {expense.expense_date.isoformat()} {expense.amount:.2f} "
        f"{expense.category} - {expense.description}"
    )


def _find(service: ExpenseService, expense_id: int) -> Optional[Expense]:
    return next((item for item in service.list_expenses() if item.id == expense_id), None)


def handle_expense(args: argparse.Namespace, service: ExpenseService) -> int:
    if args.command == "add":
        candidate = Expense(
            amount=args.amount,
            description=args.description,
            category=args.category,
            expense_date=args.date or date.today(),
        )
        expense = service.add_expense(candidate)
        print("Expense added: " + _format_expense(expense))
    elif args.command == "list":
        expenses = service.list_expenses()
        if args.category:
            expenses = [expense for expense in expenses if expense.category == args.category]
        if not expenses:
            print("No expenses found.")
            return 0
        total = sum((expense.amount for expense in expenses), start=Decimal("0.00"))
        print(f"Found {len(expenses)} expenses (total {total:.2f}):")
        for expense in expenses:
            print(_format_expense(expense))
    elif args.command == "edit":
        existing = _find(service, args.id)
        if existing is None:
            print(f"Expense {args.id} not found.", file=sys.stderr)
            return 1
        if args.amount is not None:
            existing.amount = args.amount
        if args.description is not None:
            existing.description = args.description
        if args.category is not None:
            existing.category = args.category
        if args.date is not None:
            existing.expense_date = args.date
        expense = service.update_expense(existing)
        print("Expense updated: " + _format_expense(expense))
    elif args.command == "delete":
        service.delete_expense(args.id)
        print(f"Expense {args.id} deleted.")
    return 0


def handle_categories(service: ExpenseService) -> int:
    for category in service.categories():
        print(category)
    return 0


def handle_ping(provider: ConnectionProvider) -> int:
    result = provider.ping()
    print(result)
    return 0 if result.startswith("DB OK") else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Expense Tracker CLI")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log database bootstrap and fallback activity",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    expense_add = subparsers.add_parser("add", help="Add a new expense")
    expense_add.add_argument("amount", type=_parse_amount)
    expense_add.add_argument("category")
    expense_add.add_argument("description")
    expense_add.add_argument("--date", type=_parse_date, help="Expense date (default: today)")

    expense_list = subparsers.add_parser("list", help="List expenses, newest first")
    expense_list.add_argument("--category")

    expense_edit = subparsers.add_parser("edit", help="Edit an existing expense")
    expense_edit.add_argument("id", type=int)
    expense_edit.add_argument("--amount", type=_parse_amount)
    expense_edit.add_argument("--category")
    expense_edit.add_argument("--description")
    expense_edit.add_argument("--date", type=_parse_date)

    expense_delete = subparsers.add_parser("delete", help="Delete an expense")
    expense_delete.add_argument("id", type=int)

    subparsers.add_parser("categories", help="List the available categories")
    subparsers.add_parser("ping", help="Test the database connection")

    return parser


def main(
    argv: Optional[List[str]] = None,
    *,
    service: Optional[ExpenseService] = None,
    provider: Optional[ConnectionProvider] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    if service is None or provider is None:
        built_service, built_provider = build_service()
        service = service or built_service
        provider = provider or built_provider

    try:
        if args.command == "categories":
            return handle_categories(service)
        if args.command == "ping":
            return handle_ping(provider)
        return handle_expense(args, service)
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except ConnectError as exc:
        print(f"Database unavailable: {exc}", file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
