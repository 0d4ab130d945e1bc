"""Flask REST API exposing the expense tracker services."""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from expense_core import build_service
from expense_core.db import ConnectionProvider
from expense_core.exceptions import ConnectError, PersistenceError, ValidationError
from expense_core.services import ExpenseService
from expense_core.validators import expense_from_payload


def create_app(
    service: Optional[ExpenseService] = None,
    provider: Optional[ConnectionProvider] = None,
) -> Flask:
    app = Flask(__name__)

    env_name = os.getenv("EXPENSE_TRACKER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("EXPENSE_TRACKER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    if service is None or provider is None:
        built_service, built_provider = build_service()
        service = service or built_service
        provider = provider or built_provider

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(ConnectError)
    def handle_connect_error(exc: ConnectError):
        return _handle_error(exc, 503, "Database unavailable")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    @app.get("/categories")
    def list_categories():
        return _success({"items": list(service.categories())})

    @app.get("/expenses")
    def list_expenses():
        expenses = service.list_expenses()
        category = request.args.get("category")
        if category:
            expenses = [expense for expense in expenses if expense.category == category]
        total = sum((expense.amount for expense in expenses), start=Decimal("0.00"))
        return _success({
            "items": [expense.to_dict() for expense in expenses],
            "total": f"{total:.2f}",
        })

    @app.post("/expenses")
    def create_expense():
        candidate = expense_from_payload(_json_body())
        expense = service.add_expense(candidate)
        return _success(expense.to_dict(), 201)

    @app.put("/expenses/<int:expense_id>")
    def update_expense(expense_id: int):
        candidate = expense_from_payload(_json_body(), expense_id=expense_id)
        expense = service.update_expense(candidate)
        payload = expense.to_dict()
        # The row is not read back, so created_at is unknown here.
        del payload["created_at"]
        return _success(payload)

    @app.delete("/expenses/<int:expense_id>")
    def delete_expense(expense_id: int):
        service.delete_expense(expense_id)
        return _success({}, 204)

    @app.get("/health")
    def health():
        result = provider.ping()
        status = 200 if result.startswith("DB OK") else 503
        return _success({"status": result}, status)

    return app
