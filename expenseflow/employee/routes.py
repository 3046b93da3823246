"""Expense submission routes, open to every role."""
from __future__ import annotations

from typing import Any, Dict

from flask import current_app
from flask_login import current_user, login_required

from expenseflow.errors import NotFound
from expenseflow.services import approval_engine, currency_service, ocr_service
from expenseflow.services.directory import Directory
from expenseflow.services.expense_store import ExpenseStore
from expenseflow.services.queries import ExpenseQueries
from expenseflow.utils.helpers import json_response, request_payload

from . import employee_bp


def _with_conversion(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Fill ``converted_amount`` from the exchange-rate service when enabled."""
    if not current_app.config.get("CURRENCY_CONVERSION_ENABLED"):
        return payload
    if payload.get("converted_amount") or not payload.get("amount") or not payload.get("currency"):
        return payload

    company = Directory().get_company(current_user.company_id)
    if str(payload["currency"]).upper() == company.currency.upper():
        return payload

    try:
        converted = currency_service.convert_currency(
            payload["amount"],
            str(payload["currency"]),
            company.currency,
            current_app.config["EXCHANGE_API_URL"],
        )
    except ArithmeticError:
        # Malformed amount; submission validation reports it.
        return payload
    if converted is None:
        return payload
    return {**payload, "converted_amount": str(converted)}


@employee_bp.route("/expenses", methods=["GET"])
@login_required
def list_expenses() -> Any:
    """List expenses submitted by the current user."""
    expenses = ExpenseQueries().expenses_of_user(current_user.id)
    return json_response({"expenses": [expense.to_dict() for expense in expenses]})


@employee_bp.route("/expenses", methods=["POST"])
@login_required
def submit_expense() -> Any:
    """Submit a new expense and route it to its first approver."""
    payload = _with_conversion(request_payload())
    router = approval_engine.build_router(current_app.config)
    expense = router.submit_expense(payload, current_user)
    return json_response({"message": "Expense submitted.", "expense": expense.to_dict()}, status=201)


@employee_bp.route("/expenses/<int:expense_id>", methods=["GET"])
@login_required
def expense_detail(expense_id: int) -> Any:
    """Show one of the current user's expenses with its history."""
    expense = ExpenseStore().get(expense_id)
    if expense.user_id != current_user.id:
        raise NotFound(f"Expense {expense_id} not found.")
    return json_response({"expense": expense.to_dict()})


@employee_bp.route("/receipts/analyze", methods=["POST"])
@login_required
def analyze_receipt() -> Any:
    """Propose expense fields from a receipt image (a base64 data URL)."""
    payload = request_payload()
    prefill = ocr_service.analyze_receipt(
        payload.get("image", ""),
        current_app.config.get("RECEIPT_ANALYSIS_URL"),
        current_app.config.get("RECEIPT_ANALYSIS_API_KEY"),
        current_app.config.get("RECEIPT_ANALYSIS_TIMEOUT", 30),
    )
    return json_response({"prefill": prefill})
