"""Approval routes for managers and admins."""
from __future__ import annotations

from typing import Any

from flask import current_app
from flask_login import current_user, login_required

from expenseflow.errors import ValidationError
from expenseflow.models import HistoryAction, UserRole
from expenseflow.services import approval_engine
from expenseflow.services.queries import ExpenseQueries
from expenseflow.utils.helpers import json_response, request_payload, role_required

from . import manager_bp


@manager_bp.route("/pending", methods=["GET"])
@login_required
@role_required(UserRole.MANAGER, UserRole.ADMIN)
def pending_approvals() -> Any:
    """Return pending expenses assigned to the current user."""
    expenses = ExpenseQueries().pending_approvals_for(current_user.id)
    return json_response({"expenses": [expense.to_dict() for expense in expenses]})


def _decide(expense_id: int, action: HistoryAction) -> Any:
    comment = request_payload().get("comment")
    if comment is not None and not isinstance(comment, str):
        raise ValidationError("Comment must be text.")
    router = approval_engine.build_router(current_app.config)
    expense = router.process_expense(expense_id, action, comment, current_user)
    current_app.logger.info("User %s recorded %s on expense %s", current_user.id, action.value, expense_id)
    return json_response(
        {
            "message": f"Expense {expense.status.value.lower()}.",
            "expense": expense.to_dict(),
        }
    )


@manager_bp.route("/approve/<int:expense_id>", methods=["POST"])
@login_required
@role_required(UserRole.MANAGER, UserRole.ADMIN)
def approve_expense(expense_id: int) -> Any:
    """Approve an expense, escalating high-value ones to an admin."""
    return _decide(expense_id, HistoryAction.APPROVE)


@manager_bp.route("/reject/<int:expense_id>", methods=["POST"])
@login_required
@role_required(UserRole.MANAGER, UserRole.ADMIN)
def reject_expense(expense_id: int) -> Any:
    """Reject an expense."""
    return _decide(expense_id, HistoryAction.REJECT)
