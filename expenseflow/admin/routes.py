"""Administrative routes."""
from __future__ import annotations

from typing import Any

from flask import current_app
from flask_login import current_user, login_required

from expenseflow.models import User, UserRole
from expenseflow.services import accounts
from expenseflow.services.queries import ExpenseQueries
from expenseflow.utils.helpers import json_response, request_payload, role_required

from . import admin_bp


@admin_bp.route("/users", methods=["GET"])
@login_required
@role_required(UserRole.ADMIN)
def users() -> Any:
    """List all users in the admin's company."""
    company_users = User.query.filter_by(company_id=current_user.company_id).order_by(User.id.asc()).all()
    return json_response({"users": [user.to_dict() for user in company_users]})


@admin_bp.route("/users/create", methods=["POST"])
@login_required
@role_required(UserRole.ADMIN)
def create_user() -> Any:
    """Create an employee, manager or admin in the admin's company."""
    payload = request_payload()
    user = accounts.create_user(
        current_user,
        name=payload.get("name"),
        email=payload.get("email"),
        role=payload.get("role", UserRole.EMPLOYEE.value),
        manager_id=payload.get("manager_id"),
    )
    current_app.logger.info("Admin %s created user %s", current_user.id, user.id)
    return json_response({"message": "User created.", "user": user.to_dict()}, status=201)


@admin_bp.route("/expenses", methods=["GET"])
@login_required
@role_required(UserRole.ADMIN)
def company_expenses() -> Any:
    """Every expense submitted by a member of the admin's company."""
    expenses = ExpenseQueries().company_expenses(current_user.company_id)
    return json_response({"expenses": [expense.to_dict() for expense in expenses]})


@admin_bp.route("/expenses/all", methods=["GET"])
@login_required
@role_required(UserRole.ADMIN)
def all_expenses() -> Any:
    """Every expense in the system."""
    expenses = ExpenseQueries().all_expenses()
    return json_response({"expenses": [expense.to_dict() for expense in expenses]})
