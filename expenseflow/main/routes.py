"""Company registration."""
from __future__ import annotations

from typing import Any

from flask import current_app

from expenseflow.services import accounts
from expenseflow.utils.helpers import json_response, request_payload

from . import main_bp


@main_bp.route("/register", methods=["POST"])
def register() -> Any:
    """Register a company together with its first admin."""
    payload = request_payload()
    company, admin = accounts.register_company(
        company_name=payload.get("company_name"),
        country=payload.get("country"),
        currency=payload.get("currency") or current_app.config.get("DEFAULT_CURRENCY"),
        admin_name=payload.get("admin_name"),
        admin_email=payload.get("admin_email"),
    )
    return json_response(
        {"message": "Company registered.", "company": company.to_dict(), "admin": admin.to_dict()},
        status=201,
    )
