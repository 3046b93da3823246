"""General helper utilities."""
from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Dict

from flask import current_app, jsonify, request
from flask_login import current_user

from expenseflow.errors import ExpenseFlowError, ValidationError
from expenseflow.models import UserRole

JsonView = Callable[..., Any]


def json_response(payload: Any, status: int = 200):
    """Return a JSON response with status code."""
    return jsonify(payload), status


def request_payload() -> Dict[str, Any]:
    """JSON body or form fields of the current request."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object.")
        return payload
    return request.form.to_dict()


def role_required(*roles: UserRole):
    """Restrict a route to one or more roles."""
    def decorator(view_func: JsonView) -> JsonView:
        @wraps(view_func)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                return json_response({"error": "Authentication required."}, status=401)
            if current_user.role not in roles:
                return json_response({"error": "Insufficient permissions."}, status=403)
            return view_func(*args, **kwargs)

        return wrapped

    return decorator


def handle_expenseflow_error(error: ExpenseFlowError):
    if error.status_code >= 500:
        current_app.logger.error("%s: %s", type(error).__name__, error.message)
    else:
        current_app.logger.info("%s: %s", type(error).__name__, error.message)
    return json_response(error.to_dict(), status=error.status_code)
