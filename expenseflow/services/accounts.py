"""Company registration and admin-managed user creation."""
from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

from expenseflow.errors import Unauthorized, ValidationError
from expenseflow.models import Company, User, UserRole, db

logger = logging.getLogger(__name__)


def _require(**fields: Optional[str]) -> dict:
    if not_text := sorted(
        name for name, value in fields.items() if value is not None and not isinstance(value, str)
    ):
        raise ValidationError(f"Fields must be text: {', '.join(not_text)}", not_text)
    cleaned = {name: (value or "").strip() for name, value in fields.items()}
    if missing := sorted(name for name, value in cleaned.items() if not value):
        raise ValidationError(f"Missing fields: {', '.join(missing)}", missing)
    return cleaned


def _ensure_email_free(email: str) -> None:
    if User.query.filter_by(email=email).first():
        raise ValidationError("Email already exists.")


def parse_role(role: Union[str, UserRole]) -> UserRole:
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole[str(role).strip().upper()]
    except KeyError:
        raise ValidationError("Unsupported role.") from None


def register_company(
    company_name: str,
    country: str,
    currency: str,
    admin_name: str,
    admin_email: str,
) -> Tuple[Company, User]:
    """Create a company together with its first admin."""
    fields = _require(
        company_name=company_name,
        country=country,
        currency=currency,
        admin_name=admin_name,
        admin_email=admin_email,
    )
    currency = fields["currency"].upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValidationError("Currency must be a three-letter ISO code.")
    email = fields["admin_email"].lower()
    _ensure_email_free(email)

    company = Company(name=fields["company_name"], country=fields["country"], currency=currency)
    admin = User(name=fields["admin_name"], email=email, role=UserRole.ADMIN, company=company)
    db.session.add_all([company, admin])
    db.session.commit()

    logger.info("Registered company %s with admin %s", company.id, admin.email)
    return company, admin


def create_user(
    acting_user: User,
    name: str,
    email: str,
    role: Union[str, UserRole],
    manager_id: Optional[int] = None,
) -> User:
    """Add a user to the acting admin's company."""
    if acting_user.role is not UserRole.ADMIN:
        raise Unauthorized("Only admins can create users.")

    fields = _require(name=name, email=email)
    email = fields["email"].lower()
    role = parse_role(role)
    _ensure_email_free(email)

    if manager_id not in (None, ""):
        try:
            manager = db.session.get(User, int(manager_id))
        except (TypeError, ValueError):
            manager = None
        if manager is None or manager.company_id != acting_user.company_id:
            raise ValidationError("Invalid manager selected.")
        manager_id = manager.id
    else:
        manager_id = None

    user = User(
        name=fields["name"],
        email=email,
        role=role,
        company_id=acting_user.company_id,
        manager_id=manager_id,
    )
    db.session.add(user)
    db.session.commit()

    logger.info("User %s (%s) created by admin %s", user.email, role.value, acting_user.id)
    return user
