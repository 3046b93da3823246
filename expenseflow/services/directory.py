"""Read-only view over users and companies used by the routing engine."""
from __future__ import annotations

from typing import List, Optional

from expenseflow.errors import NotFound
from expenseflow.models import Company, User, UserRole, db


class Directory:
    """Role, manager and admin lookups. Never writes."""

    def get_user(self, user_id: int) -> User:
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found.")
        return user

    def get_company(self, company_id: int) -> Company:
        company = db.session.get(Company, company_id)
        if company is None:
            raise NotFound(f"Company {company_id} not found.")
        return company

    def role_of(self, user_id: int) -> UserRole:
        return self.get_user(user_id).role

    def manager_of(self, user_id: int) -> Optional[int]:
        return self.get_user(user_id).manager_id

    def company_of(self, user_id: int) -> int:
        return self.get_user(user_id).company_id

    def any_admin_of(self, company_id: int) -> Optional[int]:
        # Lowest id wins so the choice is stable for a given store state.
        admin = (
            User.query.filter_by(company_id=company_id, role=UserRole.ADMIN)
            .order_by(User.id.asc())
            .first()
        )
        return admin.id if admin else None

    def user_ids_in(self, company_id: int) -> List[int]:
        rows = db.session.query(User.id).filter(User.company_id == company_id).order_by(User.id.asc())
        return [user_id for (user_id,) in rows]
