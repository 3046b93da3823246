"""Tests for expenseflow/services/directory.py."""

import pytest

from expenseflow.errors import NotFound
from expenseflow.models import Company, UserRole, db


class TestLookups:
    def test_role_of(self, directory, admin, manager, employee):
        assert directory.role_of(admin.id) is UserRole.ADMIN
        assert directory.role_of(manager.id) is UserRole.MANAGER
        assert directory.role_of(employee.id) is UserRole.EMPLOYEE

    def test_role_of_unknown_user(self, directory):
        with pytest.raises(NotFound):
            directory.role_of(12345)

    def test_manager_of(self, directory, admin, manager, employee):
        assert directory.manager_of(employee.id) == manager.id
        assert directory.manager_of(manager.id) == admin.id
        assert directory.manager_of(admin.id) is None

    def test_company_of(self, directory, company, employee):
        assert directory.company_of(employee.id) == company.id

    def test_get_company_unknown(self, directory):
        with pytest.raises(NotFound):
            directory.get_company(777)


class TestAnyAdmin:
    def test_none_when_company_has_no_admin(self, directory, company, make_user):
        make_user("Only Employee")
        assert directory.any_admin_of(company.id) is None

    def test_first_admin_is_stable(self, directory, company, make_user):
        first = make_user("First Admin", UserRole.ADMIN)
        make_user("Second Admin", UserRole.ADMIN)

        assert directory.any_admin_of(company.id) == first.id
        assert directory.any_admin_of(company.id) == first.id

    def test_scoped_to_company(self, directory, company, make_user):
        other = Company(name="Elsewhere", country="Germany", currency="EUR")
        db.session.add(other)
        db.session.commit()
        foreign = make_user("Foreign Admin", UserRole.ADMIN, company_=other)

        assert directory.any_admin_of(company.id) is None
        assert directory.any_admin_of(other.id) == foreign.id


def test_user_ids_in(directory, company, admin, manager, employee, make_user):
    other = Company(name="Elsewhere", country="Germany", currency="EUR")
    db.session.add(other)
    db.session.commit()
    make_user("Outsider", company_=other)

    assert directory.user_ids_in(company.id) == [admin.id, manager.id, employee.id]
