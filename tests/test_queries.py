"""Tests for expenseflow/services/queries.py."""

import pytest

from expenseflow.models import Company, ExpenseStatus, UserRole, db
from expenseflow.services.queries import ExpenseQueries


@pytest.fixture
def queries(store, directory):
    return ExpenseQueries(store, directory)


def ids(expenses):
    return [e.id for e in expenses]


def test_expenses_of_user_newest_first(queries, router, employee, manager, expense_fields):
    older = router.submit_expense(expense_fields(), employee)
    router.submit_expense(expense_fields(), manager)
    newer = router.submit_expense(expense_fields(), employee)

    assert ids(queries.expenses_of_user(employee.id)) == [newer.id, older.id]


def test_pending_approvals_excludes_decided(queries, router, employee, manager, expense_fields):
    waiting = router.submit_expense(expense_fields(), employee)
    done = router.submit_expense(expense_fields(), employee)
    router.process_expense(done.id, "APPROVE", None, manager)

    assert ids(queries.pending_approvals_for(manager.id)) == [waiting.id]


def test_pending_approvals_excludes_escalated(queries, router, employee, manager, admin, expense_fields):
    big = router.submit_expense(expense_fields(amount="4000"), employee)
    router.process_expense(big.id, "APPROVE", None, manager)

    escalated = router.store.get(big.id)
    assert escalated.status is ExpenseStatus.ESCALATED
    assert escalated.approver_id == admin.id
    assert queries.pending_approvals_for(admin.id) == []
    assert queries.pending_approvals_for(manager.id) == []


def test_company_expenses_joins_through_users(queries, router, company, employee, make_user, expense_fields):
    other = Company(name="Rival", country="Canada", currency="CAD")
    db.session.add(other)
    db.session.commit()
    rival_admin = make_user("Rival Admin", UserRole.ADMIN, company_=other)
    rival_worker = make_user("Rival Worker", manager=rival_admin, company_=other)

    ours = router.submit_expense(expense_fields(), employee)
    theirs = router.submit_expense(expense_fields(currency="CAD"), rival_worker)

    assert ids(queries.company_expenses(company.id)) == [ours.id]
    assert ids(queries.company_expenses(other.id)) == [theirs.id]
    assert ids(queries.all_expenses()) == [theirs.id, ours.id]


def test_company_without_users(queries):
    assert queries.company_expenses(4242) == []


def test_queries_are_idempotent(queries, router, company, employee, manager, expense_fields):
    for amount in ("10", "2000", "30"):
        router.submit_expense(expense_fields(amount=amount), employee)

    for view in (
        lambda: queries.pending_approvals_for(manager.id),
        lambda: queries.expenses_of_user(employee.id),
        lambda: queries.company_expenses(company.id),
    ):
        first = [e.to_dict() for e in view()]
        second = [e.to_dict() for e in view()]
        assert first == second
        assert first
