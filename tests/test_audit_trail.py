"""Tests for expenseflow/services/audit_trail.py and history immutability."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from expenseflow.errors import AuditTrailError
from expenseflow.models import Expense, ExpenseStatus, HistoryAction, db
from expenseflow.services import audit_trail


def _transient_expense(**overrides):
    values = dict(
        user_id=1,
        amount=Decimal("10.00"),
        currency="USD",
        category="Meals",
        description="Coffee",
        merchant="Cafe",
        date_spent=date(2024, 1, 1),
        status=ExpenseStatus.PENDING,
    )
    values.update(overrides)
    return Expense(**values)


class TestAppend:
    def test_appends_in_order(self, app):
        expense = _transient_expense()
        audit_trail.append(expense, HistoryAction.SUBMITTED, "Eli")
        audit_trail.append(expense, HistoryAction.APPROVE, "Mia", "ok")

        assert [e.position for e in expense.history] == [0, 1]
        assert [e.action for e in expense.history] == [HistoryAction.SUBMITTED, HistoryAction.APPROVE]
        assert expense.history[1].comment == "ok"

    def test_uses_given_timestamp(self, app):
        expense = _transient_expense()
        when = datetime(2023, 12, 31, 23, 59)
        entry = audit_trail.append(expense, HistoryAction.SUBMITTED, "Eli", at=when)
        assert entry.occurred_at == when

    def test_last_action(self, app):
        expense = _transient_expense()
        assert audit_trail.last_action(expense) is None
        audit_trail.append(expense, HistoryAction.SUBMITTED, "Eli")
        assert audit_trail.last_action(expense) is HistoryAction.SUBMITTED

    def test_entry_serialisation(self, app):
        expense = _transient_expense()
        entry = audit_trail.append(
            expense, HistoryAction.SUBMITTED, "Eli", "Expense submitted", at=datetime(2024, 2, 3, 4, 5, 6)
        )
        assert entry.to_dict() == {
            "action": "SUBMITTED",
            "actor_name": "Eli",
            "date": "2024-02-03T04:05:06",
            "comment": "Expense submitted",
        }


class TestVerifyConsistent:
    def test_empty_history(self, app):
        with pytest.raises(AuditTrailError):
            audit_trail.verify_consistent(_transient_expense())

    def test_pending_after_submission(self, app):
        expense = _transient_expense(approver_id=2)
        audit_trail.append(expense, HistoryAction.SUBMITTED, "Eli")
        audit_trail.verify_consistent(expense)

    def test_pending_without_approver_is_allowed(self, app):
        expense = _transient_expense(approver_id=None)
        audit_trail.append(expense, HistoryAction.SUBMITTED, "Eli")
        audit_trail.verify_consistent(expense)

    @pytest.mark.parametrize(
        "status,last",
        [
            (ExpenseStatus.APPROVED, HistoryAction.SUBMITTED),
            (ExpenseStatus.REJECTED, HistoryAction.APPROVE),
            (ExpenseStatus.ESCALATED, HistoryAction.APPROVE),
            (ExpenseStatus.PENDING, HistoryAction.REJECT),
        ],
    )
    def test_status_must_match_last_action(self, app, status, last):
        expense = _transient_expense(status=status, approver_id=5 if status is ExpenseStatus.ESCALATED else None)
        audit_trail.append(expense, HistoryAction.SUBMITTED, "Eli")
        if last is not HistoryAction.SUBMITTED:
            audit_trail.append(expense, last, "Mia")
        with pytest.raises(AuditTrailError):
            audit_trail.verify_consistent(expense)

    def test_terminal_expense_must_not_have_approver(self, app):
        expense = _transient_expense(status=ExpenseStatus.APPROVED, approver_id=2)
        audit_trail.append(expense, HistoryAction.SUBMITTED, "Eli")
        audit_trail.append(expense, HistoryAction.APPROVE, "Mia")
        with pytest.raises(AuditTrailError):
            audit_trail.verify_consistent(expense)

    def test_escalated_needs_approver(self, app):
        expense = _transient_expense(status=ExpenseStatus.ESCALATED, approver_id=None)
        audit_trail.append(expense, HistoryAction.SUBMITTED, "Eli")
        audit_trail.append(expense, HistoryAction.APPROVE, "Mia")
        audit_trail.append(expense, HistoryAction.ESCALATED, "System")
        with pytest.raises(AuditTrailError):
            audit_trail.verify_consistent(expense)


class TestImmutability:
    @pytest.fixture
    def submitted(self, router, employee, expense_fields):
        return router.submit_expense(expense_fields(), employee)

    def test_entries_cannot_be_edited(self, submitted):
        submitted.history[0].comment = "rewritten"
        with pytest.raises(AuditTrailError):
            db.session.commit()
        db.session.rollback()

        assert submitted.history[0].comment == "Expense submitted"

    def test_entries_cannot_be_deleted(self, submitted):
        db.session.delete(submitted.history[0])
        with pytest.raises(AuditTrailError):
            db.session.commit()
        db.session.rollback()

        assert len(submitted.history) == 1

    def test_history_only_grows(self, router, employee, manager, admin, expense_fields):
        expense = router.submit_expense(expense_fields(amount="1500"), employee)
        snapshots = [[e.to_dict() for e in expense.history]]

        for actor in (manager, admin):
            router.process_expense(expense.id, "APPROVE", None, actor)
            snapshots.append([e.to_dict() for e in router.store.get(expense.id).history])

        assert [len(s) for s in snapshots] == [1, 3, 4]

        for earlier, later in zip(snapshots, snapshots[1:]):
            assert len(later) > len(earlier)
            assert later[: len(earlier)] == earlier
