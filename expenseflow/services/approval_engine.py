"""Approval routing and the expense state machine.

An expense is submitted to the submitter's manager (or, failing that, to an
admin of the company). Each decision is written to the history first and then
moves the expense to its next state:

* ``REJECT`` always ends in ``REJECTED``.
* ``APPROVE`` on an amount above the escalation threshold by anyone other than
  an admin re-routes the expense to an admin as ``ESCALATED``.
* Any other ``APPROVE`` ends in ``APPROVED``.

The threshold compares the original ``amount``; ``converted_amount`` plays no
part in routing.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, List, Mapping, Optional, Union

from expenseflow.errors import InvalidTransition, Unauthorized, ValidationError
from expenseflow.models import Expense, ExpenseStatus, HistoryAction, User, UserRole
from expenseflow.services import audit_trail
from expenseflow.services.directory import Directory
from expenseflow.services.expense_store import ExpenseStore

logger = logging.getLogger(__name__)

DEFAULT_ESCALATION_THRESHOLD = Decimal("1000")
DECISIONS = (HistoryAction.APPROVE, HistoryAction.REJECT)
CENTS = Decimal("0.01")
# Largest value an amount column (Numeric(12, 2)) holds.
MAX_AMOUNT = Decimal("9999999999.99")

SUBMITTED_COMMENT = "Expense submitted"
ESCALATED_COMMENT = "High value expense escalated to Admin"


@dataclass(frozen=True)
class Transition:
    status: ExpenseStatus
    approver_id: Optional[int] = None
    escalated: bool = False


def gives_final_approval(role: UserRole) -> bool:
    """Whether an approval by ``role`` closes the expense regardless of amount."""
    if role is UserRole.ADMIN:
        return True
    if role is UserRole.MANAGER:
        return False
    if role is UserRole.EMPLOYEE:
        return False
    raise ValueError(f"No approval routing defined for role {role!r}")


def next_state(
    action: HistoryAction,
    amount: Decimal,
    actor_role: UserRole,
    find_admin: Callable[[], Optional[int]],
    threshold: Decimal = DEFAULT_ESCALATION_THRESHOLD,
) -> Transition:
    """Compute where a decision leaves an expense.

    ``find_admin`` is only called when the decision would escalate.
    """
    if action is HistoryAction.REJECT:
        return Transition(ExpenseStatus.REJECTED)
    if action is not HistoryAction.APPROVE:
        raise ValidationError(f"Unsupported decision '{action.value}'.")

    if amount > threshold and not gives_final_approval(actor_role):
        admin_id = find_admin()
        if admin_id is not None:
            return Transition(ExpenseStatus.ESCALATED, approver_id=admin_id, escalated=True)
        # Nobody to escalate to: the approval stands.
    return Transition(ExpenseStatus.APPROVED)


def parse_decision(action: Union[str, HistoryAction]) -> HistoryAction:
    if isinstance(action, HistoryAction):
        decision = action
    else:
        try:
            decision = HistoryAction[str(action).strip().upper()]
        except KeyError:
            decision = None
    if decision not in DECISIONS:
        raise ValidationError(f"Unsupported action '{action}'. Use APPROVE or REJECT.")
    return decision


def _parse_amount(raw: Any, name: str, problems: List[str]) -> Optional[Decimal]:
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, TypeError, ValueError):
        problems.append(f"Invalid {name}.")
        return None
    if not value.is_finite() or value <= 0:
        problems.append(f"{name.capitalize()} must be a positive number.")
        return None
    if value > MAX_AMOUNT:
        problems.append(f"{name.capitalize()} must not exceed {MAX_AMOUNT}.")
        return None
    value = value.quantize(CENTS)
    if value <= 0:
        problems.append(f"{name.capitalize()} must be a positive number.")
        return None
    return value


def _text(fields: Mapping[str, Any], name: str) -> Optional[str]:
    value = fields.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_submission(fields: Mapping[str, Any]) -> dict:
    """Validate raw submission fields into column values.

    Raises ValidationError listing every problem found.
    """
    problems: List[str] = []

    missing = [
        name
        for name in ("amount", "currency", "category", "description", "date")
        if fields.get(name) in (None, "")
    ]
    if missing:
        problems.append(f"Missing fields: {', '.join(missing)}")

    amount = None
    if "amount" not in missing:
        amount = _parse_amount(fields["amount"], "amount", problems)

    currency = _text(fields, "currency")
    if currency is not None:
        currency = currency.upper()
        if len(currency) != 3 or not currency.isalpha():
            problems.append("Currency must be a three-letter ISO code.")

    date_spent = None
    raw_date = fields.get("date")
    if isinstance(raw_date, datetime):
        date_spent = raw_date.date()
    elif isinstance(raw_date, date):
        date_spent = raw_date
    elif raw_date not in (None, ""):
        try:
            date_spent = date.fromisoformat(str(raw_date))
        except ValueError:
            problems.append("Invalid 'date' format. Use YYYY-MM-DD.")

    receipt_image = fields.get("receipt_image") or None
    if receipt_image is not None and not isinstance(receipt_image, str):
        problems.append("Receipt image must be a data URL string.")

    converted_amount = None
    if fields.get("converted_amount") not in (None, ""):
        converted_amount = _parse_amount(fields["converted_amount"], "converted amount", problems)

    if problems:
        raise ValidationError("Invalid expense submission.", problems)

    return {
        "amount": amount,
        "currency": currency,
        "converted_amount": converted_amount,
        "category": _text(fields, "category"),
        "description": _text(fields, "description"),
        "merchant": _text(fields, "merchant") or "Unknown",
        "date_spent": date_spent,
        "receipt_image": receipt_image,
    }


class ApprovalRouter:
    """Submits expenses and applies approver decisions."""

    def __init__(
        self,
        directory: Optional[Directory] = None,
        store: Optional[ExpenseStore] = None,
        escalation_threshold: Decimal = DEFAULT_ESCALATION_THRESHOLD,
        enforce_assigned_approver: bool = False,
        clock: Callable[[], datetime] = audit_trail.utcnow,
    ):
        self.directory = directory or Directory()
        self.store = store or ExpenseStore()
        self.escalation_threshold = Decimal(str(escalation_threshold))
        self.enforce_assigned_approver = enforce_assigned_approver
        self.clock = clock

    def initial_approver(self, submitter: User) -> Optional[int]:
        manager_id = self.directory.manager_of(submitter.id)
        if manager_id is not None:
            return manager_id
        return self.directory.any_admin_of(self.directory.company_of(submitter.id))

    def submit_expense(self, fields: Mapping[str, Any], submitter: User) -> Expense:
        values = parse_submission(fields)
        company = self.directory.get_company(self.directory.company_of(submitter.id))

        if values["converted_amount"] is None and values["currency"] == company.currency.upper():
            values["converted_amount"] = values["amount"]

        approver_id = self.initial_approver(submitter)
        if approver_id is None:
            logger.warning(
                "Expense from user %s has no approver: no manager and no admin in company %s",
                submitter.id,
                company.id,
            )

        expense = Expense(
            user_id=submitter.id,
            status=ExpenseStatus.PENDING,
            approver_id=approver_id,
            **values,
        )
        audit_trail.append(expense, HistoryAction.SUBMITTED, submitter.name, SUBMITTED_COMMENT, at=self.clock())
        self.store.create(expense)

        logger.info("Expense %s submitted by user %s, routed to %s", expense.id, submitter.id, approver_id)
        return expense

    def process_expense(
        self,
        expense_id: int,
        action: Union[str, HistoryAction],
        comment: Optional[str],
        actor: User,
    ) -> Expense:
        decision = parse_decision(action)
        actor_role = self.directory.role_of(actor.id)

        def apply(expense: Expense) -> None:
            if expense.status.is_terminal:
                raise InvalidTransition(f"Expense {expense.id} is already {expense.status.value}.")
            if self.enforce_assigned_approver and expense.approver_id != actor.id:
                raise Unauthorized(f"User {actor.id} is not the current approver of expense {expense.id}.")

            now = self.clock()
            audit_trail.append(expense, decision, actor.name, comment, at=now)

            transition = next_state(
                decision,
                expense.amount,
                actor_role,
                lambda: self.directory.any_admin_of(self.directory.company_of(expense.user_id)),
                self.escalation_threshold,
            )
            expense.status = transition.status
            expense.approver_id = transition.approver_id
            if transition.escalated:
                audit_trail.append(
                    expense, HistoryAction.ESCALATED, audit_trail.SYSTEM_ACTOR, ESCALATED_COMMENT, at=now
                )
                logger.info("Expense %s escalated to admin %s", expense.id, transition.approver_id)

        expense = self.store.update(expense_id, apply)
        logger.info(
            "Expense %s %s by user %s -> %s", expense_id, decision.value, actor.id, expense.status.value
        )
        return expense


def build_router(config: Mapping[str, Any]) -> ApprovalRouter:
    """Router configured from a Flask config mapping."""
    return ApprovalRouter(
        escalation_threshold=config.get("ESCALATION_THRESHOLD", DEFAULT_ESCALATION_THRESHOLD),
        enforce_assigned_approver=bool(config.get("ENFORCE_ASSIGNED_APPROVER", False)),
    )
