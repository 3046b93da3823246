"""Pytest configuration and shared fixtures."""

from datetime import datetime

import pytest
from flask import g

from expenseflow import create_app, db
from expenseflow.models import Company, User, UserRole
from expenseflow.services.approval_engine import ApprovalRouter
from expenseflow.services.directory import Directory
from expenseflow.services.expense_store import ExpenseStore

FIXED_NOW = datetime(2024, 5, 17, 9, 30, 0)


@pytest.fixture
def app():
    """Application bound to a fresh in-memory database."""
    app = create_app("testing")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Put a user into the Flask-Login session of the test client."""

    def _login(user):
        with client.session_transaction() as sess:
            sess["_user_id"] = str(user.id)
            sess["_fresh"] = True
        # Flask-Login caches the loaded user on the shared app context.
        g.pop("_login_user", None)

    return _login


@pytest.fixture
def company(app):
    company = Company(name="Acme Corp", country="United States", currency="USD")
    db.session.add(company)
    db.session.commit()
    return company


@pytest.fixture
def make_user(app, company):
    """Factory for users; defaults to the shared company."""
    counter = {"n": 0}

    def _make(name, role=UserRole.EMPLOYEE, manager=None, company_=None):
        counter["n"] += 1
        user = User(
            name=name,
            email=f"{name.lower().replace(' ', '.')}.{counter['n']}@example.com",
            role=role,
            company=company_ or company,
            manager_id=manager.id if manager else None,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("Ada Admin", UserRole.ADMIN)


@pytest.fixture
def manager(make_user, admin):
    return make_user("Mia Manager", UserRole.MANAGER, manager=admin)


@pytest.fixture
def employee(make_user, manager):
    return make_user("Eli Employee", UserRole.EMPLOYEE, manager=manager)


@pytest.fixture
def store(app):
    return ExpenseStore()


@pytest.fixture
def directory(app):
    return Directory()


@pytest.fixture
def router(directory, store):
    return ApprovalRouter(directory, store, clock=lambda: FIXED_NOW)


@pytest.fixture
def expense_fields():
    """Valid submission fields; override per test."""

    def _fields(**overrides):
        fields = {
            "amount": "45.00",
            "currency": "USD",
            "category": "Meals",
            "description": "Team Lunch",
            "merchant": "Burger King",
            "date": "2024-05-16",
        }
        fields.update(overrides)
        return fields

    return _fields
