"""Flask CLI commands."""
from __future__ import annotations

from datetime import date, timedelta

import click
from flask import Flask, current_app

from expenseflow.models import User, UserRole
from expenseflow.services import accounts, approval_engine

DEMO_ADMIN_EMAIL = "admin@example.com"


def seed_demo_data() -> bool:
    """Create a demo company, its hierarchy and a few expenses. Returns False if already present."""
    if User.query.filter_by(email=DEMO_ADMIN_EMAIL).first():
        return False

    _, admin = accounts.register_company(
        company_name="Global Tech Industries",
        country="United States",
        currency="USD",
        admin_name="Admin User",
        admin_email=DEMO_ADMIN_EMAIL,
    )
    manager = accounts.create_user(admin, "Sarah Manager", "manager@example.com", UserRole.MANAGER, admin.id)
    employee = accounts.create_user(admin, "John Employee", "employee@example.com", UserRole.EMPLOYEE, manager.id)

    router = approval_engine.build_router(current_app.config)
    today = date.today()
    router.submit_expense(
        {
            "amount": "45.00",
            "currency": "USD",
            "category": "Meals",
            "description": "Team Lunch",
            "merchant": "Burger King",
            "date": today.isoformat(),
        },
        employee,
    )
    router.submit_expense(
        {
            "amount": "1200.00",
            "currency": "USD",
            "category": "Software",
            "description": "Yearly Subscription",
            "merchant": "Adobe",
            "date": (today - timedelta(days=1)).isoformat(),
        },
        employee,
    )
    taxi = router.submit_expense(
        {
            "amount": "150.00",
            "currency": "USD",
            "category": "Travel",
            "description": "Taxi to Airport",
            "merchant": "Uber",
            "date": (today - timedelta(days=2)).isoformat(),
        },
        manager,
    )
    router.process_expense(taxi.id, "APPROVE", "Approved", admin)
    return True


def register_commands(app: Flask) -> None:
    @app.cli.command("seed-demo")
    def seed_demo() -> None:
        """Populate the database with a demo company."""
        if seed_demo_data():
            click.echo("Demo company created. Admin: admin@example.com")
        else:
            click.echo("Demo data already present.")
