import os
from decimal import Decimal


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in {"1", "true", "yes"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///expenseflow.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Approval routing
    ESCALATION_THRESHOLD = Decimal(os.environ.get("ESCALATION_THRESHOLD", "1000"))
    ENFORCE_ASSIGNED_APPROVER = _env_flag("ENFORCE_ASSIGNED_APPROVER")

    # Optional collaborators
    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "USD")
    CURRENCY_CONVERSION_ENABLED = _env_flag("CURRENCY_CONVERSION_ENABLED")
    EXCHANGE_API_URL = os.environ.get(
        "EXCHANGE_API_URL", "https://api.exchangerate-api.com/v4/latest/{base}"
    )
    RECEIPT_ANALYSIS_URL = os.environ.get("RECEIPT_ANALYSIS_URL")
    RECEIPT_ANALYSIS_API_KEY = os.environ.get("RECEIPT_ANALYSIS_API_KEY")
    RECEIPT_ANALYSIS_TIMEOUT = int(os.environ.get("RECEIPT_ANALYSIS_TIMEOUT", 30))


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    ESCALATION_THRESHOLD = Decimal("1000")
    ENFORCE_ASSIGNED_APPROVER = False
    CURRENCY_CONVERSION_ENABLED = False
    RECEIPT_ANALYSIS_URL = None


class ProductionConfig(Config):
    DEBUG = False


config_by_name = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}
