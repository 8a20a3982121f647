import os
from dataclasses import dataclass
from decimal import Decimal


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI", "sqlite:///lending.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-dev-secret")

    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "25"))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@library.local")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND")

    # Lending rules
    LOAN_PERIOD_DAYS = int(os.getenv("LOAN_PERIOD_DAYS", "14"))
    OVERDUE_FINE_PER_DAY = os.getenv("OVERDUE_FINE_PER_DAY", "5000")
    MAX_BORROW_LIMIT = int(os.getenv("MAX_BORROW_LIMIT", "5"))

    DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))
    MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))

    # Reminder sweep
    SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED", "1")
    LATE_CHECK_INTERVAL_MINUTES = int(os.getenv("LATE_CHECK_INTERVAL_MINUTES", "10"))
    DUE_SOON_HOURS = int(os.getenv("DUE_SOON_HOURS", "24"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    MAIL_SUPPRESS_SEND = True
    SCHEDULER_ENABLED = False
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"


@dataclass(frozen=True)
class LendingSettings:
    """The lending rules the engine is built with, lifted out of app.config."""

    loan_period_days: int = 14
    fine_per_day: Decimal = Decimal("5000")
    max_borrow_limit: int = 5
    default_page_limit: int = 10
    max_page_limit: int = 100

    @classmethod
    def from_config(cls, config) -> "LendingSettings":
        return cls(
            loan_period_days=int(config["LOAN_PERIOD_DAYS"]),
            fine_per_day=Decimal(str(config["OVERDUE_FINE_PER_DAY"])),
            max_borrow_limit=int(config["MAX_BORROW_LIMIT"]),
            default_page_limit=int(config["DEFAULT_PAGE_LIMIT"]),
            max_page_limit=int(config["MAX_PAGE_LIMIT"]),
        )
