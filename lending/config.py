import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "super-secret-key")

    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI", "sqlite:///lending.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-super-secret")

    # lending rules
    LOAN_PERIOD_DAYS = int(os.getenv("LOAN_PERIOD_DAYS", "14"))
    MAX_ACTIVE_BORROWS = int(os.getenv("MAX_ACTIVE_BORROWS", "5"))
    FINE_PER_DAY = int(os.getenv("FINE_PER_DAY", "1"))

    # overdue sweep (background)
    SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED", "1")
    OVERDUE_SWEEP_MINUTES = int(os.getenv("OVERDUE_SWEEP_MINUTES", "10"))

    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = True
    MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@library.local")
    OVERDUE_NOTICES_ENABLED = _env_bool("OVERDUE_NOTICES_ENABLED", "1")
    OVERDUE_NOTICE_MAX_ATTEMPTS = int(os.getenv("OVERDUE_NOTICE_MAX_ATTEMPTS", "3"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    SCHEDULER_ENABLED = False
    MAIL_SUPPRESS_SEND = True
