"""
Environment-driven configuration.

Every value can be supplied through the process environment or a local .env
file. Secrets fall back to loud, insecure development defaults instead of
crashing the app at import time.
"""
import os
import warnings
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _secret(name: str, default: str) -> str:
    value = os.getenv(name, "")
    if not value:
        warnings.warn(
            f"{name} is not set. Using an insecure default. "
            "Set this env var in production!",
            stacklevel=2,
        )
        value = default
    return value


APP_ENV = os.getenv("APP_ENV", "development")
IS_PRODUCTION = APP_ENV == "production"

# --- Database ---
DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost")  # In Docker, this will be 'postgres'
DB_PORT = os.getenv("POSTGRES_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "butcher")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
SQL_ECHO = _flag("SQL_ECHO", "false")

# --- Admin session ---
SESSION_COOKIE_NAME = "admin_session"
SESSION_SECRET_KEY = _secret("SESSION_SECRET_KEY", "insecure-session-key-change-me")
SESSION_MAX_AGE_SECONDS = int(os.getenv("SESSION_MAX_AGE_SECONDS", str(60 * 60 * 4)))
INTERNAL_SETUP_KEY = os.getenv("INTERNAL_SETUP_KEY", "")

# --- Payments ---
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
DEPOSIT_AMOUNT_EUR = Decimal(os.getenv("DEPOSIT_AMOUNT_EUR", "20.00"))
DEPOSIT_CURRENCY = "eur"

# --- Email ---
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
EMAIL_FROM = os.getenv("EMAIL_FROM", "Fenelons Butcher <onboarding@resend.dev>")

# --- Ops ---
RATE_LIMIT_ENABLED = _flag("RATE_LIMIT_ENABLED", "true")
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# --- Shop ---
# Pickup days ("today", "tomorrow") are calendar days in the shop's timezone
SHOP_TIMEZONE = os.getenv("SHOP_TIMEZONE", "Europe/Dublin")
