# app/config.py
# Role: Environment-driven settings for the finance dashboard.
#       Values are read once at import time (after loading a local .env file).

"""
Application settings.

Everything here can be overridden through environment variables or a `.env`
file in the project root.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_truthy(name: str, default: str = "0") -> bool:
    v = os.getenv(name, default)
    return str(v).strip().lower() in ("1", "true", "yes", "y", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


# -------------------------------------------------------------------
# Paths / database
# -------------------------------------------------------------------

# Project root (one level above app/)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Folder for the default SQLite DB
DB_DIR = os.path.join(BASE_DIR, "database")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(DB_DIR, 'finance.db')}",
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -------------------------------------------------------------------
# Currency
# -------------------------------------------------------------------

# All stored amounts are normalized to this currency.
REPORTING_CURRENCY = "USD"

EXCHANGE_RATE_URL = os.getenv(
    "EXCHANGE_RATE_URL",
    "https://api.exchangerate-api.com/v4/latest/USD",
)
EXCHANGE_RATE_TTL_SECONDS = _env_float("EXCHANGE_RATE_TTL_SECONDS", 60 * 60)
EXCHANGE_RATE_TIMEOUT = _env_float("EXCHANGE_RATE_TIMEOUT", 10)

# -------------------------------------------------------------------
# Classification
# -------------------------------------------------------------------

# Our own Relay account number: Revolut transfers to it are internal moves.
OWN_RELAY_ACCOUNT = os.getenv("OWN_RELAY_ACCOUNT", "200000805781")

# -------------------------------------------------------------------
# Optional AI parsing path
# -------------------------------------------------------------------

AI_PARSE_ENABLED = _env_truthy("AI_PARSE_ENABLED", "0")
AI_PARSE_MODEL = os.getenv("AI_PARSE_MODEL", "gpt-4.1-mini")
AI_PARSE_MAX_LINES = 500
