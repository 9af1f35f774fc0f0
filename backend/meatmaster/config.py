# backend/meatmaster/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/meatmaster.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///meatmaster.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Sales decrement stock unconditionally unless this is turned off
    ALLOW_NEGATIVE_STOCK = _env_bool("ALLOW_NEGATIVE_STOCK", True)

    LEDGER_HISTORY_LIMIT = int(os.environ.get("LEDGER_HISTORY_LIMIT", "100"))
    RECENT_SALES_LIMIT = int(os.environ.get("RECENT_SALES_LIMIT", "5"))
    DEFAULT_MIN_STOCK_LEVEL = os.environ.get("DEFAULT_MIN_STOCK_LEVEL", "5")
