# backend/orderdesk/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///orderdesk.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Display ids: "sequential" -> ORD-00001, "random" -> K7QZ-482913
    DISPLAY_ID_SCHEME = os.environ.get("DISPLAY_ID_SCHEME", "sequential")
    DISPLAY_ID_PREFIX = os.environ.get("DISPLAY_ID_PREFIX", "ORD")
    DISPLAY_ID_PAD = int(os.environ.get("DISPLAY_ID_PAD", "5"))

    # Credit sales without an explicit due date get this many days
    CREDIT_DEFAULT_TERM_DAYS = int(os.environ.get("CREDIT_DEFAULT_TERM_DAYS", "15"))
    RECEIVABLES_DUE_SOON_DAYS = int(os.environ.get("RECEIVABLES_DUE_SOON_DAYS", "7"))

    ORDER_LIST_MAX_LIMIT = int(os.environ.get("ORDER_LIST_MAX_LIMIT", "200"))

    WALK_IN_CUSTOMER_NAME = os.environ.get("WALK_IN_CUSTOMER_NAME", "Consumidor Final")

    CORS_ALLOWED_ORIGINS = {
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:9002",
        "http://127.0.0.1:9002",
    }
