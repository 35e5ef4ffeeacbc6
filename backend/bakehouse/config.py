# backend/bakehouse/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/bakehouse.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///bakehouse.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Shift boundaries in local wall-clock hours. Morning is
    # [start, end); night is the complementary window across midnight.
    # The bakery runs on Africa/Lagos time (UTC+1, no DST).
    SHIFT_MORNING_START_HOUR = int(os.environ.get("SHIFT_MORNING_START_HOUR", "10"))
    SHIFT_MORNING_END_HOUR = int(os.environ.get("SHIFT_MORNING_END_HOUR", "22"))
    SHIFT_UTC_OFFSET_HOURS = float(os.environ.get("SHIFT_UTC_OFFSET_HOURS", "1"))
    DEFAULT_SHIFT = os.environ.get("DEFAULT_SHIFT", "morning")

    ACTIVITY_RETENTION_DAYS = int(os.environ.get("ACTIVITY_RETENTION_DAYS", "3"))
    BATCH_NUMBER_PAD = int(os.environ.get("BATCH_NUMBER_PAD", "3"))

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
