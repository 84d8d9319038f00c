# backend/dailyops/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/dailyops.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///dailyops.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Rendered bill documents are written here and served back by filename
    BILL_STORAGE_DIR = os.environ.get("BILL_STORAGE_DIR", "bills")
    BILL_NUMBER_PAD = int(os.environ.get("BILL_NUMBER_PAD", "4"))
