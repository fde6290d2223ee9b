# backend/bookvoucher/config.py
from __future__ import annotations
import os


DEFAULT_GRADES = [
    "1", "2", "3", "4", "5", "6", "7", "8",
    "9 BUS01", "9 SCI01", "9 Voc 101",
    "10 BUS01", "10 SCI01", "10 Voc 01",
]


def _split_env(name: str, default: list[str]) -> list[str]:
    raw = os.environ.get(name)
    if not raw:
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/bookvoucher.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///bookvoucher.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Frontend dev server (Vite) and preview origins
    CORS_ALLOWED_ORIGINS = _split_env(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        ],
    )

    # Tracked voucher grades. Reconciliation services take this list as input.
    GRADE_CATALOGUE = _split_env("GRADE_CATALOGUE", DEFAULT_GRADES)
