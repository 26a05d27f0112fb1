# backend/disposal_admin/config.py
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

    # SQLite DB stored in backend/instance/disposal_admin.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///disposal_admin.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Uploads (local disk collaborator)
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "uploads")
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", str(16 * 1024 * 1024)))
    ALLOWED_UPLOAD_EXTENSIONS = frozenset(
        ext.strip().lower()
        for ext in os.environ.get(
            "ALLOWED_UPLOAD_EXTENSIONS", "pdf,png,jpg,jpeg,gif,heic,webp,csv,txt,doc,docx,xls,xlsx"
        ).split(",")
        if ext.strip()
    )

    # Outbound mail (SMTP collaborator)
    MAIL_SERVER = os.environ.get("MAIL_SERVER")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER", "billing@localhost")
    # When true, messages are logged and kept in the in-app outbox instead of sent
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", MAIL_SERVER is None)

    # Zero padding for INV-0001 style document numbers
    DOCUMENT_NUMBER_PAD = int(os.environ.get("DOCUMENT_NUMBER_PAD", "4"))
