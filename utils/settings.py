from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env")


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///./qr_scan.db")


def geo_check_rate_limit() -> int:
    return _int_env("GEO_CHECK_RATE_LIMIT", 30)


def geo_check_window_ms() -> int:
    return _int_env("GEO_CHECK_WINDOW_MS", 60_000)


def scan_stream_timeout_seconds() -> int:
    return _int_env("SCAN_STREAM_TIMEOUT_SECONDS", 300)


def app_domain() -> str:
    return os.getenv("APP_DOMAIN", "").rstrip("/")


def log_level() -> str:
    return (os.getenv("LOG_LEVEL", "INFO") or "INFO").upper()
