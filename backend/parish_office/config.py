# parish_office/config.py
"""
Runtime settings, read once from the environment.

A local `.env` file is honoured (python-dotenv) so developers can keep
DATABASE_URL and parish letterhead values out of the shell profile.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000", "http://127.0.0.1:3000",
    "http://localhost:5173", "http://127.0.0.1:5173",
]


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", name, raw)
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./parish_office.db"
    db_echo: bool = False
    timezone: str = "Asia/Manila"
    log_level: str = "INFO"

    # Certificates
    upload_reminder_hours: int = 24
    upload_file_limit_mb: int = 10
    default_officiant: str = "Parish Priest"

    # Letterhead
    diocese: str = "Diocese of Borongan"
    parish_name: str = "Quasi Parish of Our Lady of the Miraculous Medal"
    parish_location: str = "Sabang, Borongan City"
    priest_title: str = "Parish Priest"
    logo_path: Optional[str] = None

    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @property
    def upload_file_limit_bytes(self) -> int:
        return self.upload_file_limit_mb * 1024 * 1024


def load_settings() -> Settings:
    """Build a Settings instance from the current environment."""
    defaults = Settings()
    return Settings(
        database_url=os.getenv("DATABASE_URL") or defaults.database_url,
        db_echo=_env_bool("DB_ECHO", defaults.db_echo),
        timezone=os.getenv("TZ") or defaults.timezone,
        log_level=(os.getenv("LOG_LEVEL") or defaults.log_level).upper(),
        upload_reminder_hours=_env_int("UPLOAD_REMINDER_HOURS", defaults.upload_reminder_hours),
        upload_file_limit_mb=_env_int("UPLOAD_FILE_LIMIT_MB", defaults.upload_file_limit_mb),
        default_officiant=os.getenv("DEFAULT_OFFICIANT") or defaults.default_officiant,
        diocese=os.getenv("DIOCESE") or defaults.diocese,
        parish_name=os.getenv("PARISH_NAME") or defaults.parish_name,
        parish_location=os.getenv("PARISH_LOCATION") or defaults.parish_location,
        priest_title=os.getenv("PARISH_PRIEST_TITLE") or defaults.priest_title,
        logo_path=os.getenv("PARISH_LOGO_PATH") or None,
        cors_origins=_env_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Install a plain stderr handler at LOG_LEVEL (idempotent)."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
