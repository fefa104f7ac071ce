# parish_office/api/system.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from parish_office import __version__
from parish_office.api.deps import get_clock, get_db
from parish_office.config import get_settings
from parish_office.services.clock import Clock

router = APIRouter(tags=["ops"])


def _db_driver_from_url(url: str | None) -> str | None:
    if not url or "://" not in url:
        return None
    scheme = url.split("://", 1)[0]  # e.g., "postgresql+psycopg2"
    if "+" in scheme:
        return scheme.split("+", 1)[1]  # "psycopg2"
    return scheme  # fallback


@router.get("/health")
def health(clock: Clock = Depends(get_clock), db: Session = Depends(get_db)):
    """Liveness check with a lightweight DB probe and local time."""
    settings = get_settings()
    probe = {"status": "ok", "driver": _db_driver_from_url(settings.database_url)}
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        probe["status"] = f"error: {type(e).__name__}"

    return {
        "status": "ok",
        "time": {"tz": settings.timezone, "now": clock.now().isoformat()},
        "db": probe,
    }


@router.get("/version")
def version():
    """Minimal runtime info; confirms DB driver for the UI."""
    settings = get_settings()
    return {
        "app": "Parish Office Backend",
        "version": __version__,
        "db_driver": _db_driver_from_url(settings.database_url),
        "tz": settings.timezone,
    }
