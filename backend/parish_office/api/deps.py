"""
Shared FastAPI dependencies and service-error translation.

Routers depend on these instead of constructing sessions, clocks or the
PDF renderer themselves, so tests can swap each one through
`app.dependency_overrides`.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from parish_office.config import Settings, get_settings
from parish_office.db import get_db  # noqa: F401  (re-exported for routers)
from parish_office.services.clock import Clock, parish_clock
from parish_office.services.errors import (
    CertificateRenderError,
    ConflictError,
    FileNotAvailable,
    NoRecordLinked,
    NotFound,
    ParishOfficeError,
    ValidationError,
)
from parish_office.services.pdf_renderer import Renderer, render_html_to_pdf

DEFAULT_ACTOR = "Staff"


def get_app_settings() -> Settings:
    return get_settings()


def get_clock() -> Clock:
    return parish_clock()


def get_renderer() -> Renderer:
    return render_html_to_pdf


def get_actor(x_actor: Optional[str] = Header(default=None, alias="X-Actor")) -> str:
    """Caller identity for issuedBy / uploadedBy / archivedBy."""
    return (x_actor or "").strip() or DEFAULT_ACTOR


def http_error(exc: ParishOfficeError) -> HTTPException:
    """Map a service exception onto the HTTP status the admin UI expects."""
    if isinstance(exc, NoRecordLinked):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.guidance)
    if isinstance(exc, (NotFound, FileNotAvailable)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    if isinstance(exc, CertificateRenderError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
