# parish_office/api/certificates.py
from __future__ import annotations

import logging
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy.orm import Session

from parish_office.api.deps import (
    get_actor,
    get_app_settings,
    get_clock,
    get_db,
    get_renderer,
    http_error,
)
from parish_office.config import Settings
from parish_office.schemas.certificate import CertificateRead, RegistryRead
from parish_office.services import certificates as svc
from parish_office.services.clock import Clock
from parish_office.services.errors import ParishOfficeError
from parish_office.services.pdf_renderer import Renderer
from parish_office.services.registry import build_registry

router = APIRouter(prefix="/certificates", tags=["Certificates"])
logger = logging.getLogger(__name__)


def content_disposition(file_name: str) -> str:
    """Inline disposition with an ASCII fallback plus the RFC 5987 UTF-8 name."""
    fallback = svc.ascii_fold(file_name).strip().replace("\\", "_").replace('"', "_") or "certificate.pdf"
    return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name, safe='')}"


@router.get("/", response_model=List[CertificateRead])
def list_certificates(
    skip: int = 0,
    limit: int = 200,
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    return svc.list_certificates(db, clock=clock, settings=settings, skip=skip, limit=limit)


# Declared before "/{cert_id}" routes so "registry" is not parsed as an id.
@router.get("/registry", response_model=RegistryRead)
def certificate_registry(
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    return build_registry(db, clock=clock, settings=settings)


@router.get("/{cert_id}", response_model=CertificateRead)
def get_certificate(
    cert_id: int,
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    try:
        cert = svc.get_certificate(db, cert_id)
    except ParishOfficeError as exc:
        raise http_error(exc) from exc
    return svc.to_read(cert, now=clock.now(), threshold=svc.reminder_threshold(settings))


@router.post("/{cert_id}/generate", response_model=CertificateRead)
def generate_certificate(
    cert_id: int,
    actor: str = Depends(get_actor),
    renderer: Renderer = Depends(get_renderer),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    try:
        cert = svc.generate_certificate(
            db, cert_id, actor=actor, renderer=renderer, clock=clock, settings=settings
        )
    except ParishOfficeError as exc:
        raise http_error(exc) from exc
    return svc.to_read(cert)


@router.post("/{cert_id}/upload", response_model=CertificateRead)
def upload_certificate(
    cert_id: int,
    file: UploadFile = File(...),
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    data = file.file.read()
    try:
        cert = svc.upload_certificate_file(
            db,
            cert_id,
            file_name=file.filename,
            mime_type=file.content_type,
            data=data,
            actor=actor,
            clock=clock,
            max_bytes=settings.upload_file_limit_bytes,
        )
    except ParishOfficeError as exc:
        raise http_error(exc) from exc
    return svc.to_read(cert)


@router.get("/{cert_id}/file")
def download_certificate(cert_id: int, db: Session = Depends(get_db)):
    try:
        data, file_name, mime_type = svc.download_certificate(db, cert_id)
    except ParishOfficeError as exc:
        raise http_error(exc) from exc
    return Response(
        content=data,
        media_type=mime_type,
        headers={"Content-Disposition": content_disposition(file_name)},
    )
