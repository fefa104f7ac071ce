# parish_office/services/certificates.py
"""
Issued certificates: issue → generate/upload → download.

Issuing records the grant and completes the owning request in one
transaction. The PDF comes later, either rendered from the register
entry (`generate_certificate`) or supplied by staff
(`upload_certificate_file`).
"""
from __future__ import annotations

import logging
import re
import unicodedata
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, undefer

from parish_office.config import Settings, get_settings
from parish_office.models.issued_certificate import (
    CertificateStatus,
    DeliveryMethod,
    IssuedCertificate,
)
from parish_office.models.sacrament_record import SacramentRecord, SacramentType
from parish_office.models.service_request import (
    RequestCategory,
    RequestStatus,
    ServiceRequest,
)
from parish_office.schemas.certificate import CertificateRead
from parish_office.services.certificate_templates import (
    build_template_data,
    letterhead_from_settings,
    render_certificate_html,
)
from parish_office.services.clock import Clock, parish_clock, ensure_aware
from parish_office.services.errors import (
    AlreadyIssued,
    CertificateRenderError,
    FileNotAvailable,
    NoMatchingRecord,
    NoRecordLinked,
    NotFound,
    ParishOfficeError,
    TerminalStateViolation,
    ValidationError,
)
from parish_office.services.matching import (
    MatchCriteria,
    certificate_criteria,
    criteria_from_request,
    find_active_record,
    linked_records,
)
from parish_office.services.pdf_renderer import Renderer, render_html_to_pdf
from parish_office.services.records import couple_name
from parish_office.services.requests import get_request
from parish_office.services.service_types import infer_sacrament_type

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
NO_GENERATOR_MESSAGE = "No generator available for this certificate type"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


# ─────────────────────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────────────────────

def get_certificate(db: Session, cert_id: int, *, with_file: bool = False) -> IssuedCertificate:
    stmt = select(IssuedCertificate).where(IssuedCertificate.id == cert_id)
    if with_file:
        stmt = stmt.options(undefer(IssuedCertificate.file_data))
    cert = db.execute(stmt).unique().scalars().first()
    if not cert:
        raise NotFound("Certificate", cert_id)
    return cert


def needs_upload_reminder(cert: IssuedCertificate, now: datetime, threshold: timedelta) -> bool:
    """PENDING_UPLOAD for at least `threshold` since issuance."""
    if cert.status != CertificateStatus.PENDING_UPLOAD or cert.date_issued is None:
        return False
    return now - ensure_aware(cert.date_issued) >= threshold


def to_read(cert: IssuedCertificate, *, now: Optional[datetime] = None, threshold: Optional[timedelta] = None) -> CertificateRead:
    view = CertificateRead.model_validate(cert)
    if now is not None and threshold is not None:
        view.needs_upload_reminder = needs_upload_reminder(cert, now, threshold)
    return view


def reminder_threshold(settings: Optional[Settings] = None) -> timedelta:
    return timedelta(hours=(settings or get_settings()).upload_reminder_hours)


def list_certificates(
    db: Session,
    *,
    clock: Optional[Clock] = None,
    settings: Optional[Settings] = None,
    skip: int = 0,
    limit: int = 200,
) -> List[CertificateRead]:
    clock = clock or parish_clock()
    now, threshold = clock.now(), reminder_threshold(settings)
    rows = (
        db.execute(
            select(IssuedCertificate)
            .order_by(IssuedCertificate.date_issued.desc(), IssuedCertificate.id.desc())
            .offset(skip)
            .limit(limit)
        )
        .unique()
        .scalars()
        .all()
    )
    return [to_read(c, now=now, threshold=threshold) for c in rows]


# ─────────────────────────────────────────────────────────────────────────────
# Issue
# ─────────────────────────────────────────────────────────────────────────────

def _recipient_name(req: ServiceRequest, sac_type: Optional[SacramentType]) -> str:
    if sac_type == SacramentType.MARRIAGE:
        if req.marriage_groom_name and req.marriage_bride_name:
            return couple_name(req.marriage_groom_name, req.marriage_bride_name)
        return req.requester_name
    return req.certificate_recipient_name or (req.details or "")[:50] or req.requester_name


def _issued_certificate_id(db: Session, request_id: int) -> Optional[int]:
    return db.execute(
        select(IssuedCertificate.id).where(IssuedCertificate.request_id == request_id)
    ).scalar_one_or_none()


def issue_certificate(
    db: Session,
    request_id: int,
    *,
    delivery_method: Optional[DeliveryMethod],
    issued_by: Optional[str],
    notes: Optional[str] = None,
    clock: Optional[Clock] = None,
) -> IssuedCertificate:
    """Create the certificate row and complete the request, atomically."""
    clock = clock or parish_clock()
    issued_by = (issued_by or "").strip()
    if not delivery_method or not issued_by:
        raise ValidationError("Delivery method and issuer are required")

    # Row lock serializes concurrent issue calls on backends that support it;
    # the unique constraint on request_id catches the rest.
    req = get_request(db, request_id, for_update=True)
    if req.status == RequestStatus.REJECTED:
        raise TerminalStateViolation(req.status)

    sac_type = req.sacrament_type or infer_sacrament_type(req.service_type)
    if req.category == RequestCategory.CERTIFICATE and sac_type is not None:
        record = find_active_record(db, criteria_from_request(req, sac_type))
        if record is None:
            raise NoMatchingRecord()
        if req.record_id is None:
            req.record_id = record.id

    if _issued_certificate_id(db, req.id) is not None:
        raise AlreadyIssued()

    cert = IssuedCertificate(
        request_id=req.id,
        type=req.service_type,
        recipient_name=_recipient_name(req, sac_type),
        requester_name=req.requester_name,
        date_issued=clock.now(),
        issued_by=issued_by,
        delivery_method=delivery_method,
        notes=(notes or "").strip() or None,
        status=CertificateStatus.PENDING_UPLOAD,
    )
    try:
        db.add(cert)
        req.status = RequestStatus.COMPLETED
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise AlreadyIssued() from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(cert)
    logger.info(
        "certificate %s issued for request %s (%s, by %s)",
        cert.id, req.id, delivery_method.value, issued_by,
    )
    return cert


# ─────────────────────────────────────────────────────────────────────────────
# Generate
# ─────────────────────────────────────────────────────────────────────────────

def generator_type(cert: IssuedCertificate) -> SacramentType:
    """Which certificate template applies to `cert`."""
    sac_type = infer_sacrament_type(cert.type)
    if sac_type is None and cert.request is not None:
        sac_type = cert.request.sacrament_type
    if sac_type is None:
        raise ValidationError(NO_GENERATOR_MESSAGE)
    return sac_type


def fallback_criteria(cert: IssuedCertificate, sac_type: SacramentType) -> Optional[MatchCriteria]:
    """Identity the certificate describes when no record is linked yet."""
    req = cert.request
    if sac_type == SacramentType.MARRIAGE:
        if not (req.marriage_groom_name and req.marriage_bride_name):
            return None
        return certificate_criteria(
            sac_type,
            groom_name=req.marriage_groom_name,
            bride_name=req.marriage_bride_name,
            marriage_date=req.marriage_date,
        )
    name = (
        req.certificate_recipient_name
        or req.confirmation_candidate_name
        or cert.recipient_name
        or req.requester_name
    )
    return certificate_criteria(
        sac_type,
        recipient_name=name,
        recipient_birth_date=req.certificate_recipient_birth_date or req.confirmation_candidate_birth_date,
        recipient_death_date=req.certificate_recipient_death_date or req.funeral_date_of_death,
    )


def resolve_record(db: Session, cert: IssuedCertificate, sac_type: SacramentType) -> SacramentRecord:
    """Active register entry behind `cert`; links a fallback hit to the request."""
    req = cert.request

    if req.record_id is not None:
        matched = db.get(SacramentRecord, req.record_id)
        if matched is not None and not matched.is_archived and matched.type == sac_type:
            return matched

    linked = linked_records(req.sacrament_records, sac_type)
    if linked:
        return linked[0]

    criteria = fallback_criteria(cert, sac_type)
    record = find_active_record(db, criteria) if criteria else None
    if record is None:
        raise NoRecordLinked(sac_type)

    if record.request_id is None:
        try:
            record.request_id = req.id
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info("record %s linked to request %s during generation", record.id, req.id)
    return record


def ascii_fold(text: Optional[str]) -> str:
    """Strip accents (José Niño -> Jose Nino); characters with no ASCII base are dropped."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    return decomposed.encode("ascii", "ignore").decode("ascii")


def certificate_file_name(sac_type: SacramentType, name: Optional[str]) -> str:
    slug = _SLUG_RE.sub("-", ascii_fold(name).lower()).strip("-") or "certificate"
    return f"{sac_type.value.lower()}-certificate-{slug}.pdf"


def generate_certificate(
    db: Session,
    cert_id: int,
    *,
    actor: str,
    renderer: Optional[Renderer] = None,
    clock: Optional[Clock] = None,
    settings: Optional[Settings] = None,
) -> IssuedCertificate:
    """Render the certificate PDF from its register entry and attach it."""
    clock = clock or parish_clock()
    settings = settings or get_settings()
    renderer = renderer or render_html_to_pdf

    cert = get_certificate(db, cert_id)
    sac_type = generator_type(cert)
    record = resolve_record(db, cert, sac_type)

    try:
        letterhead = letterhead_from_settings(settings)
        data = build_template_data(
            record,
            issued_on=ensure_aware(cert.date_issued) or clock.now(),
            issued_by=cert.issued_by,
            letterhead=letterhead,
        )
        html = render_certificate_html(sac_type, data, letterhead)
        pdf = renderer(html)
    except ParishOfficeError:
        db.rollback()
        raise
    except Exception as exc:
        db.rollback()
        logger.exception("certificate %s: PDF rendering failed", cert_id)
        raise CertificateRenderError(cause=exc) from exc

    try:
        cert.status = CertificateStatus.UPLOADED
        cert.file_data = pdf
        cert.file_name = certificate_file_name(sac_type, record.name)
        cert.file_mime_type = PDF_MIME
        cert.file_size = len(pdf)
        cert.uploaded_at = clock.now()
        cert.uploaded_by = actor
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(cert)
    logger.info(
        "certificate %s generated from record %s (%s bytes, by %s)",
        cert.id, record.id, cert.file_size, actor,
    )
    return cert


# ─────────────────────────────────────────────────────────────────────────────
# Manual upload / download
# ─────────────────────────────────────────────────────────────────────────────

def upload_certificate_file(
    db: Session,
    cert_id: int,
    *,
    file_name: Optional[str],
    mime_type: Optional[str],
    data: bytes,
    actor: str,
    clock: Optional[Clock] = None,
    max_bytes: Optional[int] = None,
) -> IssuedCertificate:
    clock = clock or parish_clock()
    max_bytes = max_bytes if max_bytes is not None else get_settings().upload_file_limit_bytes

    if not data:
        raise ValidationError("Certificate file is required")
    if len(data) > max_bytes:
        raise ValidationError(f"Certificate file exceeds the {max_bytes // (1024 * 1024)} MB upload limit")

    cert = get_certificate(db, cert_id)
    try:
        cert.status = CertificateStatus.UPLOADED
        cert.file_data = data
        cert.file_name = file_name or "certificate"
        cert.file_mime_type = mime_type or "application/octet-stream"
        cert.file_size = len(data)
        cert.uploaded_at = clock.now()
        cert.uploaded_by = actor
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(cert)
    logger.info("certificate %s file uploaded (%s bytes, by %s)", cert.id, cert.file_size, actor)
    return cert


def download_certificate(db: Session, cert_id: int) -> Tuple[bytes, str, str]:
    """Return (payload, file name, mime type) for an uploaded certificate."""
    cert = db.execute(
        select(IssuedCertificate)
        .where(IssuedCertificate.id == cert_id)
        .options(undefer(IssuedCertificate.file_data))
    ).unique().scalars().first()
    if not cert or cert.status != CertificateStatus.UPLOADED or not cert.file_data:
        raise FileNotAvailable()
    return (
        cert.file_data,
        cert.file_name or "certificate",
        cert.file_mime_type or "application/octet-stream",
    )
