# parish_office/services/requests.py
"""
Service requests: public intake, admin status changes, deletion.

Intake (`submit_request`) is where a certificate request gets tied to a
register entry. Requests that cannot proceed are still stored, as
REJECTED with an explanatory note, so the office keeps a trail of them.
"""
from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from dateutil import parser as dateparser
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from parish_office.config import get_settings
from parish_office.models.issued_certificate import IssuedCertificate
from parish_office.models.sacrament_record import SacramentRecord, SacramentType
from parish_office.models.service_request import (
    RequestCategory,
    RequestStatus,
    ServiceRequest,
)
from parish_office.schemas.sacrament_record import RecordDetails
from parish_office.schemas.service_request import ServiceRequestCreate
from parish_office.services.clock import Clock, parish_clock
from parish_office.services.errors import (
    InvalidContact,
    InvalidStatusTransition,
    NotFound,
    RecordAlreadyLinked,
    ReissueReasonRequired,
    TerminalStateViolation,
    ValidationError,
)
from parish_office.services.matching import (
    baptism_proof_criteria,
    criteria_from_request,
    find_active_record,
    linked_records,
    locale_date,
    request_matches_record,
)
from parish_office.services.records import check_birth_before_sacrament, couple_name
from parish_office.services.service_types import infer_sacrament_type

logger = logging.getLogger(__name__)

PH_MOBILE_RE = re.compile(r"^(?:\+639|09)\d{9}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SUBMITTED_MESSAGE = "Your request has been submitted. The parish office will contact you once it has been reviewed."

ALLOWED_TRANSITIONS: Dict[RequestStatus, frozenset] = {
    RequestStatus.PENDING: frozenset({
        RequestStatus.APPROVED, RequestStatus.SCHEDULED,
        RequestStatus.REJECTED, RequestStatus.COMPLETED,
    }),
    RequestStatus.APPROVED: frozenset({
        RequestStatus.SCHEDULED, RequestStatus.COMPLETED, RequestStatus.REJECTED,
    }),
    RequestStatus.SCHEDULED: frozenset({RequestStatus.COMPLETED, RequestStatus.REJECTED}),
    RequestStatus.COMPLETED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
}


@dataclass
class SubmissionOutcome:
    request: ServiceRequest
    auto_rejected: bool
    message: str


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _clean(value: Any) -> Any:
    if isinstance(value, str) and not isinstance(value, enum.Enum):
        value = value.strip()
        return value or None
    return value


def is_valid_contact(contact: str) -> bool:
    return bool(PH_MOBILE_RE.match(contact) or EMAIL_RE.match(contact))


def _require(condition: Any, message: str) -> None:
    if not condition:
        raise ValidationError(message)


def _not_future(d: Optional[date], today: date, label: str) -> None:
    if d and d > today:
        raise ValidationError(f"{label} cannot be in the future.")


def _validate_submission(data: Dict[str, Any], sac_type: Optional[SacramentType], today: date) -> None:
    """Field rules per request kind. Raises ValidationError; stores nothing."""
    category = data["category"]
    is_sacrament = category == RequestCategory.SACRAMENT
    is_certificate = category == RequestCategory.CERTIFICATE

    is_confirmation = is_sacrament and sac_type == SacramentType.CONFIRMATION
    is_funeral = is_sacrament and sac_type == SacramentType.FUNERAL
    is_marriage = is_sacrament and sac_type == SacramentType.MARRIAGE
    is_marriage_certificate = is_certificate and sac_type == SacramentType.MARRIAGE
    is_death_certificate = is_certificate and sac_type == SacramentType.FUNERAL

    structured = is_funeral or is_marriage or is_marriage_certificate or is_death_certificate
    _require(data.get("details") or structured, "Missing required fields")

    if is_confirmation:
        _require(
            data.get("confirmation_candidate_name") and data.get("confirmation_candidate_birth_date"),
            "Confirmation candidate name and birth date are required",
        )
        _not_future(data["confirmation_candidate_birth_date"], today, "Birth date")

    if is_certificate and not is_marriage_certificate:
        _require(
            data.get("certificate_recipient_name"),
            "Certificate recipient name is required for certificate requests",
        )

    if is_death_certificate:
        _require(
            data.get("certificate_recipient_death_date"),
            "Date of death is required for death certificate requests",
        )
        _require(
            data.get("requester_relationship"),
            "Relationship to the deceased is required for death certificate requests",
        )
        _not_future(data["certificate_recipient_death_date"], today, "Date of death")

    if is_funeral:
        _require(
            data.get("funeral_deceased_name") and data.get("funeral_residence")
            and data.get("funeral_date_of_death") and data.get("funeral_place_of_burial"),
            "Funeral requests require deceased name, residence, date of death, and place of burial",
        )
        _require(
            data.get("requester_relationship"),
            "Relationship to the deceased is required for funeral requests",
        )
        _require(data.get("preferred_date"), "Preferred date/time is required for funeral requests")
        _not_future(data["funeral_date_of_death"], today, "Date of death")

    if is_marriage:
        _require(
            data.get("marriage_groom_name") and data.get("marriage_bride_name"),
            "Marriage requests require both groom and bride names",
        )
        _require(data.get("preferred_date"), "Preferred date/time is required for marriage requests")

    if is_marriage_certificate:
        _require(
            data.get("marriage_groom_name") and data.get("marriage_bride_name") and data.get("marriage_date"),
            "Marriage certificate requests require groom name, bride name, and marriage date",
        )
        _not_future(data["marriage_date"], today, "Marriage date")

    if is_certificate:
        _not_future(data.get("certificate_recipient_birth_date"), today, "Birth date")


def find_prior_issuance(db: Session, record: SacramentRecord) -> Optional[IssuedCertificate]:
    """A certificate already issued for `record`, if any.

    Requests that resolved to the record are checked first; older requests
    without a stored record id are compared on their identity fields.
    """
    direct = (
        db.execute(
            select(IssuedCertificate)
            .join(ServiceRequest, IssuedCertificate.request_id == ServiceRequest.id)
            .where(ServiceRequest.record_id == record.id)
            .order_by(IssuedCertificate.date_issued.desc())
        )
        .scalars()
        .first()
    )
    if direct:
        return direct

    unresolved = (
        db.execute(
            select(IssuedCertificate)
            .join(ServiceRequest, IssuedCertificate.request_id == ServiceRequest.id)
            .where(
                ServiceRequest.category == RequestCategory.CERTIFICATE,
                ServiceRequest.sacrament_type == record.type,
                ServiceRequest.record_id.is_(None),
            )
            .order_by(IssuedCertificate.date_issued.desc())
        )
        .scalars()
        .all()
    )
    return next((c for c in unresolved if request_matches_record(c.request, record)), None)


def _parse_loose_date(text: Optional[str], today: date) -> Optional[date]:
    """'2025-08-10', '2025-08-10 10:00 AM', 'Aug 10, 2025 9am' -> date.

    Missing parts are filled from `today`, never from the wall clock.
    """
    if not text:
        return None
    try:
        return dateparser.parse(text, fuzzy=True, default=datetime.combine(today, time())).date()
    except (ValueError, OverflowError, TypeError):
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Intake
# ─────────────────────────────────────────────────────────────────────────────

def submit_request(
    db: Session,
    payload: ServiceRequestCreate,
    *,
    clock: Optional[Clock] = None,
) -> SubmissionOutcome:
    clock = clock or parish_clock()
    data = {k: _clean(v) for k, v in payload.model_dump().items()}

    if not (data.get("requester_name") and data.get("contact_info") and data.get("category") and data.get("service_type")):
        raise ValidationError("Missing required fields")
    if not is_valid_contact(data["contact_info"]):
        raise InvalidContact()

    sac_type = infer_sacrament_type(data["service_type"])
    _validate_submission(data, sac_type, clock.today())

    category = RequestCategory(data["category"])
    status = RequestStatus.PENDING
    note: Optional[str] = None
    record_id: Optional[int] = None
    is_reissue = False

    if category == RequestCategory.CERTIFICATE and sac_type is not None:
        criteria = criteria_from_request(_Fields(data), sac_type)
        record = find_active_record(db, criteria)
        if record is None:
            status = RequestStatus.REJECTED
            note = criteria.rejection_note()
        else:
            record_id = record.id
            if find_prior_issuance(db, record) is not None:
                is_reissue = True
                if not data.get("reissue_reason"):
                    raise ReissueReasonRequired()

    if category == RequestCategory.SACRAMENT and sac_type == SacramentType.CONFIRMATION:
        name = data["confirmation_candidate_name"]
        birth = data["confirmation_candidate_birth_date"]
        if find_active_record(db, baptism_proof_criteria(name, birth)) is None:
            status = RequestStatus.REJECTED
            note = f"No matching baptism record found for {name} ({locale_date(birth)})."

    request = ServiceRequest(
        category=category,
        service_type=data["service_type"],
        sacrament_type=sac_type,
        requester_name=data["requester_name"],
        contact_info=data["contact_info"],
        preferred_date=data.get("preferred_date"),
        details=data.get("details") or "",
        confirmation_candidate_name=data.get("confirmation_candidate_name"),
        confirmation_candidate_birth_date=data.get("confirmation_candidate_birth_date"),
        funeral_deceased_name=data.get("funeral_deceased_name"),
        funeral_residence=data.get("funeral_residence"),
        funeral_date_of_death=data.get("funeral_date_of_death"),
        funeral_place_of_burial=data.get("funeral_place_of_burial"),
        marriage_groom_name=data.get("marriage_groom_name"),
        marriage_bride_name=data.get("marriage_bride_name"),
        marriage_date=data.get("marriage_date"),
        certificate_recipient_name=data.get("certificate_recipient_name"),
        certificate_recipient_birth_date=data.get("certificate_recipient_birth_date"),
        certificate_recipient_death_date=data.get("certificate_recipient_death_date"),
        requester_relationship=data.get("requester_relationship"),
        record_id=record_id,
        is_reissue=is_reissue,
        reissue_reason=data.get("reissue_reason") if is_reissue else None,
        status=status,
        submission_date=clock.now(),
        admin_notes=note,
    )
    db.add(request)
    db.commit()
    db.refresh(request)

    auto_rejected = status == RequestStatus.REJECTED
    if auto_rejected:
        logger.info("request auto-rejected id=%s type=%s: %s", request.id, request.service_type, note)
    else:
        logger.info(
            "request submitted id=%s category=%s record_id=%s reissue=%s",
            request.id, category.value, record_id, is_reissue,
        )
    return SubmissionOutcome(
        request=request,
        auto_rejected=auto_rejected,
        message=note if auto_rejected else SUBMITTED_MESSAGE,
    )


class _Fields:
    """Attribute view over a cleaned payload dict (for criteria_from_request)."""

    def __init__(self, data: Dict[str, Any]) -> None:
        self._data = data

    def __getattr__(self, name: str) -> Any:
        return self._data.get(name)


# ─────────────────────────────────────────────────────────────────────────────
# Admin reads
# ─────────────────────────────────────────────────────────────────────────────

def get_request(db: Session, request_id: int, *, for_update: bool = False) -> ServiceRequest:
    stmt = select(ServiceRequest).where(ServiceRequest.id == request_id)
    if for_update:
        stmt = stmt.with_for_update()
    req = db.execute(stmt).scalars().first()
    if not req:
        raise NotFound("Request", request_id)
    return req


def list_requests(
    db: Session,
    *,
    status: Optional[RequestStatus] = None,
    category: Optional[RequestCategory] = None,
    skip: int = 0,
    limit: int = 200,
) -> List[ServiceRequest]:
    stmt = select(ServiceRequest)
    if status is not None:
        stmt = stmt.where(ServiceRequest.status == status)
    if category is not None:
        stmt = stmt.where(ServiceRequest.category == category)
    stmt = stmt.order_by(ServiceRequest.submission_date.desc(), ServiceRequest.id.desc()).offset(skip).limit(limit)
    return list(db.execute(stmt).scalars().all())


# ─────────────────────────────────────────────────────────────────────────────
# Status transitions
# ─────────────────────────────────────────────────────────────────────────────

def _record_values_for_completion(
    req: ServiceRequest,
    details: RecordDetails,
    sac_type: SacramentType,
    new_schedule: Optional[str],
    today: date,
) -> Dict[str, Any]:
    given = {k: _clean(v) for k, v in details.model_dump(exclude_unset=True).items()}
    given = {k: v for k, v in given.items() if v is not None}

    when = given.get("date")
    if when is None:
        for candidate in (new_schedule, req.confirmed_schedule, req.preferred_date):
            when = _parse_loose_date(candidate, today)
            if when:
                break
    when = when or today

    values: Dict[str, Any] = {}
    if sac_type == SacramentType.CONFIRMATION:
        values["name"] = req.confirmation_candidate_name
        values["birth_date"] = req.confirmation_candidate_birth_date
    elif sac_type == SacramentType.FUNERAL:
        values.update(
            name=req.funeral_deceased_name,
            residence=req.funeral_residence,
            date_of_death=req.funeral_date_of_death,
            place_of_burial=req.funeral_place_of_burial,
        )
    elif sac_type == SacramentType.MARRIAGE:
        values.update(
            name=couple_name(req.marriage_groom_name, req.marriage_bride_name),
            groom_name=req.marriage_groom_name,
            bride_name=req.marriage_bride_name,
        )
    values = {k: v for k, v in values.items() if v is not None}

    values.update(given)
    values["type"] = sac_type
    values["date"] = when
    values.setdefault("name", req.requester_name)
    values.setdefault("officiant", get_settings().default_officiant)
    values.setdefault("details", f"Generated from Request #{req.id}. Details: {req.details}")
    return values


def update_status(
    db: Session,
    request_id: int,
    *,
    status: Optional[RequestStatus] = None,
    confirmed_schedule: Optional[str] = None,
    admin_notes: Optional[str] = None,
    record_details: Optional[RecordDetails] = None,
    clock: Optional[Clock] = None,
) -> ServiceRequest:
    clock = clock or parish_clock()
    req = get_request(db, request_id, for_update=True)

    if req.is_terminal:
        raise TerminalStateViolation(req.status)

    confirmed_schedule = _clean(confirmed_schedule)
    target = status or req.status
    if target != req.status and target not in ALLOWED_TRANSITIONS[req.status]:
        raise InvalidStatusTransition(
            f"Cannot change a {req.status.value.lower()} request to {target.value.lower()}."
        )

    if target == RequestStatus.SCHEDULED and not (confirmed_schedule or (req.status == RequestStatus.SCHEDULED and req.confirmed_schedule)):
        raise ValidationError("A confirmed schedule is required to mark a request as scheduled.")

    new_record: Optional[SacramentRecord] = None
    if target == RequestStatus.COMPLETED:
        if req.category == RequestCategory.CERTIFICATE:
            raise InvalidStatusTransition(
                "Certificate requests are completed by issuing the certificate."
            )
        sac_type = (record_details.type if record_details and record_details.type else None) or req.sacrament_type
        if linked_records(req.sacrament_records, None):
            raise RecordAlreadyLinked()
        if sac_type is not None:
            values = _record_values_for_completion(
                req, record_details or RecordDetails(), sac_type, confirmed_schedule, clock.today()
            )
            check_birth_before_sacrament(values)
            new_record = SacramentRecord(**values, is_archived=False, request_id=req.id)
        else:
            logger.warning("request %s completed without a sacrament type; no record created", req.id)

    try:
        previous = req.status
        req.status = target
        if confirmed_schedule is not None:
            req.confirmed_schedule = confirmed_schedule
        if admin_notes is not None:
            req.admin_notes = _clean(admin_notes)
        if new_record is not None:
            db.add(new_record)
            db.flush()
            req.record_id = new_record.id
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(req)
    if previous != target:
        logger.info("request %s status %s -> %s", req.id, previous.value, target.value)
    if new_record is not None:
        logger.info("record %s created from completed request %s", new_record.id, req.id)
    return req


# ─────────────────────────────────────────────────────────────────────────────
# Delete (cascade)
# ─────────────────────────────────────────────────────────────────────────────

def delete_request(db: Session, request_id: int) -> None:
    """Remove a request, its issued certificates, and detach linked records."""
    get_request(db, request_id, for_update=True)
    try:
        certs = db.execute(
            delete(IssuedCertificate).where(IssuedCertificate.request_id == request_id)
        ).rowcount
        detached = db.execute(
            update(SacramentRecord)
            .where(SacramentRecord.request_id == request_id)
            .values(request_id=None)
        ).rowcount
        db.execute(delete(ServiceRequest).where(ServiceRequest.id == request_id))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.expire_all()
    logger.info(
        "request %s deleted (certificates removed=%s, records detached=%s)",
        request_id, certs, detached,
    )
