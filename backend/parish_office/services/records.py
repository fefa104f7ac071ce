# parish_office/services/records.py
"""Sacrament register: create / edit / list / archive."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from parish_office.models.sacrament_record import SacramentRecord, SacramentType
from parish_office.models.service_request import ServiceRequest
from parish_office.schemas.sacrament_record import SacramentRecordCreate
from parish_office.services.clock import Clock, parish_clock
from parish_office.services.errors import InvalidBirthDate, NotFound, ValidationError

logger = logging.getLogger(__name__)

# Columns a caller may set directly (everything except archive state / ids)
EDITABLE_FIELDS = (
    "type", "name", "date", "officiant", "details",
    "father_name", "mother_name", "birth_date", "birth_place",
    "baptism_date", "baptism_place", "sponsors",
    "register_book", "register_page", "register_line",
    "residence", "date_of_death", "cause_of_death", "place_of_burial",
    "groom_name", "bride_name", "groom_age", "bride_age",
    "groom_residence", "bride_residence", "groom_nationality", "bride_nationality",
    "groom_father_name", "bride_father_name", "groom_mother_name", "bride_mother_name",
    "request_id",
)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def couple_name(groom: Optional[str], bride: Optional[str]) -> Optional[str]:
    if groom and bride:
        return f"{groom} & {bride}"
    return groom or bride or None


def check_birth_before_sacrament(values: Dict[str, Any]) -> None:
    birth = values.get("birth_date")
    when = values.get("date")
    if birth and when and birth > when:
        raise InvalidBirthDate()


def _ensure_request(db: Session, request_id: Optional[int]) -> None:
    if request_id is not None and db.get(ServiceRequest, request_id) is None:
        raise NotFound("Request", request_id)


# ─────────────────────────────────────────────────────────────────────────────
# Public service API used by parish_office/api/records.py
# ─────────────────────────────────────────────────────────────────────────────

def create_record(db: Session, payload: SacramentRecordCreate) -> SacramentRecord:
    values = payload.model_dump(include=set(EDITABLE_FIELDS))
    if not (values.get("name") or "").strip():
        values["name"] = couple_name(values.get("groom_name"), values.get("bride_name"))
    check_birth_before_sacrament(values)
    _ensure_request(db, values.get("request_id"))

    record = SacramentRecord(**values, is_archived=False)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("record created id=%s type=%s", record.id, record.type.value)
    return record


def get_record(db: Session, record_id: int) -> SacramentRecord:
    """Archived records stay individually viewable."""
    record = db.get(SacramentRecord, record_id)
    if not record:
        raise NotFound("Record", record_id)
    return record


def list_records(
    db: Session,
    *,
    include_archived: bool = False,
    sacrament_type: Optional[SacramentType] = None,
    skip: int = 0,
    limit: int = 200,
) -> List[SacramentRecord]:
    stmt = select(SacramentRecord)
    if not include_archived:
        stmt = stmt.where(SacramentRecord.is_archived.is_(False))
    if sacrament_type is not None:
        stmt = stmt.where(SacramentRecord.type == sacrament_type)
    stmt = stmt.order_by(SacramentRecord.date.desc(), SacramentRecord.id.desc()).offset(skip).limit(limit)
    return list(db.execute(stmt).scalars().all())


def update_record(db: Session, record_id: int, patch: Dict[str, Any]) -> SacramentRecord:
    record = get_record(db, record_id)

    changes = {k: v for k, v in patch.items() if k in EDITABLE_FIELDS}
    for required in ("type", "name", "date", "officiant"):
        if required in changes and changes[required] in (None, ""):
            raise ValidationError(f"{required} cannot be empty")
    if "request_id" in changes:
        _ensure_request(db, changes["request_id"])

    merged = {
        "birth_date": changes.get("birth_date", record.birth_date),
        "date": changes.get("date", record.date),
    }
    check_birth_before_sacrament(merged)

    for key, value in changes.items():
        setattr(record, key, value)

    db.commit()
    db.refresh(record)
    logger.info("record updated id=%s fields=%s", record.id, sorted(changes))
    return record


def archive_record(
    db: Session,
    record_id: int,
    *,
    actor: str,
    reason: Optional[str] = None,
    clock: Optional[Clock] = None,
) -> SacramentRecord:
    clock = clock or parish_clock()
    record = get_record(db, record_id)

    record.is_archived = True
    record.archived_at = clock.now()
    record.archived_by = actor
    record.archive_reason = (reason or "").strip() or None

    db.commit()
    db.refresh(record)
    logger.info("record archived id=%s by=%s", record.id, actor)
    return record


def unarchive_record(db: Session, record_id: int) -> SacramentRecord:
    record = get_record(db, record_id)

    record.is_archived = False
    record.archived_at = None
    record.archived_by = None
    record.archive_reason = None

    db.commit()
    db.refresh(record)
    logger.info("record unarchived id=%s", record.id)
    return record
