# parish_office/api/records.py
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from parish_office.api.deps import get_actor, get_clock, get_db, http_error
from parish_office.models.sacrament_record import SacramentType
from parish_office.schemas.sacrament_record import (
    ArchivePayload,
    SacramentRecordCreate,
    SacramentRecordRead,
    SacramentRecordUpdate,
)
from parish_office.services import records as svc
from parish_office.services.clock import Clock
from parish_office.services.errors import ParishOfficeError

router = APIRouter(prefix="/records", tags=["Records"])
logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# OpenAPI "examples" for request body
# ─────────────────────────────────────────────────────────────────────────────
CREATE_EXAMPLES = {
    "baptism": {
        "summary": "Baptism",
        "value": {
            "type": "BAPTISM",
            "name": "Juan Dela Cruz",
            "date": "2024-02-10",
            "officiant": "Rev. Fr. Jose Reyes",
            "details": "Regular Saturday baptism",
            "father_name": "Pedro Dela Cruz",
            "mother_name": "Maria Dela Cruz",
            "birth_date": "2023-12-01",
            "birth_place": "Borongan City",
            "sponsors": "Ana Reyes, Carlos Santos",
            "register_book": "12",
            "register_page": "34",
            "register_line": "5",
        },
    },
    "marriage": {
        "summary": "Marriage",
        "description": "Name may be omitted; it is derived from the couple.",
        "value": {
            "type": "MARRIAGE",
            "date": "2024-06-15",
            "officiant": "Rev. Fr. Jose Reyes",
            "details": "Wedding mass",
            "groom_name": "Jose Santos",
            "bride_name": "Ana Reyes",
        },
    },
}


@router.post(
    "/",
    response_model=SacramentRecordRead,
    status_code=201,
    openapi_extra={"requestBody": {"content": {"application/json": {"examples": CREATE_EXAMPLES}}}},
)
def create_record(payload: SacramentRecordCreate, db: Session = Depends(get_db)):
    try:
        return svc.create_record(db, payload)
    except ParishOfficeError as exc:
        raise http_error(exc) from exc


@router.get("/", response_model=List[SacramentRecordRead])
def list_records(
    include_archived: bool = False,
    type: Optional[SacramentType] = None,
    skip: int = 0,
    limit: int = 200,
    db: Session = Depends(get_db),
):
    return svc.list_records(
        db, include_archived=include_archived, sacrament_type=type, skip=skip, limit=limit
    )


@router.get("/{record_id}", response_model=SacramentRecordRead)
def get_record(record_id: int, db: Session = Depends(get_db)):
    try:
        return svc.get_record(db, record_id)
    except ParishOfficeError as exc:
        raise http_error(exc) from exc


@router.patch("/{record_id}", response_model=SacramentRecordRead)
def update_record(record_id: int, payload: SacramentRecordUpdate, db: Session = Depends(get_db)):
    patch = payload.model_dump(exclude_unset=True)
    if not patch:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return svc.update_record(db, record_id, patch)
    except ParishOfficeError as exc:
        raise http_error(exc) from exc


@router.post("/{record_id}/archive", response_model=SacramentRecordRead)
def archive_record(
    record_id: int,
    payload: Optional[ArchivePayload] = Body(default=None),
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    try:
        return svc.archive_record(
            db, record_id, actor=actor, reason=payload.reason if payload else None, clock=clock
        )
    except ParishOfficeError as exc:
        raise http_error(exc) from exc


@router.post("/{record_id}/unarchive", response_model=SacramentRecordRead)
def unarchive_record(record_id: int, db: Session = Depends(get_db)):
    try:
        return svc.unarchive_record(db, record_id)
    except ParishOfficeError as exc:
        raise http_error(exc) from exc
