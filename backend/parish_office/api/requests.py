# parish_office/api/requests.py
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from fastapi import status as http_status
from sqlalchemy.orm import Session

from parish_office.api.deps import get_actor, get_clock, get_db, http_error
from parish_office.models.service_request import RequestCategory, RequestStatus
from parish_office.schemas.certificate import CertificateIssue, CertificateRead
from parish_office.schemas.service_request import (
    ServiceRequestCreate,
    ServiceRequestRead,
    StatusUpdate,
    SubmissionResult,
)
from parish_office.services import certificates as cert_svc
from parish_office.services import requests as svc
from parish_office.services.clock import Clock
from parish_office.services.errors import ParishOfficeError

router = APIRouter(prefix="/requests", tags=["Requests"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=SubmissionResult, status_code=201)
def submit_request(
    payload: ServiceRequestCreate,
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    """Public intake. Auto-rejections still return 201 with the reason in `message`."""
    try:
        outcome = svc.submit_request(db, payload, clock=clock)
    except ParishOfficeError as exc:
        raise http_error(exc) from exc
    return SubmissionResult(
        request=ServiceRequestRead.model_validate(outcome.request),
        auto_rejected=outcome.auto_rejected,
        message=outcome.message,
    )


@router.get("/", response_model=List[ServiceRequestRead])
def list_requests(
    status: Optional[RequestStatus] = None,
    category: Optional[RequestCategory] = None,
    skip: int = 0,
    limit: int = 200,
    db: Session = Depends(get_db),
):
    return svc.list_requests(db, status=status, category=category, skip=skip, limit=limit)


@router.get("/{request_id}", response_model=ServiceRequestRead)
def get_request(request_id: int, db: Session = Depends(get_db)):
    try:
        return svc.get_request(db, request_id)
    except ParishOfficeError as exc:
        raise http_error(exc) from exc


@router.patch("/{request_id}", response_model=ServiceRequestRead)
def update_request(
    request_id: int,
    payload: StatusUpdate,
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    """Status transitions (completion may carry `record_details`), schedule and notes."""
    try:
        return svc.update_status(
            db,
            request_id,
            status=payload.status,
            confirmed_schedule=payload.confirmed_schedule,
            admin_notes=payload.admin_notes,
            record_details=payload.record_details,
            clock=clock,
        )
    except ParishOfficeError as exc:
        raise http_error(exc) from exc


@router.delete("/{request_id}", status_code=http_status.HTTP_204_NO_CONTENT)
def delete_request(request_id: int, db: Session = Depends(get_db)):
    try:
        svc.delete_request(db, request_id)
    except ParishOfficeError as exc:
        raise http_error(exc) from exc
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)


@router.post("/{request_id}/issue", response_model=CertificateRead, status_code=201)
def issue_certificate(
    request_id: int,
    payload: CertificateIssue,
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    try:
        cert = cert_svc.issue_certificate(
            db,
            request_id,
            delivery_method=payload.delivery_method,
            issued_by=payload.issued_by or actor,
            notes=payload.notes,
            clock=clock,
        )
    except ParishOfficeError as exc:
        raise http_error(exc) from exc
    return cert_svc.to_read(cert)
