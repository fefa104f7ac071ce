# parish_office/schemas/service_request.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from parish_office.models.sacrament_record import SacramentType
from parish_office.models.service_request import RequestCategory, RequestStatus
from parish_office.schemas.sacrament_record import RecordDetails


class _RequestFields(BaseModel):
    preferred_date: Optional[str] = None
    details: Optional[str] = None

    confirmation_candidate_name: Optional[str] = None
    confirmation_candidate_birth_date: Optional[date] = None

    funeral_deceased_name: Optional[str] = None
    funeral_residence: Optional[str] = None
    funeral_date_of_death: Optional[date] = None
    funeral_place_of_burial: Optional[str] = None

    marriage_groom_name: Optional[str] = None
    marriage_bride_name: Optional[str] = None
    marriage_date: Optional[date] = None

    certificate_recipient_name: Optional[str] = None
    certificate_recipient_birth_date: Optional[date] = None
    certificate_recipient_death_date: Optional[date] = None
    requester_relationship: Optional[str] = None
    reissue_reason: Optional[str] = None


class ServiceRequestCreate(_RequestFields):
    # Required-ness is checked by the intake service so that the caller
    # gets the office's own messages rather than a generic 422.
    category: Optional[RequestCategory] = None
    service_type: Optional[str] = None
    requester_name: Optional[str] = None
    contact_info: Optional[str] = None


class ServiceRequestRead(_RequestFields):
    id: int
    category: RequestCategory
    service_type: str
    sacrament_type: Optional[SacramentType] = None
    requester_name: str
    contact_info: str
    details: str
    status: RequestStatus
    submission_date: datetime
    confirmed_schedule: Optional[str] = None
    admin_notes: Optional[str] = None
    record_id: Optional[int] = None
    is_reissue: bool = False

    model_config = ConfigDict(from_attributes=True)


class SubmissionResult(BaseModel):
    """What the public form shows after submitting.

    Auto-rejected requests are still "submitted"; `message` carries the
    reason instead of an error.
    """
    request: ServiceRequestRead
    auto_rejected: bool
    message: str


class StatusUpdate(BaseModel):
    status: Optional[RequestStatus] = None
    confirmed_schedule: Optional[str] = None
    admin_notes: Optional[str] = None
    record_details: Optional[RecordDetails] = None
