# parish_office/schemas/certificate.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from parish_office.models.issued_certificate import CertificateStatus, DeliveryMethod


class CertificateIssue(BaseModel):
    delivery_method: Optional[DeliveryMethod] = None
    issued_by: Optional[str] = None
    notes: Optional[str] = None


class CertificateRead(BaseModel):
    # file_data is never serialized
    id: int
    request_id: int
    type: str
    recipient_name: str
    requester_name: str
    date_issued: datetime
    issued_by: str
    delivery_method: DeliveryMethod
    notes: Optional[str] = None
    status: CertificateStatus
    file_name: Optional[str] = None
    file_mime_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_at: Optional[datetime] = None
    uploaded_by: Optional[str] = None
    needs_upload_reminder: bool = False

    model_config = ConfigDict(from_attributes=True)


class CertificateLineageRead(BaseModel):
    key: str
    record_id: Optional[int] = None
    latest: CertificateRead
    latest_uploaded: Optional[CertificateRead] = None
    issue_count: int
    request_count: int
    certificates: List[CertificateRead]


class RegistryRead(BaseModel):
    pending_uploads: int
    completed_uploads: int
    total_certificates: int
    lineages: List[CertificateLineageRead]
