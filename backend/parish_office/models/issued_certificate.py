# parish_office/models/issued_certificate.py
"""SQLAlchemy model for certificates released by the parish office.

A row exists as soon as the office *issues* a certificate; the PDF
payload is attached later, either generated from the register or
uploaded by staff.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parish_office.db import Base


class DeliveryMethod(str, enum.Enum):
    PICKUP = "PICKUP"
    EMAIL = "EMAIL"
    COURIER = "COURIER"


class CertificateStatus(str, enum.Enum):
    PENDING_UPLOAD = "PENDING_UPLOAD"
    UPLOADED = "UPLOADED"


class IssuedCertificate(Base):
    __tablename__ = "issued_certificates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    request_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("service_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Copied from the request's service_type, e.g. "Baptismal Certificate"
    type: Mapped[str] = mapped_column(String(120), nullable=False)
    recipient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    requester_name: Mapped[str] = mapped_column(String(200), nullable=False)

    date_issued: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    issued_by: Mapped[str] = mapped_column(String(100), nullable=False)
    delivery_method: Mapped[DeliveryMethod] = mapped_column(
        Enum(DeliveryMethod, name="delivery_method"), nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[CertificateStatus] = mapped_column(
        Enum(CertificateStatus, name="certificate_status"),
        nullable=False,
        default=CertificateStatus.PENDING_UPLOAD,
        index=True,
    )

    # --- File payload (PDF or scanned upload) --------------------------- #
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    file_data: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True, deferred=True)
    uploaded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    uploaded_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    request = relationship("ServiceRequest", back_populates="certificates", lazy="joined")

    __table_args__ = (
        # One issuance per request; reissues arrive as new requests.
        UniqueConstraint("request_id", name="uq_issued_certificates_request_id"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<IssuedCertificate(id={self.id}, request_id={self.request_id}, "
            f"type={self.type!r}, status={self.status})>"
        )
