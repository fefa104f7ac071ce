# parish_office/models/service_request.py
"""SQLAlchemy model for requests submitted through the public site."""

from __future__ import annotations

import enum
from datetime import date as _date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parish_office.db import Base
from parish_office.models.sacrament_record import SacramentType


class RequestCategory(str, enum.Enum):
    SACRAMENT = "SACRAMENT"
    CERTIFICATE = "CERTIFICATE"


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = frozenset({RequestStatus.COMPLETED, RequestStatus.REJECTED})


class ServiceRequest(Base):
    __tablename__ = "service_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    category: Mapped[RequestCategory] = mapped_column(
        Enum(RequestCategory, name="request_category"), nullable=False, index=True
    )

    # Free text as typed/selected on the public form, e.g. "Baptismal Certificate"
    service_type: Mapped[str] = mapped_column(String(120), nullable=False)

    # Normalized sub-type tag derived from service_type at submission time
    sacrament_type: Mapped[Optional[SacramentType]] = mapped_column(
        Enum(SacramentType, name="sacrament_record_type"), nullable=True, index=True
    )

    requester_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_info: Mapped[str] = mapped_column(String(200), nullable=False)
    preferred_date: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Confirmation (sacrament)
    confirmation_candidate_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    confirmation_candidate_birth_date: Mapped[Optional[_date]] = mapped_column(Date, nullable=True)

    # Funeral (sacrament)
    funeral_deceased_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    funeral_residence: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    funeral_date_of_death: Mapped[Optional[_date]] = mapped_column(Date, nullable=True)
    funeral_place_of_burial: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Marriage (sacrament or certificate)
    marriage_groom_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    marriage_bride_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    marriage_date: Mapped[Optional[_date]] = mapped_column(Date, nullable=True)

    # Certificate
    certificate_recipient_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    certificate_recipient_birth_date: Mapped[Optional[_date]] = mapped_column(Date, nullable=True)
    certificate_recipient_death_date: Mapped[Optional[_date]] = mapped_column(Date, nullable=True)
    requester_relationship: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reissue_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_reissue: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, name="request_status"),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )
    submission_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    confirmed_schedule: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Matched register row. Deliberately not a foreign key: records point back
    # at requests, and the match is re-derivable from the identity fields.
    record_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    # --- Relationships --------------------------------------------------- #
    sacrament_records = relationship(
        "SacramentRecord",
        back_populates="request",
        lazy="selectin",
        passive_deletes=True,
    )
    certificates = relationship(
        "IssuedCertificate",
        back_populates="request",
        lazy="selectin",
        passive_deletes=True,
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<ServiceRequest(id={self.id}, category={self.category}, "
            f"service_type={self.service_type!r}, status={self.status})>"
        )
