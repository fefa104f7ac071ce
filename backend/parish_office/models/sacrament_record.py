# parish_office/models/sacrament_record.py
"""SQLAlchemy model for the sacrament register.

One row per recorded sacrament event (baptism, confirmation, marriage or
funeral). Rows are never hard-deleted by the office workflow; they are
archived instead so that matching ignores them while the history stays
viewable.
"""

from __future__ import annotations

import enum
from datetime import date as _date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parish_office.db import Base


class SacramentType(str, enum.Enum):
    """Enumeration of sacraments kept in the register."""
    BAPTISM = "BAPTISM"
    CONFIRMATION = "CONFIRMATION"
    MARRIAGE = "MARRIAGE"
    FUNERAL = "FUNERAL"


class SacramentRecord(Base):
    __tablename__ = "sacrament_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    type: Mapped[SacramentType] = mapped_column(
        Enum(SacramentType, name="sacrament_record_type"), nullable=False, index=True
    )

    # Recipient (or deceased); for marriages this holds "Groom & Bride"
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    # When the sacrament / funeral rite was administered
    date: Mapped[_date] = mapped_column(Date, nullable=False, index=True)

    officiant: Mapped[str] = mapped_column(String(200), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # --- Baptism / confirmation ---------------------------------------- #
    father_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    mother_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    birth_date: Mapped[Optional[_date]] = mapped_column(Date, nullable=True)
    birth_place: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    baptism_date: Mapped[Optional[_date]] = mapped_column(Date, nullable=True)
    baptism_place: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    sponsors: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Register book reference (free text: "12", "IV", ...)
    register_book: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    register_page: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    register_line: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # --- Funeral --------------------------------------------------------- #
    residence: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    date_of_death: Mapped[Optional[_date]] = mapped_column(Date, nullable=True)
    cause_of_death: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    place_of_burial: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # --- Marriage -------------------------------------------------------- #
    groom_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    bride_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    groom_age: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    bride_age: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    groom_residence: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bride_residence: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    groom_nationality: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bride_nationality: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    groom_father_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    bride_father_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    groom_mother_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    bride_mother_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # --- Archive state ---------------------------------------------------- #
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    archive_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Originating service request (SACRAMENT completion or certificate link)
    request_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("service_requests.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    request = relationship("ServiceRequest", back_populates="sacrament_records")

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<SacramentRecord(id={self.id}, type={self.type}, name={self.name!r}, "
            f"date={self.date}, archived={self.is_archived})>"
        )
