# parish_office/schemas/sacrament_record.py
from __future__ import annotations

from datetime import date as _date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from parish_office.models.sacrament_record import SacramentType


# ─────────────────────────────────────────────────────────────────────────────
# Type-specific fields shared by create / update / completion payloads
# ─────────────────────────────────────────────────────────────────────────────

class _RecordFields(BaseModel):
    # Baptism / confirmation
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    birth_date: Optional[_date] = None
    birth_place: Optional[str] = None
    baptism_date: Optional[_date] = None
    baptism_place: Optional[str] = None
    sponsors: Optional[str] = None
    register_book: Optional[str] = None
    register_page: Optional[str] = None
    register_line: Optional[str] = None

    # Funeral
    residence: Optional[str] = None
    date_of_death: Optional[_date] = None
    cause_of_death: Optional[str] = None
    place_of_burial: Optional[str] = None

    # Marriage
    groom_name: Optional[str] = None
    bride_name: Optional[str] = None
    groom_age: Optional[str] = None
    bride_age: Optional[str] = None
    groom_residence: Optional[str] = None
    bride_residence: Optional[str] = None
    groom_nationality: Optional[str] = None
    bride_nationality: Optional[str] = None
    groom_father_name: Optional[str] = None
    bride_father_name: Optional[str] = None
    groom_mother_name: Optional[str] = None
    bride_mother_name: Optional[str] = None


class SacramentRecordCreate(_RecordFields):
    type: SacramentType
    date: _date
    name: Optional[str] = None  # derived from groom/bride for marriages
    officiant: str = Field(..., min_length=1)
    details: str = Field(..., min_length=1)
    request_id: Optional[int] = None

    @model_validator(mode="after")
    def _name_or_couple(self) -> "SacramentRecordCreate":
        if not (self.name or "").strip():
            if self.type == SacramentType.MARRIAGE and self.groom_name and self.bride_name:
                return self
            raise ValueError("name is required")
        return self


class SacramentRecordUpdate(_RecordFields):
    # PATCH: everything optional
    type: Optional[SacramentType] = None
    date: Optional[_date] = None
    name: Optional[str] = None
    officiant: Optional[str] = None
    details: Optional[str] = None
    request_id: Optional[int] = None


class RecordDetails(_RecordFields):
    """Register fields supplied when a SACRAMENT request is completed."""
    type: Optional[SacramentType] = None
    date: Optional[_date] = None
    name: Optional[str] = None
    officiant: Optional[str] = None
    details: Optional[str] = None


class ArchivePayload(BaseModel):
    reason: Optional[str] = None


class SacramentRecordRead(_RecordFields):
    id: int
    type: SacramentType
    name: str
    date: _date
    officiant: str
    details: str
    is_archived: bool
    archived_at: Optional[datetime] = None
    archived_by: Optional[str] = None
    archive_reason: Optional[str] = None
    request_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
