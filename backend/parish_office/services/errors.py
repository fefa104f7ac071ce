# parish_office/services/errors.py
"""Exceptions raised by the service layer.

Routers translate these into HTTP responses (see parish_office/api/deps.py);
services never raise HTTPException themselves.
"""
from __future__ import annotations

from typing import Optional

from parish_office.models.sacrament_record import SacramentType


class ParishOfficeError(Exception):
    """Base class for every expected, user-facing failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ─────────────────────────────────────────────────────────────────────────────
# Input validation (nothing is persisted)
# ─────────────────────────────────────────────────────────────────────────────

class ValidationError(ParishOfficeError):
    pass


class InvalidContact(ValidationError):
    def __init__(self, message: str = "Please provide a valid email address or mobile number (09XXXXXXXXX or +639XXXXXXXXX).") -> None:
        super().__init__(message)


class ReissueReasonRequired(ValidationError):
    def __init__(self, message: str = "A reason is required when requesting another copy of this certificate.") -> None:
        super().__init__(message)


class InvalidBirthDate(ValidationError):
    def __init__(self, message: str = "Birth date cannot be later than the sacrament date.") -> None:
        super().__init__(message)


class InvalidStatusTransition(ValidationError):
    pass


# ─────────────────────────────────────────────────────────────────────────────
# Lookups
# ─────────────────────────────────────────────────────────────────────────────

class NotFound(ParishOfficeError):
    def __init__(self, entity: str, entity_id: object = None) -> None:
        msg = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(msg)
        self.entity = entity
        self.entity_id = entity_id


class FileNotAvailable(ParishOfficeError):
    def __init__(self, message: str = "Certificate file not available") -> None:
        super().__init__(message)


# ─────────────────────────────────────────────────────────────────────────────
# Business preconditions (state conflicts)
# ─────────────────────────────────────────────────────────────────────────────

class ConflictError(ParishOfficeError):
    pass


class TerminalStateViolation(ConflictError):
    def __init__(self, status: str) -> None:
        label = str(getattr(status, "value", status)).lower()
        super().__init__(f"{label.capitalize()} requests cannot be reopened.")
        self.status = status


class RecordAlreadyLinked(ConflictError):
    def __init__(self, message: str = "A sacrament record is already linked to this request. Please edit the record instead of completing again.") -> None:
        super().__init__(message)


class AlreadyIssued(ConflictError):
    def __init__(self, message: str = "Certificate already issued for this request") -> None:
        super().__init__(message)


class NoMatchingRecord(ConflictError):
    def __init__(self, message: str = "No sacrament record found for this certificate request") -> None:
        super().__init__(message)


_NO_RECORD_GUIDANCE = {
    SacramentType.BAPTISM: (
        "Cannot generate: no baptism record is linked to this certificate. "
        "Please link/create the baptism record for this person and retry."
    ),
    SacramentType.CONFIRMATION: (
        "Cannot generate: no confirmation record is linked to this certificate. "
        "Please complete the confirmation record and retry."
    ),
    SacramentType.MARRIAGE: (
        "Cannot generate: no marriage record is linked to this certificate. "
        "Please link/create the marriage record for this couple and retry."
    ),
    SacramentType.FUNERAL: (
        "Cannot generate: no funeral record is linked to this certificate. "
        "Please link/create the funeral record for the deceased and retry."
    ),
}


class NoRecordLinked(ConflictError):
    """Generation found no active register entry for the certificate."""

    def __init__(self, sacrament_type: SacramentType) -> None:
        super().__init__(f"No {sacrament_type.value.lower()} record linked to this certificate.")
        self.sacrament_type = sacrament_type

    @property
    def guidance(self) -> str:
        return _NO_RECORD_GUIDANCE[self.sacrament_type]


class CertificateRenderError(ParishOfficeError):
    def __init__(self, message: str = "Unable to generate certificate right now. Please verify the linked sacrament record and try again.", cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
