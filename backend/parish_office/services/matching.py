# parish_office/services/matching.py
"""
Request → register matching.

A certificate request never names a register row directly; it carries the
identity fields the requester typed (name, birth date, couple names, ...).
`MatchCriteria` captures those fields per sacrament type and
`find_best_match` picks the register row they describe. Both are pure so
they can be tested without a database; `find_active_record` is the thin
query wrapper the services use.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from parish_office.models.sacrament_record import SacramentRecord, SacramentType

_WS = re.compile(r"\s+")


def normalize_name(value: Optional[str]) -> str:
    """Trim, collapse inner whitespace and casefold."""
    return _WS.sub(" ", (value or "").strip()).casefold()


def locale_date(d: Optional[date]) -> Optional[str]:
    """MM/DD/YYYY, as the office writes dates in notes."""
    return d.strftime("%m/%d/%Y") if d else None


@dataclass(frozen=True)
class MatchCriteria:
    """Identity fields that single out one register entry.

    Fields left as None are not compared. Names compare after
    `normalize_name`; dates compare exactly.
    """

    sacrament_type: SacramentType
    name: Optional[str] = None
    birth_date: Optional[date] = None
    death_date: Optional[date] = None
    groom_name: Optional[str] = None
    bride_name: Optional[str] = None
    event_date: Optional[date] = None

    def matches(self, record: Any) -> bool:
        if record.type != self.sacrament_type or record.is_archived:
            return False
        if self.sacrament_type == SacramentType.MARRIAGE:
            checks = (
                (self.groom_name, record.groom_name, True),
                (self.bride_name, record.bride_name, True),
                (self.event_date, record.date, False),
            )
        else:
            checks = (
                (self.name, record.name, True),
                (self.birth_date, record.birth_date, False),
                (self.death_date, record.date_of_death, False),
            )
        for wanted, actual, is_name in checks:
            if wanted is None:
                continue
            if is_name:
                if normalize_name(wanted) != normalize_name(actual):
                    return False
            elif wanted != actual:
                return False
        return True

    def describe(self) -> str:
        """Human-readable identity used in rejection notes."""
        if self.sacrament_type == SacramentType.MARRIAGE:
            return (
                f"{self.groom_name or 'unknown groom'} and {self.bride_name or 'unknown bride'} "
                f"({locale_date(self.event_date) or 'unknown date'})"
            )
        if self.sacrament_type == SacramentType.FUNERAL:
            return (
                f"{self.name or 'unknown name'} "
                f"(date of death: {locale_date(self.death_date) or 'unknown date'})"
            )
        return f"{self.name or 'unknown name'} ({locale_date(self.birth_date) or 'birth date not provided'})"

    def rejection_note(self) -> str:
        return f"No matching {self.sacrament_type.value.lower()} record found for {self.describe()}."


def _record_sort_key(record: Any) -> tuple:
    return (record.date or date.min, record.id or 0)


def find_best_match(criteria: MatchCriteria, records: Iterable[Any]) -> Optional[Any]:
    """Return the most recent active record satisfying `criteria`, or None.

    Duplicate active rows are possible (nothing prevents them at write time);
    the latest sacrament date wins, ties broken by the newest id.
    """
    hits = [r for r in records if criteria.matches(r)]
    if not hits:
        return None
    return max(hits, key=_record_sort_key)


# ─────────────────────────────────────────────────────────────────────────────
# Criteria builders
# ─────────────────────────────────────────────────────────────────────────────

def certificate_criteria(
    sacrament_type: SacramentType,
    *,
    recipient_name: Optional[str] = None,
    recipient_birth_date: Optional[date] = None,
    recipient_death_date: Optional[date] = None,
    groom_name: Optional[str] = None,
    bride_name: Optional[str] = None,
    marriage_date: Optional[date] = None,
) -> MatchCriteria:
    if sacrament_type == SacramentType.MARRIAGE:
        return MatchCriteria(
            sacrament_type,
            groom_name=groom_name or None,
            bride_name=bride_name or None,
            event_date=marriage_date,
        )
    if sacrament_type == SacramentType.FUNERAL:
        return MatchCriteria(sacrament_type, name=recipient_name or None, death_date=recipient_death_date)
    return MatchCriteria(sacrament_type, name=recipient_name or None, birth_date=recipient_birth_date)


def criteria_from_request(request: Any, sacrament_type: Optional[SacramentType] = None) -> Optional[MatchCriteria]:
    """Criteria for a certificate request (ORM row or schema), or None if untyped."""
    sac_type = sacrament_type or getattr(request, "sacrament_type", None)
    if sac_type is None:
        return None
    return certificate_criteria(
        sac_type,
        recipient_name=getattr(request, "certificate_recipient_name", None),
        recipient_birth_date=getattr(request, "certificate_recipient_birth_date", None),
        recipient_death_date=getattr(request, "certificate_recipient_death_date", None),
        groom_name=getattr(request, "marriage_groom_name", None),
        bride_name=getattr(request, "marriage_bride_name", None),
        marriage_date=getattr(request, "marriage_date", None),
    )


def baptism_proof_criteria(candidate_name: str, birth_date: date) -> MatchCriteria:
    """Confirmation candidates must already be in the baptism register."""
    return MatchCriteria(SacramentType.BAPTISM, name=candidate_name, birth_date=birth_date)


# ─────────────────────────────────────────────────────────────────────────────
# Store access
# ─────────────────────────────────────────────────────────────────────────────

def load_candidates(db: Session, criteria: MatchCriteria) -> Sequence[SacramentRecord]:
    """Active rows of the criteria's type, narrowed by the exact-date fields."""
    stmt = select(SacramentRecord).where(
        SacramentRecord.type == criteria.sacrament_type,
        SacramentRecord.is_archived.is_(False),
    )
    if criteria.sacrament_type == SacramentType.MARRIAGE:
        if criteria.event_date is not None:
            stmt = stmt.where(SacramentRecord.date == criteria.event_date)
    else:
        if criteria.birth_date is not None:
            stmt = stmt.where(SacramentRecord.birth_date == criteria.birth_date)
        if criteria.death_date is not None:
            stmt = stmt.where(SacramentRecord.date_of_death == criteria.death_date)
    stmt = stmt.order_by(SacramentRecord.date.desc(), SacramentRecord.id.desc())
    return db.execute(stmt).scalars().all()


def find_active_record(db: Session, criteria: MatchCriteria) -> Optional[SacramentRecord]:
    return find_best_match(criteria, load_candidates(db, criteria))


# ─────────────────────────────────────────────────────────────────────────────
# Fallback identity keys (used when no record id is available)
# ─────────────────────────────────────────────────────────────────────────────

def identity_key(
    sacrament_type: Optional[SacramentType],
    names: Sequence[Optional[str]],
    when: Optional[date],
) -> str:
    """Normalized "TYPE|name[|name]|date" key; a heuristic, not a guarantee."""
    type_part = sacrament_type.value if sacrament_type else "UNKNOWN"
    name_part = "|".join(normalize_name(n) for n in names)
    return f"{type_part}|{name_part}|{when.isoformat() if when else ''}"


def request_identity_key(request: Any) -> Optional[str]:
    sac_type = getattr(request, "sacrament_type", None)
    if sac_type is None:
        return None
    if sac_type == SacramentType.MARRIAGE:
        return identity_key(
            sac_type,
            [request.marriage_groom_name, request.marriage_bride_name],
            request.marriage_date,
        )
    name = request.certificate_recipient_name or request.confirmation_candidate_name
    if sac_type == SacramentType.FUNERAL:
        return identity_key(sac_type, [name], request.certificate_recipient_death_date)
    return identity_key(
        sac_type,
        [name],
        request.certificate_recipient_birth_date or request.confirmation_candidate_birth_date,
    )


def request_matches_record(request: Any, record: Any) -> bool:
    """Does an (older) certificate request describe this register row?

    Dates on the record side are only compared when the record has them.
    """
    if getattr(request, "sacrament_type", None) != record.type:
        return False
    if record.type == SacramentType.MARRIAGE:
        return (
            normalize_name(request.marriage_groom_name) == normalize_name(record.groom_name)
            and normalize_name(request.marriage_bride_name) == normalize_name(record.bride_name)
            and request.marriage_date == record.date
        )
    if normalize_name(request.certificate_recipient_name) != normalize_name(record.name):
        return False
    if record.type == SacramentType.FUNERAL:
        return record.date_of_death is None or request.certificate_recipient_death_date == record.date_of_death
    return record.birth_date is None or request.certificate_recipient_birth_date == record.birth_date


def linked_records(records: Iterable[Any], sacrament_type: Optional[SacramentType]) -> List[Any]:
    """Active records of `sacrament_type` among those linked to a request, newest first."""
    hits = [
        r for r in records
        if not r.is_archived and (sacrament_type is None or r.type == sacrament_type)
    ]
    return sorted(hits, key=_record_sort_key, reverse=True)
