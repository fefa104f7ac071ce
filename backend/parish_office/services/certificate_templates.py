# parish_office/services/certificate_templates.py
"""
Register row → certificate HTML.

Each certificate type has its own template under
parish_office/templates/certificates/ and its own date style:

* baptism, funeral:  "1ST day of MAY 2025" (ordinal, upper-case)
* confirmation:      "1 MAY 25"            (plain day, two-digit year)
* marriage:          "1st day of May 2025" (ordinal, record casing)

Names, places and register numbers are upper-cased on every certificate
except marriage, which keeps the casing the register was typed in.
"""
from __future__ import annotations

import base64
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from parish_office.config import Settings
from parish_office.models.sacrament_record import SacramentType

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "certificates"

BLANK = "___"

MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

TEMPLATE_FILES = {
    SacramentType.BAPTISM: "baptism.html",
    SacramentType.CONFIRMATION: "confirmation.html",
    SacramentType.MARRIAGE: "marriage.html",
    SacramentType.FUNERAL: "funeral.html",
}

DateLike = Union[date, datetime, None]


# ─────────────────────────────────────────────────────────────────────────────
# Formatting
# ─────────────────────────────────────────────────────────────────────────────

def _as_date(d: DateLike) -> Optional[date]:
    if isinstance(d, datetime):
        return d.date()
    return d


def ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def ordinal_day(d: DateLike) -> str:
    """1 -> '1ST', 22 -> '22ND'."""
    d = _as_date(d)
    if not d:
        return ""
    return f"{d.day}{ordinal_suffix(d.day).upper()}"


def month_year_upper(d: DateLike) -> str:
    d = _as_date(d)
    if not d:
        return ""
    return f"{MONTHS[d.month - 1].upper()} {d.year}"


def full_date_upper(d: DateLike) -> str:
    """'MAY 1, 1995'."""
    d = _as_date(d)
    if not d:
        return ""
    return f"{MONTHS[d.month - 1].upper()} {d.day}, {d.year}"


def ordinal_date_upper(d: DateLike) -> str:
    """'1ST day of MAY 1995' (baptism and funeral certificates)."""
    d = _as_date(d)
    if not d:
        return ""
    return f"{ordinal_day(d)} day of {month_year_upper(d)}"


def short_date_upper(d: DateLike) -> str:
    """'10 JANUARY 24' (confirmation certificates)."""
    d = _as_date(d)
    if not d:
        return ""
    return f"{d.day} {MONTHS[d.month - 1].upper()} {d.year % 100:02d}"


def ordinal_date_lower(d: DateLike) -> str:
    """'10th day of January 2024' (marriage certificates)."""
    d = _as_date(d)
    if not d:
        return ""
    return f"{d.day}{ordinal_suffix(d.day)} day of {MONTHS[d.month - 1]} {d.year}"


def upper(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def register_value(value: Optional[str], *, uppercase: bool = True) -> str:
    value = (value or "").strip()
    if not value:
        return BLANK
    return value.upper() if uppercase else value


# ─────────────────────────────────────────────────────────────────────────────
# Template data
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class Letterhead:
    diocese: str
    parish_name: str
    parish_location: str
    priest_title: str
    logo_data_uri: Optional[str] = None

    @property
    def parish_place(self) -> str:
        return f"{self.parish_name}, {self.parish_location}"


def load_logo_data_uri(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    try:
        encoded = base64.b64encode(Path(path).read_bytes()).decode("ascii")
    except OSError:
        logger.warning("parish logo not readable at %s; rendering without it", path)
        return None
    return f"data:image/png;base64,{encoded}"


def letterhead_from_settings(settings: Settings) -> Letterhead:
    return Letterhead(
        diocese=settings.diocese,
        parish_name=settings.parish_name,
        parish_location=settings.parish_location,
        priest_title=settings.priest_title,
        logo_data_uri=load_logo_data_uri(settings.logo_path),
    )


@dataclass
class BaptismTemplateData:
    child_name: str
    father_name: str
    mother_name: str
    birth_date: str
    birth_place: str
    baptism_date: str
    baptism_place: str
    sponsors: str
    register_book: str
    register_page: str
    register_line: str
    priest_name: str
    issue_date: str


@dataclass
class ConfirmationTemplateData:
    confirmand_name: str
    father_name: str
    mother_name: str
    birth_date: str
    baptism_date: str
    baptism_place: str
    confirmation_date: str
    confirmation_place: str
    sponsors: str
    register_book: str
    register_page: str
    register_line: str
    minister_name: str
    issue_date: str


@dataclass
class MarriageTemplateData:
    groom_name: str
    bride_name: str
    groom_age: str
    bride_age: str
    groom_residence: str
    bride_residence: str
    groom_nationality: str
    bride_nationality: str
    groom_father_name: str
    groom_mother_name: str
    bride_father_name: str
    bride_mother_name: str
    marriage_date: str
    marriage_place: str
    witnesses: str
    register_book: str
    register_page: str
    register_line: str
    officiant_name: str
    issue_date: str


@dataclass
class FuneralTemplateData:
    deceased_name: str
    residence: str
    date_of_death: str
    cause_of_death: str
    burial_date: str
    place_of_burial: str
    register_book: str
    register_page: str
    register_line: str
    priest_name: str
    issue_date: str


def _officiant(record: Any, issued_by: Optional[str], default: str) -> str:
    return (record.officiant or issued_by or default).strip()


def build_template_data(
    record: Any,
    *,
    issued_on: DateLike,
    issued_by: Optional[str],
    letterhead: Letterhead,
):
    """Pick the template dataclass for `record.type` and fill it."""
    t = record.type
    default_priest = letterhead.priest_title

    if t == SacramentType.BAPTISM:
        return BaptismTemplateData(
            child_name=upper(record.name),
            father_name=upper(record.father_name),
            mother_name=upper(record.mother_name),
            birth_date=full_date_upper(record.birth_date),
            birth_place=upper(record.birth_place),
            baptism_date=ordinal_date_upper(record.date),
            baptism_place=upper(record.baptism_place or letterhead.parish_place),
            sponsors=upper(record.sponsors),
            register_book=register_value(record.register_book),
            register_page=register_value(record.register_page),
            register_line=register_value(record.register_line),
            priest_name=upper(_officiant(record, issued_by, default_priest)),
            issue_date=ordinal_date_upper(issued_on),
        )

    if t == SacramentType.CONFIRMATION:
        return ConfirmationTemplateData(
            confirmand_name=upper(record.name),
            father_name=upper(record.father_name),
            mother_name=upper(record.mother_name),
            birth_date=short_date_upper(record.birth_date),
            baptism_date=short_date_upper(record.baptism_date),
            baptism_place=upper(record.baptism_place),
            confirmation_date=short_date_upper(record.date),
            confirmation_place=upper(letterhead.parish_place),
            sponsors=upper(record.sponsors),
            register_book=register_value(record.register_book),
            register_page=register_value(record.register_page),
            register_line=register_value(record.register_line),
            minister_name=upper(_officiant(record, issued_by, default_priest)),
            issue_date=short_date_upper(issued_on),
        )

    if t == SacramentType.MARRIAGE:
        return MarriageTemplateData(
            groom_name=(record.groom_name or "").strip(),
            bride_name=(record.bride_name or "").strip(),
            groom_age=(record.groom_age or "").strip(),
            bride_age=(record.bride_age or "").strip(),
            groom_residence=(record.groom_residence or "").strip(),
            bride_residence=(record.bride_residence or "").strip(),
            groom_nationality=(record.groom_nationality or "").strip(),
            bride_nationality=(record.bride_nationality or "").strip(),
            groom_father_name=(record.groom_father_name or "").strip(),
            groom_mother_name=(record.groom_mother_name or "").strip(),
            bride_father_name=(record.bride_father_name or "").strip(),
            bride_mother_name=(record.bride_mother_name or "").strip(),
            marriage_date=ordinal_date_lower(record.date),
            marriage_place=letterhead.parish_place,
            witnesses=(record.sponsors or "").strip(),
            register_book=register_value(record.register_book, uppercase=False),
            register_page=register_value(record.register_page, uppercase=False),
            register_line=register_value(record.register_line, uppercase=False),
            officiant_name=_officiant(record, issued_by, default_priest),
            issue_date=ordinal_date_lower(issued_on),
        )

    if t == SacramentType.FUNERAL:
        return FuneralTemplateData(
            deceased_name=upper(record.name),
            residence=upper(record.residence),
            date_of_death=ordinal_date_upper(record.date_of_death),
            cause_of_death=upper(record.cause_of_death),
            burial_date=ordinal_date_upper(record.date),
            place_of_burial=upper(record.place_of_burial),
            register_book=register_value(record.register_book),
            register_page=register_value(record.register_page),
            register_line=register_value(record.register_line),
            priest_name=upper(_officiant(record, issued_by, default_priest)),
            issue_date=ordinal_date_upper(issued_on),
        )

    raise ValueError(f"No certificate template for {t!r}")


# ─────────────────────────────────────────────────────────────────────────────
# Rendering
# ─────────────────────────────────────────────────────────────────────────────

_env: Optional[Environment] = None


def get_environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _env


def render_certificate_html(sacrament_type: SacramentType, data: Any, letterhead: Letterhead) -> str:
    template = get_environment().get_template(TEMPLATE_FILES[sacrament_type])
    context: Dict[str, Any] = asdict(data)
    context["letterhead"] = letterhead
    return template.render(**context)
