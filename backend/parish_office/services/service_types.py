# parish_office/services/service_types.py
"""
Mapping of free-text service names onto SacramentType.

The public form sends labels such as "Baptismal Certificate" or
"Funeral Mass / Burial". This module is the only place that inspects
those strings; everything downstream works with the SacramentType tag
stored on the request.
"""
from __future__ import annotations

from typing import Optional

from parish_office.models.sacrament_record import SacramentType

# Checked in order; first hit wins.
_KEYWORDS: tuple[tuple[str, SacramentType], ...] = (
    ("baptism", SacramentType.BAPTISM),
    ("confirmation", SacramentType.CONFIRMATION),
    ("marriage", SacramentType.MARRIAGE),
    ("wedding", SacramentType.MARRIAGE),
    ("funeral", SacramentType.FUNERAL),
    ("burial", SacramentType.FUNERAL),
    ("death", SacramentType.FUNERAL),
)


def infer_sacrament_type(service_type: str | None) -> Optional[SacramentType]:
    """Return the SacramentType named inside `service_type`, or None."""
    normalized = (service_type or "").strip().lower()
    if not normalized:
        return None
    for keyword, sac_type in _KEYWORDS:
        if keyword in normalized:
            return sac_type
    return None


def coerce_sacrament_type(value: str | SacramentType) -> SacramentType:
    """Accept enum members, enum values or aliases ('funeral', 'death', ...)."""
    if isinstance(value, SacramentType):
        return value
    raw = (value or "").strip().upper()
    if raw in SacramentType.__members__:
        return SacramentType[raw]
    inferred = infer_sacrament_type(value)
    if inferred is None:
        raise ValueError(f"Unknown sacrament type: {value!r}")
    return inferred


def label_for_type(t: SacramentType | None) -> str:
    mapping = {
        SacramentType.BAPTISM: "Baptism",
        SacramentType.CONFIRMATION: "Confirmation",
        SacramentType.MARRIAGE: "Marriage",
        SacramentType.FUNERAL: "Funeral",
    }
    return mapping.get(t, "Sacrament") if t else "Sacrament"
