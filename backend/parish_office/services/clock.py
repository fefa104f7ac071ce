# parish_office/services/clock.py
"""Injectable time source; services never read the wall clock directly."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from parish_office.config import get_settings

DEFAULT_TZ = "Asia/Manila"


def _zone(name: str):
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        # Windows hosts without tzdata
        return timezone(timedelta(hours=8))


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    def __init__(self, tzname: str = DEFAULT_TZ) -> None:
        self.tz = _zone(tzname)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock frozen at a given instant; used by tests and replays."""

    def __init__(self, at: datetime, tzname: str = DEFAULT_TZ) -> None:
        self.tz = _zone(tzname)
        self._at = at if at.tzinfo else at.replace(tzinfo=self.tz)

    def now(self) -> datetime:
        return self._at

    def today(self) -> date:
        return self._at.astimezone(self.tz).date()

    def advance(self, delta: timedelta) -> None:
        self._at = self._at + delta


def parish_clock() -> SystemClock:
    """System clock in the configured parish timezone."""
    return SystemClock(get_settings().timezone)


def ensure_aware(dt: Optional[datetime], tzname: str = DEFAULT_TZ) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as parish wall time."""
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=_zone(tzname))
