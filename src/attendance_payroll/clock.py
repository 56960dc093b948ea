"""Wall-clock sources pinned to the organization's timezone."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Protocol
from zoneinfo import ZoneInfo

from attendance_payroll.config import get_settings


class Clock(Protocol):
    """Supplies the current local time in the organization's timezone."""

    tz: ZoneInfo

    def now(self) -> datetime:
        """Return the current timezone-aware local datetime."""
        ...

    def today(self) -> date:
        """Return the current local calendar date."""
        ...


class SystemClock:
    """Clock backed by the system time, converted to a fixed IANA zone."""

    def __init__(self, tz_name: str | None = None):
        self.tz = ZoneInfo(tz_name or get_settings().org_timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock frozen at a given instant. Used for back-dated runs and tests."""

    def __init__(self, at: datetime | date, tz_name: str | None = None):
        self.tz = ZoneInfo(tz_name or get_settings().org_timezone)
        if not isinstance(at, datetime):
            at = datetime.combine(at, time(12, 0))
        if at.tzinfo is None:
            at = at.replace(tzinfo=self.tz)
        self._at = at.astimezone(self.tz)

    def now(self) -> datetime:
        return self._at

    def today(self) -> date:
        return self._at.date()

    def advance_to(self, at: datetime) -> None:
        """Move the frozen instant (naive values are read as local time)."""
        if at.tzinfo is None:
            at = at.replace(tzinfo=self.tz)
        self._at = at.astimezone(self.tz)
