"""Type definitions for the reconciliation and pay pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterator


class DayStatus(str, Enum):
    """Reconciled status of one calendar day."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    OFF_DUTY = "off-duty"

    @property
    def attended(self) -> bool:
        return self in (DayStatus.PRESENT, DayStatus.LATE)


@dataclass(frozen=True)
class PayPeriod:
    """Semi-monthly payroll window, inclusive on both ends."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Period end {self.end} is before start {self.start}")

    def days(self) -> Iterator[date]:
        """Iterate every calendar day in the period."""
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def label(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


@dataclass(frozen=True)
class DailyAttendance:
    """One reconciled day."""

    date: date
    status: DayStatus
    hours_worked: Decimal = Decimal("0")
    time_in: time | None = None
    time_out: time | None = None

    @property
    def is_sunday(self) -> bool:
        return self.date.weekday() == 6


@dataclass
class ReconciliationResult:
    """Result of reconciling one employee's attendance for a period."""

    period: PayPeriod
    days: list[DailyAttendance]
    warnings: list[str] = field(default_factory=list)

    @property
    def absence_count(self) -> int:
        return sum(1 for d in self.days if d.status == DayStatus.ABSENT)

    @property
    def total_hours(self) -> Decimal:
        return sum((d.hours_worked for d in self.days if d.status.attended), Decimal("0"))

    @property
    def attended_days(self) -> list[DailyAttendance]:
        return [d for d in self.days if d.status.attended]

    @property
    def workdays(self) -> list[date]:
        """Days that count for attendance (everything but Sundays)."""
        return [d.date for d in self.days if not d.is_sunday]


@dataclass(frozen=True)
class DayPay:
    """Pay figures for a single attended day."""

    date: date
    hours: Decimal
    daily_pay: Decimal
    overtime_pay: Decimal
    deduction: Decimal
    is_holiday: bool = False

    @property
    def net(self) -> Decimal:
        """Day's contribution to final pay, never negative."""
        return max(Decimal("0"), self.daily_pay + self.overtime_pay - self.deduction)


@dataclass(frozen=True)
class PayBreakdown:
    """Computed pay for one employee and one period."""

    regular_pay: Decimal
    overtime_pay: Decimal
    deduction: Decimal
    final_pay: Decimal
    hours_worked: Decimal
    days: tuple[DayPay, ...] = ()
