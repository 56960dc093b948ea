"""Semi-monthly payroll period resolution."""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from attendance_payroll.calculators.types import PayPeriod
from attendance_payroll.errors import PeriodInconsistencyError

FIRST_HALF_END_DAY = 15


def month_end(day: date) -> date:
    """Last calendar day of ``day``'s month."""
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def is_month_end(day: date) -> bool:
    return day == month_end(day)


class PeriodResolver:
    """Resolves the semi-monthly window a payroll run covers.

    Windows are always ``[1st, 15th]`` or ``[16th, last day of month]``:
    - With no payroll history, the window containing ``today``.
    - Otherwise the window starting the day after the previous period-end,
      unless the previous window was only paid part-way (see ``resume``).

    A previous period-end that is neither the 15th nor a month-end means
    the ledger history is corrupt; it is raised, never guessed around.
    """

    @staticmethod
    def window_containing(day: date) -> PayPeriod:
        """Get the canonical window that contains ``day``."""
        if day.day <= FIRST_HALF_END_DAY:
            return PayPeriod(day.replace(day=1), day.replace(day=FIRST_HALF_END_DAY))
        return PayPeriod(day.replace(day=FIRST_HALF_END_DAY + 1), month_end(day))

    @classmethod
    def window_ending(cls, previous_end: date) -> PayPeriod:
        """Get the window a recorded period-end closes.

        Raises:
            PeriodInconsistencyError: If ``previous_end`` is not a boundary
        """
        if previous_end.day != FIRST_HALF_END_DAY and not is_month_end(previous_end):
            raise PeriodInconsistencyError(previous_end)
        return cls.window_containing(previous_end)

    @classmethod
    def next_after(cls, previous_end: date) -> PayPeriod:
        """Get the window that follows a recorded period-end.

        Raises:
            PeriodInconsistencyError: If ``previous_end`` is not a boundary
        """
        closed = cls.window_ending(previous_end)
        return cls.window_containing(closed.end + timedelta(days=1))

    @classmethod
    def resolve(cls, today: date, previous_end: date | None = None) -> PayPeriod:
        """Resolve the period for a run executing on ``today``."""
        if previous_end is None:
            return cls.window_containing(today)
        return cls.next_after(previous_end)

    @classmethod
    def resume(
        cls,
        today: date,
        previous_end: date | None = None,
        paid_through: date | None = None,
    ) -> tuple[PayPeriod, date]:
        """Resolve the period for a run and the first day it still owes.

        A run in the middle of a window pays only up to its run date. That
        window stays current, from the day after ``paid_through``, until a
        later run pays the rest of it.
        """
        if previous_end is not None and paid_through is not None and paid_through < previous_end:
            period = cls.window_ending(previous_end)
            return period, max(period.start, paid_through + timedelta(days=1))
        period = cls.resolve(today, previous_end)
        return period, period.start
