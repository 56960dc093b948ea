"""Tests for attendance reconciliation."""

from datetime import date, time, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given
from hypothesis import strategies as st

from attendance_payroll.calculators.reconciliation import (
    AttendanceReconciler,
    compute_worked_hours,
    reconcile,
)
from attendance_payroll.calculators.types import DayStatus, PayPeriod
from attendance_payroll.errors import AttendanceDataError
from attendance_payroll.models import AttendanceRecord, LeaveRequest

WORKDAY_START = time(8, 0)
# 2024-05-01 is a Wednesday; the 5th and 12th are Sundays
FIRST_HALF_MAY = PayPeriod(date(2024, 5, 1), date(2024, 5, 15))
EMPLOYEE_ID = uuid4()


def attendance(day, time_in=time(8, 0), time_out=time(16, 0), hours=Decimal("8")):
    return AttendanceRecord(
        employee_id=EMPLOYEE_ID,
        work_date=day,
        time_in=time_in,
        time_out=time_out,
        hours_worked=hours,
    )


def leave(start, end, status="Approved"):
    return LeaveRequest(
        employee_id=EMPLOYEE_ID,
        leave_type="Vacation",
        inclusive_date=start,
        to_date=end,
        status=status,
        days_requested=(end - start).days + 1,
    )


def by_date(result):
    return {d.date: d for d in result.days}


class TestComputeWorkedHours:
    def test_same_day(self):
        assert compute_worked_hours(date(2024, 5, 1), time(8, 0), time(17, 30)) == Decimal("9.50")

    def test_overnight_rolls_into_next_day(self):
        assert compute_worked_hours(date(2024, 5, 1), time(22, 0), time(6, 0)) == Decimal("8.00")

    def test_zero_duration_rejected(self):
        with pytest.raises(AttendanceDataError) as exc_info:
            compute_worked_hours(date(2024, 5, 1), time(8, 0), time(8, 0))

        assert exc_info.value.work_date == date(2024, 5, 1)


class TestReconcile:
    """Day classification."""

    def test_every_day_of_period_is_listed_in_order(self):
        result = reconcile(FIRST_HALF_MAY, [], [], WORKDAY_START)

        assert [d.date for d in result.days] == list(FIRST_HALF_MAY.days())

    def test_empty_period_is_all_absent_except_sundays(self):
        result = reconcile(FIRST_HALF_MAY, [], [], WORKDAY_START)
        days = by_date(result)

        assert days[date(2024, 5, 5)].status == DayStatus.OFF_DUTY
        assert days[date(2024, 5, 12)].status == DayStatus.OFF_DUTY
        assert result.absence_count == 13
        assert result.total_hours == Decimal("0")

    def test_on_time_is_present(self):
        result = reconcile(FIRST_HALF_MAY, [attendance(date(2024, 5, 2))], [], WORKDAY_START)
        assert by_date(result)[date(2024, 5, 2)].status == DayStatus.PRESENT

    def test_after_start_is_late(self):
        rows = [attendance(date(2024, 5, 2), time_in=time(8, 1))]
        result = reconcile(FIRST_HALF_MAY, rows, [], WORKDAY_START)
        assert by_date(result)[date(2024, 5, 2)].status == DayStatus.LATE

    def test_late_day_still_counts_hours(self):
        rows = [attendance(date(2024, 5, 2), time_in=time(9, 0), hours=Decimal("7"))]
        result = reconcile(FIRST_HALF_MAY, rows, [], WORKDAY_START)
        assert result.total_hours == Decimal("7")

    def test_missing_time_out_is_attended_with_zero_hours(self):
        rows = [attendance(date(2024, 5, 2), time_out=None, hours=None)]
        result = reconcile(FIRST_HALF_MAY, rows, [], WORKDAY_START)
        day = by_date(result)[date(2024, 5, 2)]

        assert day.status == DayStatus.PRESENT
        assert day.hours_worked == Decimal("0")

    def test_hours_derived_from_times_when_not_stored(self):
        rows = [attendance(date(2024, 5, 2), time_out=time(18, 0), hours=None)]
        result = reconcile(FIRST_HALF_MAY, rows, [], WORKDAY_START)
        assert by_date(result)[date(2024, 5, 2)].hours_worked == Decimal("10.00")

    def test_overnight_record_rolls_over(self):
        rows = [attendance(date(2024, 5, 2), time_in=time(7, 0), time_out=time(1, 0), hours=None)]
        result = reconcile(FIRST_HALF_MAY, rows, [], WORKDAY_START)
        assert by_date(result)[date(2024, 5, 2)].hours_worked == Decimal("18.00")

    def test_identical_times_rejected(self):
        rows = [attendance(date(2024, 5, 2), time_in=time(8, 0), time_out=time(8, 0), hours=None)]
        with pytest.raises(AttendanceDataError):
            reconcile(FIRST_HALF_MAY, rows, [], WORKDAY_START)

    def test_negative_hours_clamped_with_warning(self):
        rows = [attendance(date(2024, 5, 2), hours=Decimal("-3"))]
        result = reconcile(FIRST_HALF_MAY, rows, [], WORKDAY_START)

        assert by_date(result)[date(2024, 5, 2)].hours_worked == Decimal("0")
        assert result.total_hours == Decimal("0")
        assert len(result.warnings) == 1
        assert "Negative hours" in result.warnings[0]

    def test_non_numeric_hours_rejected(self):
        rows = [attendance(date(2024, 5, 2), hours="eight")]
        with pytest.raises(AttendanceDataError):
            reconcile(FIRST_HALF_MAY, rows, [], WORKDAY_START)

    def test_cutoff_omits_future_days(self):
        result = reconcile(FIRST_HALF_MAY, [], [], WORKDAY_START, cutoff=date(2024, 5, 3))

        assert [d.date for d in result.days] == [date(2024, 5, 1), date(2024, 5, 2), date(2024, 5, 3)]
        assert result.absence_count == 3

    def test_rows_outside_period_ignored(self):
        rows = [attendance(date(2024, 4, 30)), attendance(date(2024, 5, 16))]
        result = reconcile(FIRST_HALF_MAY, rows, [], WORKDAY_START)
        assert result.total_hours == Decimal("0")


class TestSundays:
    def test_sunday_attendance_is_off_duty(self):
        rows = [attendance(date(2024, 5, 5))]
        result = reconcile(FIRST_HALF_MAY, rows, [], WORKDAY_START)
        sunday = by_date(result)[date(2024, 5, 5)]

        assert sunday.status == DayStatus.OFF_DUTY
        assert sunday.hours_worked == Decimal("0")
        assert result.total_hours == Decimal("0")

    def test_workdays_exclude_sundays(self):
        result = reconcile(FIRST_HALF_MAY, [], [], WORKDAY_START)
        assert date(2024, 5, 5) not in result.workdays
        assert len(result.workdays) == 13


class TestLeavePrecedence:
    def test_approved_leave_is_off_duty(self):
        result = reconcile(
            FIRST_HALF_MAY, [], [leave(date(2024, 5, 6), date(2024, 5, 8))], WORKDAY_START
        )
        days = by_date(result)

        for day in (date(2024, 5, 6), date(2024, 5, 7), date(2024, 5, 8)):
            assert days[day].status == DayStatus.OFF_DUTY
        assert result.absence_count == 10

    def test_leave_beats_attendance(self):
        rows = [attendance(date(2024, 5, 6))]
        result = reconcile(
            FIRST_HALF_MAY, rows, [leave(date(2024, 5, 6), date(2024, 5, 6), "Done")], WORKDAY_START
        )
        day = by_date(result)[date(2024, 5, 6)]

        assert day.status == DayStatus.OFF_DUTY
        assert result.total_hours == Decimal("0")

    @pytest.mark.parametrize("status", ["Pending", "Processing", "Rejected"])
    def test_undecided_or_rejected_leave_does_not_cover(self, status):
        result = reconcile(
            FIRST_HALF_MAY, [], [leave(date(2024, 5, 6), date(2024, 5, 6), status)], WORKDAY_START
        )
        assert by_date(result)[date(2024, 5, 6)].status == DayStatus.ABSENT


class TestAttendanceReconciler:
    """Loader against the database."""

    async def test_loads_only_the_employee_and_period(
        self, session_factory, make_employee, add_attendance, add_leave
    ):
        e1 = await make_employee("E1")
        e2 = await make_employee("E2")
        await add_attendance(e1.employee_id, [date(2024, 5, 2), date(2024, 5, 3), date(2024, 5, 20)])
        await add_attendance(e2.employee_id, [date(2024, 5, 6)])
        await add_leave(e1.employee_id, date(2024, 5, 6), date(2024, 5, 7))
        await add_leave(e1.employee_id, date(2024, 5, 9), date(2024, 5, 9), status="Rejected")

        async with session_factory() as session:
            reconciler = AttendanceReconciler(session, WORKDAY_START)
            result = await reconciler.reconcile_employee(e1.employee_id, FIRST_HALF_MAY)

        days = by_date(result)
        assert result.total_hours == Decimal("16")
        assert days[date(2024, 5, 6)].status == DayStatus.OFF_DUTY
        assert days[date(2024, 5, 9)].status == DayStatus.ABSENT
        # 13 workdays - 2 attended - 2 on leave
        assert result.absence_count == 9


@st.composite
def periods(draw):
    start = draw(st.dates(min_value=date(2020, 1, 1), max_value=date(2030, 12, 31)))
    return PayPeriod(start, start + timedelta(days=draw(st.integers(0, 30))))


@given(periods(), st.sets(st.integers(0, 30)), st.lists(st.decimals(-24, 24, places=2), max_size=31))
def test_sundays_never_absent_and_totals_never_negative(period, attended_offsets, hours):
    """Sundays are never absences, and hours never go below zero."""
    rows = []
    for i, offset in enumerate(sorted(attended_offsets)):
        day = period.start + timedelta(days=offset)
        if day > period.end:
            continue
        rows.append(attendance(day, hours=hours[i] if i < len(hours) else Decimal("8")))

    result = reconcile(period, rows, [], WORKDAY_START)

    assert result.total_hours >= 0
    for day in result.days:
        assert day.hours_worked >= 0
        if day.date.weekday() == 6:
            assert day.status == DayStatus.OFF_DUTY
    assert all(d.weekday() != 6 for d in result.workdays)
