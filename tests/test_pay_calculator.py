"""Tests for the pay calculator."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from attendance_payroll.calculators.pay_calculator import PayCalculator
from attendance_payroll.calculators.types import (
    DailyAttendance,
    DayStatus,
    PayPeriod,
    ReconciliationResult,
)
from attendance_payroll.errors import DataInconsistencyError, MissingSalaryError
from attendance_payroll.models import Classification

MAY_1 = date(2024, 5, 1)
BASIC = Decimal("8000")  # hourly rate 1000


def result_for(hours_by_day, period=PayPeriod(date(2024, 5, 1), date(2024, 5, 15))):
    days = []
    for day in period.days():
        if day in hours_by_day:
            days.append(DailyAttendance(day, DayStatus.PRESENT, Decimal(hours_by_day[day])))
        elif day.weekday() == 6:
            days.append(DailyAttendance(day, DayStatus.OFF_DUTY))
        else:
            days.append(DailyAttendance(day, DayStatus.ABSENT))
    return ReconciliationResult(period=period, days=days)


class TestDailyPay:
    def test_exactly_eight_hours_has_no_overtime(self):
        pay = PayCalculator.daily_pay(BASIC, Decimal("8"), MAY_1)

        assert pay.daily_pay == Decimal("8000")
        assert pay.overtime_pay == Decimal("0")
        assert pay.deduction == Decimal("0")

    def test_overtime_at_one_point_three(self):
        pay = PayCalculator.daily_pay(BASIC, Decimal("9"), MAY_1)

        assert pay.daily_pay == Decimal("8000")
        assert pay.overtime_pay == Decimal("1300")
        assert pay.net == Decimal("9300")

    def test_short_day_records_deduction(self):
        pay = PayCalculator.daily_pay(BASIC, Decimal("6"), MAY_1)

        assert pay.daily_pay == Decimal("6000")
        assert pay.deduction == Decimal("2000")

    def test_zero_hours_never_goes_negative(self):
        pay = PayCalculator.daily_pay(BASIC, Decimal("0"), MAY_1)

        assert pay.daily_pay == Decimal("0")
        assert pay.deduction == Decimal("8000")
        assert pay.net == Decimal("0")

    def test_holiday_doubles_regular_pay_only(self):
        pay = PayCalculator.daily_pay(BASIC, Decimal("10"), MAY_1, is_holiday=True)

        assert pay.daily_pay == Decimal("16000")
        assert pay.overtime_pay == Decimal("2600")
        assert pay.is_holiday


class TestCompute:
    def test_full_attendance_first_ten_workdays(self):
        """Ten eight-hour workdays up to Saturday May 11 pay 80,000."""
        period = PayPeriod(date(2024, 5, 1), date(2024, 5, 11))
        workdays = [d for d in period.days() if d.weekday() != 6]
        assert len(workdays) == 10

        result = result_for({d: "8" for d in workdays}, period)
        breakdown = PayCalculator.compute(Classification.RANK_AND_FILE, BASIC, result)

        assert breakdown.regular_pay == Decimal("80000.00")
        assert breakdown.overtime_pay == Decimal("0.00")
        assert breakdown.deduction == Decimal("0.00")
        assert breakdown.final_pay == Decimal("80000.00")
        assert breakdown.hours_worked == Decimal("80")
        assert len(breakdown.days) == 10

    def test_mixed_days(self):
        result = result_for({date(2024, 5, 2): "9", date(2024, 5, 3): "6", date(2024, 5, 4): "0"})
        breakdown = PayCalculator.compute("RankAndFile", BASIC, result)

        assert breakdown.regular_pay == Decimal("14000.00")
        assert breakdown.overtime_pay == Decimal("1300.00")
        assert breakdown.deduction == Decimal("10000.00")
        # 9300 + 4000 + 0 (the zero-hour day does not go negative)
        assert breakdown.final_pay == Decimal("13300.00")

    def test_holiday_is_applied_from_calendar(self):
        result = result_for({date(2024, 5, 1): "8"})
        breakdown = PayCalculator.compute(
            Classification.RANK_AND_FILE, BASIC, result, holidays={date(2024, 5, 1)}
        )
        assert breakdown.final_pay == Decimal("16000.00")

    def test_holiday_without_attendance_pays_nothing(self):
        result = result_for({})
        breakdown = PayCalculator.compute(
            Classification.RANK_AND_FILE, BASIC, result, holidays={date(2024, 5, 1)}
        )
        assert breakdown.final_pay == Decimal("0.00")

    def test_rounds_half_up_at_the_end(self):
        # 125 an hour; 0.01h of overtime is 1.625 a day, 3.25 over two days
        result = result_for({date(2024, 5, 2): "8.01", date(2024, 5, 3): "8.01"})
        breakdown = PayCalculator.compute(Classification.RANK_AND_FILE, Decimal("1000"), result)

        assert breakdown.overtime_pay == Decimal("3.25")
        assert breakdown.final_pay == Decimal("2003.25")

    @pytest.mark.parametrize("classification", [Classification.MANAGERIAL, Classification.SUPERVISOR])
    def test_flat_classifications_ignore_attendance(self, classification):
        result = result_for({date(2024, 5, 2): "12"})
        breakdown = PayCalculator.compute(classification, Decimal("30000"), result)

        assert breakdown.regular_pay == Decimal("30000.00")
        assert breakdown.final_pay == Decimal("30000.00")
        assert breakdown.overtime_pay == Decimal("0.00")
        assert breakdown.deduction == Decimal("0.00")
        assert breakdown.days == ()

    @pytest.mark.parametrize("salary", [None, Decimal("0"), Decimal("-1")])
    def test_missing_salary_raises(self, salary):
        with pytest.raises(MissingSalaryError) as exc_info:
            PayCalculator.compute(
                Classification.RANK_AND_FILE, salary, result_for({}), employee_number="E9"
            )

        assert exc_info.value.employee_number == "E9"
        assert isinstance(exc_info.value, DataInconsistencyError)


class TestRounding:
    def test_round_to_cents_half_up(self):
        assert PayCalculator.round_to_cents(Decimal("1.005")) == Decimal("1.01")
        assert PayCalculator.round_to_cents(Decimal("1.004")) == Decimal("1.00")


@given(
    st.decimals(min_value=Decimal("1"), max_value=Decimal("100000"), places=2),
    st.lists(st.decimals(min_value=Decimal("-5"), max_value=Decimal("24"), places=2), max_size=15),
)
def test_final_pay_is_never_negative(salary, hours):
    """No combination of hours produces a negative final pay."""
    hours_by_day = {MAY_1 + timedelta(days=i): h for i, h in enumerate(hours)}
    result = result_for(hours_by_day)

    breakdown = PayCalculator.compute(Classification.RANK_AND_FILE, salary, result)

    assert breakdown.final_pay >= 0
    assert all(d.net >= 0 for d in breakdown.days)
