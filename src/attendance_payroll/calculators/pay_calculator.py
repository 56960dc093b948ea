"""Pay computation for reconciled attendance."""

from __future__ import annotations

from collections.abc import Collection
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from attendance_payroll.calculators.types import DayPay, PayBreakdown, ReconciliationResult
from attendance_payroll.errors import MissingSalaryError
from attendance_payroll.models.employee import Classification


class PayCalculator:
    """Derives pay amounts from a reconciled period.

    Managerial and Supervisor staff earn their basic salary flat for the
    period. Rank & File staff are paid per attended day at
    ``basic_salary / 8`` an hour:
    - under 8 hours: hours * rate, with the shortfall recorded as deduction
    - 8 hours or more: 8 * rate, plus 1.3 * rate for each hour beyond 8
    - on a holiday the day's regular pay is doubled (overtime is not)

    Each day contributes ``max(0, daily + overtime - deduction)``.
    Amounts stay unrounded until the period totals are rounded to cents.
    """

    STANDARD_HOURS = Decimal("8")
    OVERTIME_MULTIPLIER = Decimal("1.3")
    HOLIDAY_MULTIPLIER = Decimal("2")
    OUTPUT_PRECISION = Decimal("0.01")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(PayCalculator.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @classmethod
    def require_salary(cls, basic_salary: Decimal | None, employee_number: str) -> Decimal:
        """Return the basic salary as Decimal, or raise if it is unusable."""
        if basic_salary is None:
            raise MissingSalaryError(employee_number)
        salary = Decimal(str(basic_salary))
        if salary <= 0:
            raise MissingSalaryError(employee_number)
        return salary

    @classmethod
    def hourly_rate(cls, basic_salary: Decimal) -> Decimal:
        return basic_salary / cls.STANDARD_HOURS

    @classmethod
    def daily_pay(
        cls,
        basic_salary: Decimal,
        hours: Decimal,
        work_date: date,
        is_holiday: bool = False,
    ) -> DayPay:
        """Pay figures for one attended day of an hourly employee."""
        rate = cls.hourly_rate(basic_salary)
        hours = max(Decimal("0"), hours)

        if hours < cls.STANDARD_HOURS:
            daily = rate * hours
            overtime = Decimal("0")
            deduction = rate * (cls.STANDARD_HOURS - hours)
        else:
            daily = rate * cls.STANDARD_HOURS
            overtime = rate * cls.OVERTIME_MULTIPLIER * (hours - cls.STANDARD_HOURS)
            deduction = Decimal("0")

        if is_holiday:
            daily *= cls.HOLIDAY_MULTIPLIER

        return DayPay(
            date=work_date,
            hours=hours,
            daily_pay=daily,
            overtime_pay=overtime,
            deduction=deduction,
            is_holiday=is_holiday,
        )

    @classmethod
    def compute(
        cls,
        classification: Classification | str,
        basic_salary: Decimal | None,
        reconciliation: ReconciliationResult,
        holidays: Collection[date] = frozenset(),
        employee_number: str = "",
    ) -> PayBreakdown:
        """Compute the period breakdown for one employee.

        Raises:
            MissingSalaryError: If the basic salary is missing or not positive
        """
        salary = cls.require_salary(basic_salary, employee_number)
        classification = Classification(classification)
        total_hours = reconciliation.total_hours

        if not classification.is_hourly:
            flat = cls.round_to_cents(salary)
            return PayBreakdown(
                regular_pay=flat,
                overtime_pay=Decimal("0.00"),
                deduction=Decimal("0.00"),
                final_pay=flat,
                hours_worked=total_hours,
            )

        day_pays = tuple(
            cls.daily_pay(salary, day.hours_worked, day.date, day.date in holidays)
            for day in reconciliation.attended_days
        )

        zero = Decimal("0")
        return PayBreakdown(
            regular_pay=cls.round_to_cents(sum((d.daily_pay for d in day_pays), zero)),
            overtime_pay=cls.round_to_cents(sum((d.overtime_pay for d in day_pays), zero)),
            deduction=cls.round_to_cents(sum((d.deduction for d in day_pays), zero)),
            final_pay=cls.round_to_cents(sum((d.net for d in day_pays), zero)),
            hours_worked=total_hours,
            days=day_pays,
        )
