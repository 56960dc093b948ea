"""In-process scheduler for the payroll run and the leave sweep."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import date, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.clock import Clock, SystemClock
from attendance_payroll.config import Settings
from attendance_payroll.notifications import build_dispatcher
from attendance_payroll.services import LeaveSweepService, PayrollRunService

logger = logging.getLogger(__name__)

PAYROLL_JOB = "payroll"
LEAVE_SWEEP_JOB = "leave_sweep"


class Scheduler:
    """Fires jobs off a local wall clock.

    - Payroll: once on each configured day of month, during the configured
      hour (default the 5th and 20th at 17:00)
    - Leave sweep: once an hour, from the configured minute

    Each job fires at most once per slot. A failing job is logged and the
    loop carries on.
    """

    def __init__(
        self,
        payroll: PayrollRunService,
        leave_sweep: LeaveSweepService,
        clock: Clock | None = None,
        payroll_days: Sequence[int] = (5, 20),
        payroll_hour: int = 17,
        leave_sweep_minute: int = 0,
        poll_interval: float = 30.0,
    ):
        self.payroll = payroll
        self.leave_sweep = leave_sweep
        self.clock = clock or SystemClock()
        self.payroll_days = tuple(payroll_days)
        self.payroll_hour = payroll_hour
        self.leave_sweep_minute = leave_sweep_minute
        self.poll_interval = poll_interval
        self._last_payroll: date | None = None
        self._last_sweep: datetime | None = None
        self._stop = asyncio.Event()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock | None = None,
    ) -> Scheduler:
        clock = clock or SystemClock(settings.org_timezone)
        return cls(
            payroll=PayrollRunService.from_settings(settings, session_factory, clock),
            leave_sweep=LeaveSweepService(session_factory, clock, build_dispatcher(settings)),
            clock=clock,
            payroll_days=settings.payroll_days,
            payroll_hour=settings.payroll_hour,
            leave_sweep_minute=settings.leave_sweep_minute,
        )

    def payroll_due(self, now: datetime) -> bool:
        return (
            now.day in self.payroll_days
            and now.hour == self.payroll_hour
            and self._last_payroll != now.date()
        )

    def sweep_due(self, now: datetime) -> bool:
        slot = now.replace(minute=0, second=0, microsecond=0)
        return now.minute >= self.leave_sweep_minute and self._last_sweep != slot

    async def tick(self) -> list[str]:
        """Run whatever is due now. Returns the names of jobs fired."""
        now = self.clock.now()
        fired: list[str] = []

        if self.sweep_due(now):
            self._last_sweep = now.replace(minute=0, second=0, microsecond=0)
            await self._run_job(LEAVE_SWEEP_JOB, self.leave_sweep.run, now.date())
            fired.append(LEAVE_SWEEP_JOB)

        if self.payroll_due(now):
            self._last_payroll = now.date()
            await self._run_job(PAYROLL_JOB, self.payroll.run, now.date())
            fired.append(PAYROLL_JOB)

        return fired

    async def _run_job(self, name: str, job: Callable[..., Awaitable[Any]], *args: Any) -> None:
        try:
            result = await job(*args)
            logger.info("Job %s completed: %s", name, result)
        except Exception:
            logger.exception("Job %s failed", name)

    async def run_forever(self) -> None:
        """Tick until ``stop()`` is called."""
        logger.info(
            "Scheduler started: payroll on days %s at %02d:00, leave sweep hourly at :%02d",
            ",".join(str(d) for d in self.payroll_days),
            self.payroll_hour,
            self.leave_sweep_minute,
        )
        self._stop.clear()
        while not self._stop.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Scheduler stopped")

    def stop(self) -> None:
        self._stop.set()
