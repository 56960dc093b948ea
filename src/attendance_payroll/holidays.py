"""National holiday lookup.

Payroll treats holidays as optional: when the calendar cannot be reached
the run proceeds as if the period had none.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any, Protocol

import httpx

from attendance_payroll.config import Settings

logger = logging.getLogger(__name__)

CALENDARIFIC_API_URL = "https://calendarific.com/api/v2/holidays"
NATIONAL_HOLIDAY_TYPE = "National holiday"


class HolidayCalendar(Protocol):
    """Source of holiday dates."""

    async def holidays_between(self, start: date, end: date) -> frozenset[date]:
        ...


class NullHolidayCalendar:
    """Calendar with no holidays (no provider configured)."""

    async def holidays_between(self, start: date, end: date) -> frozenset[date]:
        return frozenset()


class StaticHolidayCalendar:
    """Fixed set of holiday dates."""

    def __init__(self, dates: Iterable[date] = ()):
        self.dates = frozenset(dates)

    async def holidays_between(self, start: date, end: date) -> frozenset[date]:
        return frozenset(d for d in self.dates if start <= d <= end)


class CalendarificHolidayCalendar:
    """Holiday calendar backed by the Calendarific API.

    Results are cached per year for the lifetime of the instance.
    """

    def __init__(
        self,
        api_key: str,
        country: str,
        base_url: str = CALENDARIFIC_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.country = country
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._cache: dict[int, frozenset[date]] = {}

    async def fetch_year(self, year: int) -> frozenset[date]:
        """Fetch national holidays for one year.

        Raises:
            httpx.HTTPError: On transport failure or a non-2xx response
            ValueError: If the payload is not in the expected shape
        """
        if year in self._cache:
            return self._cache[year]

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(
                self.base_url,
                params={"api_key": self.api_key, "country": self.country, "year": year},
            )
            response.raise_for_status()
            payload = response.json()

        dates = frozenset(self._parse_holidays(payload))
        self._cache[year] = dates
        logger.debug("Loaded %d holidays for %s %d", len(dates), self.country, year)
        return dates

    @staticmethod
    def _parse_holidays(payload: dict[str, Any]) -> list[date]:
        try:
            holidays = payload["response"]["holidays"]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Unexpected holiday payload: {e}") from e

        dates = []
        for holiday in holidays:
            types = holiday.get("type") or []
            if NATIONAL_HOLIDAY_TYPE not in types:
                continue
            iso = holiday["date"]["iso"]
            dates.append(date.fromisoformat(iso[:10]))
        return dates

    async def holidays_between(self, start: date, end: date) -> frozenset[date]:
        """Holidays in ``[start, end]``; empty if the provider fails."""
        found: set[date] = set()
        for year in range(start.year, end.year + 1):
            try:
                found.update(await self.fetch_year(year))
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                logger.warning(
                    "Holiday lookup failed for %s %d, treating period as holiday-free: %s",
                    self.country,
                    year,
                    e,
                )
                return frozenset()
        return frozenset(d for d in found if start <= d <= end)


def build_holiday_calendar(settings: Settings) -> HolidayCalendar:
    """Pick the holiday calendar for the configured environment."""
    if not settings.calendarific_api_key:
        return NullHolidayCalendar()
    return CalendarificHolidayCalendar(
        api_key=settings.calendarific_api_key,
        country=settings.holiday_country,
    )
