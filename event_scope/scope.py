"""Resolve requested year/month/day components into an archive scope."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple, Union

from event_scope.logger import log_with_context

logger = logging.getLogger(__name__)


class InvalidDate(ValueError):
    """The requested components do not form a real calendar date."""

    def __init__(self, year: Optional[int], month: Optional[int], day: Optional[int]) -> None:
        self.year = year
        self.month = month
        self.day = day
        super().__init__(f"Invalid date: year={year} month={month} day={day}")


@dataclass(frozen=True)
class DateComponents:
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None

    @classmethod
    def from_raw(
        cls,
        year: Optional[int] = None,
        month: Optional[int] = None,
        day: Optional[int] = None,
    ) -> "DateComponents":
        # Route variables use 0 for "not set".
        return cls(year=year or None, month=month or None, day=day or None)

    def effective(self) -> "DateComponents":
        """Drop a month without a year and a day without a month."""
        month = self.month if self.year is not None else None
        day = self.day if month is not None else None
        return DateComponents(year=self.year, month=month, day=day)


@dataclass(frozen=True)
class ExactDay:
    date: date


@dataclass(frozen=True)
class Month:
    start: date
    end: date


@dataclass(frozen=True)
class Year:
    start: date
    end: date


@dataclass(frozen=True)
class DefaultUpcoming:
    today: date


ResolvedScope = Union[ExactDay, Month, Year, DefaultUpcoming]


@dataclass(frozen=True)
class ResolvedContext:
    """Effective year/month/day of a request, for breadcrumbs and headings."""

    year: int
    month: int
    day: int

    @classmethod
    def from_date(cls, value: date) -> "ResolvedContext":
        return cls(year=value.year, month=value.month, day=value.day)


def _make_date(components: DateComponents, year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except (ValueError, OverflowError) as exc:
        raise InvalidDate(components.year, components.month, components.day) from exc


def _month_bounds(components: DateComponents, year: int, month: int) -> Tuple[date, date]:
    start = _make_date(components, year, month, 1)
    _, days_in_month = calendar.monthrange(year, month)
    return start, start.replace(day=days_in_month)


def resolve(
    year: Optional[int] = None,
    month: Optional[int] = None,
    day: Optional[int] = None,
    *,
    today: Optional[date] = None,
) -> Tuple[ResolvedScope, ResolvedContext]:
    """Pick the archive mode for the given components.

    Priority is exact day, then month, then year, then the default upcoming
    listing. A day without a month, or a month without a year, is ignored.
    Raises :class:`InvalidDate` when the components cannot form a date.
    """

    today = today or date.today()
    components = DateComponents.from_raw(year, month, day)

    if components.day is not None and components.month is None:
        log_with_context(logger, "warning", "Ignoring day without month", day=components.day)
    if components.month is not None and components.year is None:
        log_with_context(logger, "warning", "Ignoring month without year", month=components.month)
    components = components.effective()

    scope: ResolvedScope
    if components.year is None:
        scope = DefaultUpcoming(today=today)
        context = ResolvedContext.from_date(today)
    elif components.month is None:
        start = _make_date(components, components.year, 1, 1)
        scope = Year(start=start, end=start.replace(month=12, day=31))
        context = ResolvedContext.from_date(start)
    elif components.day is None:
        start, end = _month_bounds(components, components.year, components.month)
        scope = Month(start=start, end=end)
        context = ResolvedContext.from_date(start)
    else:
        target = _make_date(components, components.year, components.month, components.day)
        scope = ExactDay(date=target)
        context = ResolvedContext.from_date(target)

    log_with_context(logger, "debug", "Resolved archive scope", scope=type(scope).__name__, context=context)
    return scope, context


__all__ = [
    "DateComponents",
    "DefaultUpcoming",
    "ExactDay",
    "InvalidDate",
    "Month",
    "ResolvedContext",
    "ResolvedScope",
    "Year",
    "resolve",
]
