from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import List, Optional, Tuple

from pydantic import ValidationError

from src.core.errors import BadRequestError
from src.schemas.kpi import AnnualView, CustomRangeView, MonthlyView, QuarterlyView, View

QUARTER_MONTHS = {
    "Q1": (1, 2, 3),
    "Q2": (4, 5, 6),
    "Q3": (7, 8, 9),
    "Q4": (10, 11, 12),
}


def parse_time_window(window: str, today: Optional[date] = None) -> Tuple[date, date]:
    today = today or date.today()
    try:
        if window.endswith("d"):
            days = int(window[:-1])
            return today - timedelta(days=days), today
        if window.endswith("m"):
            months = int(window[:-1])
            return today - timedelta(days=30 * months), today
    except ValueError as exc:
        raise BadRequestError("Unsupported time window format") from exc
    raise BadRequestError("Unsupported time window format")


def quarter_for_month(month: int) -> str:
    return f"Q{(month - 1) // 3 + 1}"


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def days_in_quarter(year: int, quarter: str) -> int:
    return sum(days_in_month(year, month) for month in QUARTER_MONTHS[quarter])


def current_quarter(today: Optional[date] = None) -> str:
    return quarter_for_month((today or date.today()).month)


def current_month(today: Optional[date] = None) -> int:
    return (today or date.today()).month


def current_year(today: Optional[date] = None) -> int:
    return (today or date.today()).year


def period_bounds(view: View) -> Tuple[date, date]:
    """First and last calendar day covered by a view, both inclusive."""
    if isinstance(view, AnnualView):
        return date(view.year, 1, 1), date(view.year, 12, 31)
    if isinstance(view, QuarterlyView):
        months = QUARTER_MONTHS[view.quarter]
        return (
            date(view.year, months[0], 1),
            date(view.year, months[-1], days_in_month(view.year, months[-1])),
        )
    if isinstance(view, MonthlyView):
        return date(view.year, view.month, 1), date(
            view.year, view.month, days_in_month(view.year, view.month)
        )
    if isinstance(view, CustomRangeView):
        return view.start_date, view.end_date
    raise BadRequestError(f"Unsupported view: {view!r}")


def days_in_period(view: View) -> int:
    start, end = period_bounds(view)
    return (end - start).days + 1


def days_elapsed(view: View, today: Optional[date] = None) -> int:
    today = today or date.today()
    start, end = period_bounds(view)
    if today < start:
        return 0
    if today > end:
        return days_in_period(view)
    return (today - start).days + 1


def shift_years(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # Feb 29 into a non-leap year.
        return value.replace(year=value.year + years, day=28)


class PeriodCalendar:
    """Date-window collaborator handed to the KPI engine."""

    def days_in_period(self, view: View) -> int:
        return days_in_period(view)

    def days_elapsed(self, view: View, today: date) -> int:
        return days_elapsed(view, today)


def view_years(view: View) -> List[int]:
    start, end = period_bounds(view)
    return list(range(start.year, end.year + 1))


def build_view(
    view: str,
    year: Optional[int] = None,
    period: Optional[str] = None,
    month: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> View:
    """Build a typed view from loose dashboard parameters, defaulting to the current period."""
    today = today or date.today()
    if year is None:
        year = today.year
    if period is None:
        period = current_quarter(today)
    if month is None:
        month = current_month(today)
    try:
        if view == "annual":
            return AnnualView(year=year)
        if view == "quarterly":
            return QuarterlyView(year=year, quarter=period.upper())
        if view == "monthly":
            return MonthlyView(year=year, month=month)
        if view == "custom":
            if start_date is None or end_date is None:
                raise BadRequestError("Custom view requires start_date and end_date")
            return CustomRangeView(start_date=start_date, end_date=end_date)
    except ValidationError as exc:
        raise BadRequestError(f"Invalid {view} view parameters") from exc
    raise BadRequestError(f"Unsupported view: {view}")
