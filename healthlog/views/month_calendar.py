"""Month calendar with per-day "has data" markers, weeks starting on Monday."""

import calendar
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date

from healthlog.domain.models import DayRecord, date_key, day_has_data

WEEK_DAYS = ["Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"]


@dataclass(frozen=True)
class CalendarDay:
    day: date
    has_data: bool
    is_today: bool
    is_selected: bool

    @property
    def key(self) -> str:
        return date_key(self.day)


@dataclass(frozen=True)
class MonthGrid:
    year: int
    month: int
    weeks: list[list[CalendarDay | None]]

    @property
    def title(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    def days(self) -> list[CalendarDay]:
        return [cell for week in self.weeks for cell in week if cell is not None]


def build_month_grid(
    year: int,
    month: int,
    archive: Mapping[str, DayRecord],
    selected: date | None = None,
    today: date | None = None,
) -> MonthGrid:
    """Lay out ``month`` as Monday-first weeks; cells outside the month are ``None``."""
    today = today or date.today()
    weeks: list[list[CalendarDay | None]] = []
    for week in calendar.Calendar(firstweekday=calendar.MONDAY).monthdatescalendar(year, month):
        weeks.append(
            [
                CalendarDay(
                    day=d,
                    has_data=day_has_data(archive.get(date_key(d))),
                    is_today=d == today,
                    is_selected=d == selected,
                )
                if d.month == month
                else None
                for d in week
            ]
        )
    return MonthGrid(year=year, month=month, weeks=weeks)


def previous_month(year: int, month: int) -> tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def next_month(year: int, month: int) -> tuple[int, int]:
    return (year + 1, 1) if month == 12 else (year, month + 1)
