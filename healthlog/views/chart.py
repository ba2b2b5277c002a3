"""
Chart and list rendering model for one day.

A day with numeric values is drawn as a line of values over time; points
that also carry medications and/or a comment get a colored marker. A day
with records but no values falls back to a list of those records.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from healthlog.domain.models import MAX_VALUE, MIN_VALUE, TIME_SLOTS, TimeSlotEntry


class MarkerColor(str, Enum):
    MEDICATION = "#10B981"  # green
    COMMENT = "#F97316"  # orange
    BOTH = "#8B5CF6"  # violet


class DayViewMode(str, Enum):
    EMPTY = "empty"
    LIST = "list"
    CHART = "chart"


Y_DOMAIN = (MIN_VALUE, MAX_VALUE)


@dataclass(frozen=True)
class ChartPoint:
    time: str
    value: int | None
    medications: list[str] = field(default_factory=list)
    comments: str = ""

    @property
    def marker(self) -> MarkerColor | None:
        return marker_color(self.value, self.medications, self.comments)

    @property
    def axis_label(self) -> str:
        return axis_label(self.time)


@dataclass(frozen=True)
class DayView:
    mode: DayViewMode
    points: list[ChartPoint] = field(default_factory=list)


def marker_color(value: int | None, medications: list[str], comments: str) -> MarkerColor | None:
    """Marker for a plotted point; points without a value are never decorated."""
    if value is None:
        return None
    if medications and comments:
        return MarkerColor.BOTH
    if medications:
        return MarkerColor.MEDICATION
    if comments:
        return MarkerColor.COMMENT
    return None


def axis_label(time: str) -> str:
    """Only full hours are labelled on the x axis."""
    return time if time.endswith(":00") else ""


def _point(time: str, entry: TimeSlotEntry) -> ChartPoint:
    return ChartPoint(
        time=time,
        value=entry.value,
        medications=list(entry.medications),
        comments=entry.comments,
    )


def build_day_view(day: Mapping[str, TimeSlotEntry] | None) -> DayView:
    """
    Lay a stored day out over the fixed slots.

    Labels outside ``TIME_SLOTS`` are not plotted; slots with nothing stored
    appear as empty points so the chart always spans the whole day.
    """
    day = day or {}
    ordered = [(label, day.get(label, TimeSlotEntry())) for label in TIME_SLOTS]
    if all(entry.is_empty for _, entry in ordered):
        return DayView(mode=DayViewMode.EMPTY)

    if not any(entry.has_value for _, entry in ordered):
        return DayView(
            mode=DayViewMode.LIST,
            points=[
                _point(time, entry)
                for time, entry in ordered
                if entry.medications or entry.comments
            ],
        )

    return DayView(mode=DayViewMode.CHART, points=[_point(time, entry) for time, entry in ordered])
