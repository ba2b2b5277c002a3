"""Tests for the presentation helpers: calendar, day grid, chart and pattern grid."""

from datetime import date

import pytest

from healthlog.domain.models import TIME_SLOTS, TimeSlotEntry
from healthlog.views.chart import (
    DayViewMode,
    MarkerColor,
    axis_label,
    build_day_view,
    marker_color,
)
from healthlog.views.day_form import apply_standard_pattern, build_day_form
from healthlog.views.month_calendar import build_month_grid, next_month, previous_month
from healthlog.views.pattern_form import (
    build_pattern_form,
    finalize_pattern_form,
    set_slot_medications,
)


class TestChart:
    @pytest.mark.parametrize(
        "value,medications,comments,expected",
        [
            (7, ["Medicina A"], "", MarkerColor.MEDICATION),
            (7, ["Medicina A"], "headache", MarkerColor.BOTH),
            (3, [], "headache", MarkerColor.COMMENT),
            (3, [], "", None),
            (None, ["Medicina A"], "headache", None),
        ],
    )
    def test_marker_color_rule(
        self, value: int | None, medications: list[str], comments: str, expected: MarkerColor | None
    ) -> None:
        assert marker_color(value, medications, comments) == expected

    def test_marker_hex_values(self) -> None:
        assert MarkerColor.MEDICATION.value == "#10B981"
        assert MarkerColor.COMMENT.value == "#F97316"
        assert MarkerColor.BOTH.value == "#8B5CF6"

    def test_empty_day(self) -> None:
        assert build_day_view(None).mode is DayViewMode.EMPTY
        assert build_day_view({"08:00": TimeSlotEntry()}).mode is DayViewMode.EMPTY

    def test_list_fallback_without_values(self) -> None:
        view = build_day_view(
            {
                "12:00": TimeSlotEntry(comments="nausea"),
                "08:00": TimeSlotEntry(medications=["Medicina A"]),
                "09:00": TimeSlotEntry(),
            }
        )

        assert view.mode is DayViewMode.LIST
        assert [p.time for p in view.points] == ["08:00", "12:00"]

    def test_chart_keeps_all_slots_in_time_order(self) -> None:
        view = build_day_view(
            {
                "09:30": TimeSlotEntry(value=4, comments="better"),
                "08:00": TimeSlotEntry(value=7, medications=["Medicina A"]),
                "09:00": TimeSlotEntry(),
            }
        )

        assert view.mode is DayViewMode.CHART
        assert [p.time for p in view.points] == TIME_SLOTS
        assert [p.value for p in view.points[:4]] == [7, None, None, 4]
        assert [p.marker for p in view.points[:4]] == [
            MarkerColor.MEDICATION,
            None,
            None,
            MarkerColor.COMMENT,
        ]
        assert all(p.value is None for p in view.points[4:])

    def test_unknown_labels_are_not_plotted(self) -> None:
        view = build_day_view(
            {
                "7:00": TimeSlotEntry(value=9),
                "23:30": TimeSlotEntry(value=2),
            }
        )

        assert view.mode is DayViewMode.CHART
        assert "7:00" not in [p.time for p in view.points]
        assert view.points[-1].time == "23:30"
        assert [p.value for p in view.points if p.value is not None] == [2]

    def test_day_with_only_unknown_labels_is_empty(self) -> None:
        assert build_day_view({"07:00": TimeSlotEntry(value=9)}).mode is DayViewMode.EMPTY

    def test_axis_labels_only_full_hours(self) -> None:
        assert axis_label("08:00") == "08:00"
        assert axis_label("08:30") == ""


class TestDayForm:
    def test_full_grid_overlays_known_slots(self) -> None:
        form = build_day_form(
            {"08:30": TimeSlotEntry(value=2), "07:00": TimeSlotEntry(value=9)}
        )

        assert list(form) == TIME_SLOTS
        assert form["08:30"].value == 2
        assert "07:00" not in form
        assert form["08:00"].is_empty

    def test_apply_pattern_unions_without_removing(self) -> None:
        form = build_day_form(
            {"08:00": TimeSlotEntry(value=5, medications=["B", "A"], comments="note")}
        )

        merged = apply_standard_pattern(form, {"08:00": ["A", "C"], "09:00": ["D"], "06:00": ["X"]})

        assert merged["08:00"] == TimeSlotEntry(value=5, medications=["B", "A", "C"], comments="note")
        assert merged["09:00"].medications == ["D"]
        assert "06:00" not in merged
        assert form["08:00"].medications == ["B", "A"]

    def test_reapplying_pattern_is_stable(self) -> None:
        pattern = {"08:00": ["A"]}
        once = apply_standard_pattern(build_day_form(None), pattern)

        assert apply_standard_pattern(once, pattern) == once


class TestPatternForm:
    def test_round_trip_prunes_empty_slots(self) -> None:
        form = build_pattern_form({"08:00": ["A"]})
        assert list(form) == TIME_SLOTS
        assert form["08:30"] == []

        form = set_slot_medications(form, "09:00", ["B", "B", "C"])
        form = set_slot_medications(form, "08:00", [])

        assert finalize_pattern_form(form) == {"09:00": ["B", "C"]}

    def test_unknown_slot_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown time slot"):
            set_slot_medications(build_pattern_form({}), "07:00", ["A"])


class TestMonthCalendar:
    def test_june_2024_layout(self) -> None:
        archive = {
            "2024-06-01": {"08:00": TimeSlotEntry(value=7)},
            "2024-06-02": {"08:00": TimeSlotEntry()},
        }

        grid = build_month_grid(
            2024, 6, archive, selected=date(2024, 6, 2), today=date(2024, 6, 15)
        )

        assert grid.title == "June 2024"
        # 1 June 2024 is a Saturday: five leading blanks in a Monday-first week
        assert grid.weeks[0][:5] == [None] * 5
        days = grid.days()
        assert len(days) == 30
        by_key = {d.key: d for d in days}
        assert by_key["2024-06-01"].has_data
        assert not by_key["2024-06-02"].has_data
        assert by_key["2024-06-02"].is_selected
        assert by_key["2024-06-15"].is_today
        assert all(len(week) == 7 for week in grid.weeks)

    def test_month_navigation_wraps_years(self) -> None:
        assert previous_month(2024, 1) == (2023, 12)
        assert next_month(2024, 12) == (2025, 1)
        assert next_month(2024, 6) == (2024, 7)
