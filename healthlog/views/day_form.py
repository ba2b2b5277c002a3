"""
Per-day editing grid.

The grid always shows every slot from 08:00 to 23:30. Stored entries fill
their slot; labels the grid does not know about are left out of it.
"""

from collections.abc import Mapping

from healthlog.domain.models import TIME_SLOTS, DayRecord, TimeSlotEntry


def build_day_form(day: Mapping[str, TimeSlotEntry] | None) -> DayRecord:
    """Return a full grid for ``day``, empty entries where nothing was recorded."""
    day = day or {}
    return {label: day.get(label, TimeSlotEntry()) for label in TIME_SLOTS}


def apply_standard_pattern(form: DayRecord, pattern: Mapping[str, list[str]]) -> DayRecord:
    """
    Merge the standard pattern into a grid.

    Pattern medications are added to each slot's existing ones; nothing is
    ever removed, so re-applying an edited pattern only adds.
    """
    merged = dict(form)
    for label, meds in pattern.items():
        entry = merged.get(label)
        if entry is None:
            continue
        combined = list(dict.fromkeys([*entry.medications, *meds]))
        merged[label] = entry.model_copy(update={"medications": combined})
    return merged
