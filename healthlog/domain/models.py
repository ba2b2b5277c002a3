"""
Domain models for the health log.

A day is split into half-hour slots; each slot may carry a 0-10 severity
value, the medications taken and a free-text comment. The whole history,
the medication catalog and the standard pattern travel together as one
bundle, which is the unit persisted remotely and exported to disk.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = structlog.get_logger(__name__)

MIN_VALUE = 0
MAX_VALUE = 10
DATE_FORMAT = "%Y-%m-%d"
DEFAULT_MEDICATIONS: tuple[str, ...] = ("Medicina A", "Medicina B")


def _build_time_slots() -> list[str]:
    slots = []
    for hour in range(8, 24):
        slots.append(f"{hour:02d}:00")
        slots.append(f"{hour:02d}:30")
    return slots


# 08:00 through 23:30 inclusive
TIME_SLOTS: list[str] = _build_time_slots()


class TimeSlotEntry(BaseModel):
    """One time slot's observation. ``value=None`` means nothing was measured."""

    model_config = ConfigDict(frozen=True)

    value: int | None = Field(default=None, ge=MIN_VALUE, le=MAX_VALUE)
    medications: list[str] = Field(default_factory=list)
    comments: str = ""

    @property
    def has_value(self) -> bool:
        return self.value is not None

    @property
    def is_empty(self) -> bool:
        return self.value is None and not self.medications and not self.comments

    @classmethod
    def from_raw(cls, raw: Any) -> "TimeSlotEntry":
        """
        Build an entry from loosely-shaped persisted data.

        Stored documents may have been written by older clients or edited by
        hand, so missing fields take their defaults and unusable parts are
        dropped instead of failing the whole load.
        """
        if isinstance(raw, TimeSlotEntry):
            return raw
        if not isinstance(raw, Mapping):
            return cls()

        medications = raw.get("medications")
        comments = raw.get("comments")
        fields: dict[str, Any] = {
            "medications": [m for m in medications if isinstance(m, str)]
            if isinstance(medications, list)
            else [],
            "comments": comments if isinstance(comments, str) else "",
        }

        value = raw.get("value")
        if value is None:
            return cls(**fields)
        try:
            return cls(value=value, **fields)
        except ValidationError:
            logger.warning("slot_value_dropped", value=repr(value))
            return cls(**fields)


DayRecord = dict[str, TimeSlotEntry]
HealthArchive = dict[str, DayRecord]
StandardPattern = dict[str, list[str]]


class UserDataBundle(BaseModel):
    """The persisted unit: health archive, medication catalog and standard pattern."""

    model_config = ConfigDict(populate_by_name=True)

    health_data: HealthArchive = Field(default_factory=dict, alias="healthData")
    medications: list[str] = Field(default_factory=lambda: list(DEFAULT_MEDICATIONS))
    standard_pattern: StandardPattern = Field(default_factory=dict, alias="standardPattern")

    @classmethod
    def default(cls) -> "UserDataBundle":
        return cls()

    def to_json_dict(self) -> dict[str, Any]:
        """Return the bundle in its wire shape (camelCase keys, plain JSON types)."""
        return self.model_dump(mode="json", by_alias=True)


def normalize_day(raw: Any) -> DayRecord:
    """Normalize one stored day; a non-mapping day becomes an empty record."""
    if not isinstance(raw, Mapping):
        return {}
    return {str(label): TimeSlotEntry.from_raw(slot) for label, slot in raw.items()}


def normalize_catalog(names: Iterable[Any]) -> list[str]:
    """Deduplicate and sort medication names, dropping anything that is not a string."""
    return sorted({name for name in names if isinstance(name, str)})


def normalize_pattern(raw: Any) -> StandardPattern:
    """Normalize a stored standard pattern, pruning slots left without medications."""
    if not isinstance(raw, Mapping):
        return {}
    pattern: StandardPattern = {}
    for label, meds in raw.items():
        if isinstance(meds, list):
            pattern[str(label)] = [m for m in meds if isinstance(m, str)]
    return prune_pattern(pattern)


def prune_pattern(pattern: Mapping[str, list[str]]) -> StandardPattern:
    """Drop pattern slots whose medication list is empty."""
    return {label: list(meds) for label, meds in pattern.items() if meds}


def day_has_data(day: Mapping[str, TimeSlotEntry] | None) -> bool:
    """True if any slot in the day has a value, a medication or a comment."""
    if not day:
        return False
    return any(not entry.is_empty for entry in day.values())


def validate_date_key(value: str) -> str:
    """Ensure ``value`` is an ISO ``yyyy-MM-dd`` date string and return it."""
    try:
        parsed = datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as e:
        raise ValueError(f"Invalid date {value!r}, expected yyyy-MM-dd") from e
    if parsed.strftime(DATE_FORMAT) != value:
        raise ValueError(f"Invalid date {value!r}, expected yyyy-MM-dd")
    return value


def date_key(day: date) -> str:
    return day.strftime(DATE_FORMAT)
