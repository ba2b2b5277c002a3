"""Standard-pattern editing grid: medications per slot, no value or comment."""

from collections.abc import Mapping

from healthlog.domain.models import TIME_SLOTS, StandardPattern, prune_pattern


def build_pattern_form(pattern: Mapping[str, list[str]]) -> StandardPattern:
    return {label: list(pattern.get(label, [])) for label in TIME_SLOTS}


def set_slot_medications(form: StandardPattern, label: str, medications: list[str]) -> StandardPattern:
    if label not in form:
        raise ValueError(f"Unknown time slot {label!r}")
    updated = dict(form)
    updated[label] = list(dict.fromkeys(medications))
    return updated


def finalize_pattern_form(form: Mapping[str, list[str]]) -> StandardPattern:
    """The pattern to save: empty slots are dropped."""
    return prune_pattern(form)
