from __future__ import annotations

from functools import lru_cache
from typing import Iterable

from django.conf import settings


SLOT_MINUTES = 30


class InvalidInput(ValueError):
    """Raised when a slot set is empty or contains values outside the vocabulary."""


def _to_minutes(value: str) -> int:
    try:
        hour_str, minute_str = value.split(":")
        hour, minute = int(hour_str), int(minute_str)
    except (AttributeError, ValueError) as exc:
        raise InvalidInput(f"Invalid time value: {value!r}. Expected HH:MM.") from exc
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidInput(f"Invalid time value: {value!r}. Expected HH:MM.")
    return hour * 60 + minute


def _from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def build_slot_sequence(day_start: str, day_end: str, break_start: str, break_end: str) -> tuple[str, ...]:
    """
    Discretize a business day into half-hour slots, leaving out the break.
    A slot belongs to the break when it starts inside [break_start, break_end).
    """
    start, end = _to_minutes(day_start), _to_minutes(day_end)
    pause_start, pause_end = _to_minutes(break_start), _to_minutes(break_end)
    return tuple(
        _from_minutes(minute)
        for minute in range(start, end, SLOT_MINUTES)
        if not (pause_start <= minute < pause_end)
    )


@lru_cache(maxsize=1)
def full_day_slots() -> tuple[str, ...]:
    """
    The fixed, ordered slot vocabulary for a business day.
    """
    return build_slot_sequence(
        getattr(settings, "BOOKING_DAY_START", "09:00"),
        getattr(settings, "BOOKING_DAY_END", "17:00"),
        getattr(settings, "BOOKING_BREAK_START", "13:00"),
        getattr(settings, "BOOKING_BREAK_END", "14:00"),
    )


def add_slot_duration(value: str) -> str:
    """
    "HH:MM" plus one slot length, rolling over the hour ("16:30" -> "17:00").
    """
    return _from_minutes(_to_minutes(value) + SLOT_MINUTES)


def sort_slots(slots: Iterable[str]) -> list[str]:
    return sorted(set(slots))


def toggle_slot(current: Iterable[str], slot: str) -> list[str]:
    """
    Add the slot if absent, remove it if present. Always returns a sorted list.
    """
    selected = set(current)
    if slot in selected:
        selected.remove(slot)
    else:
        selected.add(slot)
    return sorted(selected)


def validate_slots(slots: Iterable[str]) -> list[str]:
    """
    Return the sorted, de-duplicated slot list or raise InvalidInput.
    """
    selected = sort_slots(slots)
    if not selected:
        raise InvalidInput("Select at least one time slot.")

    vocabulary = set(full_day_slots())
    unknown = [slot for slot in selected if slot not in vocabulary]
    if unknown:
        raise InvalidInput(f"Unknown time slot(s): {', '.join(str(s) for s in unknown)}.")
    return selected


def slot_range_label(slots: Iterable[str]) -> tuple[str, str]:
    selected = sort_slots(slots)
    if not selected:
        raise InvalidInput("Cannot label an empty slot set.")
    return selected[0], add_slot_duration(selected[-1])


def slot_choices() -> list[tuple[str, str]]:
    return [(slot, f"{slot}–{add_slot_duration(slot)}") for slot in full_day_slots()]


def format_slots(slots: Iterable[str], duration_type: str = "custom") -> str:
    """
    Display string for a booking's time range.
    """
    if duration_type == "full-day":
        day = full_day_slots()
        return f"Full Day ({day[0]} - {add_slot_duration(day[-1])})"

    selected = sort_slots(slots)
    if not selected:
        return "—"
    start, end = slot_range_label(selected)
    if len(selected) == 1:
        return f"{start} - {end}"
    return f"{start} - {end} ({len(selected)} slots)"
