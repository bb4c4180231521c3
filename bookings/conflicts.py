from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime
from typing import Any, Iterable

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .slots import full_day_slots, validate_slots


ACTIVE_STATUSES = frozenset({"Pending", "Approved"})

DURATION_CUSTOM = "custom"
DURATION_FULL_DAY = "full-day"


def is_active_status(status: str) -> bool:
    return str(status) in ACTIVE_STATUSES


def calendar_date(value: Any) -> date_type | None:
    """
    Reduce a date, datetime or ISO string to its local calendar date.

    Aware datetimes are converted to the current time zone first, so two
    instants on the same local day compare equal.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    if isinstance(value, date_type):
        return value
    text = str(value).strip()
    parsed = parse_datetime(text)
    if parsed is not None:
        return calendar_date(parsed)
    return parse_date(text[:10])


@dataclass(frozen=True)
class BookingDraft:
    resource_key: str
    booking_date: date_type
    slots: frozenset[str]
    duration_type: str = DURATION_CUSTOM

    @classmethod
    def build(
        cls,
        resource_key: str,
        booking_date: Any,
        slots: Iterable[str] = (),
        duration_type: str = DURATION_CUSTOM,
    ) -> "BookingDraft":
        """
        Build a validated draft. The full-day mode ignores `slots` and takes the
        whole configured sequence. Raises InvalidInput for an empty or unknown
        slot set.
        """
        if duration_type == DURATION_FULL_DAY:
            chosen = list(full_day_slots())
        else:
            chosen = validate_slots(slots)
        return cls(
            resource_key=resource_key,
            booking_date=calendar_date(booking_date),
            slots=frozenset(chosen),
            duration_type=duration_type,
        )


@dataclass(frozen=True)
class ConflictEntry:
    booking_id: Any
    title: str
    department: str
    status: str
    overlapping_slots: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "title": self.title,
            "department": self.department,
            "status": self.status,
            "overlapping_slots": list(self.overlapping_slots),
        }


@dataclass(frozen=True)
class ConflictReport:
    entries: tuple[ConflictEntry, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.entries)

    @property
    def booking_ids(self) -> list:
        return [entry.booking_id for entry in self.entries]

    def to_dict(self) -> dict:
        return {
            "has_conflict": self.has_conflicts,
            "conflicts": [entry.to_dict() for entry in self.entries],
        }


def _slots_of(booking: Any) -> frozenset[str]:
    slots = getattr(booking, "selected_slots", None)
    if slots is None:
        slots = getattr(booking, "slots", ())
    return frozenset(slots or ())


def _identity_of(booking: Any) -> Any:
    pk = getattr(booking, "pk", None)
    return pk if pk is not None else getattr(booking, "id", None)


def find_conflicts(candidate: BookingDraft, existing_bookings: Iterable[Any]) -> ConflictReport:
    """
    Active bookings of the same resource and calendar day that share at least
    one slot with the candidate, in the order they were supplied.
    """
    target_date = calendar_date(candidate.booking_date)
    entries = []

    for booking in existing_bookings:
        if not is_active_status(booking.status):
            continue
        if booking.resource_key != candidate.resource_key:
            continue
        if calendar_date(booking.booking_date) != target_date:
            continue

        overlap = _slots_of(booking) & candidate.slots
        if not overlap:
            continue

        entries.append(
            ConflictEntry(
                booking_id=_identity_of(booking),
                title=getattr(booking, "event_title", "") or "",
                department=getattr(booking, "department", "") or "",
                status=str(booking.status),
                overlapping_slots=tuple(sorted(overlap)),
            )
        )

    return ConflictReport(entries=tuple(entries))
