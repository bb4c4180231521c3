from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_type

from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from .conflicts import BookingDraft, ConflictReport, find_conflicts
from .emails import BookingEmailPayload, send_booking_status_email
from .models import Booking, BookingStatus, DurationType, Resource


logger = logging.getLogger(__name__)

REASON_REQUIRED_STATUSES = (BookingStatus.REJECTED, BookingStatus.CANCELLED)


class BookingError(Exception):
    """Base error type for booking domain errors."""


class BookingConflictError(BookingError):
    """Raised when the requested slots overlap an active booking."""

    def __init__(self, report: ConflictReport, message: str = "The selected slots are already booked."):
        super().__init__(message)
        self.report = report


class PastBookingError(BookingError):
    """Raised when attempting to book a date that already passed."""


class InvalidTransitionError(BookingError):
    """Raised when a status change is not allowed by the booking lifecycle."""


class ReasonRequiredError(BookingError):
    """Raised when rejecting or cancelling without a reason."""


@dataclass(frozen=True)
class BookingInput:
    resource_id: int
    booking_date: date_type
    selected_slots: tuple[str, ...] = ()
    duration_type: str = DurationType.CUSTOM
    event_title: str = ""
    event_description: str = ""
    attendees: int = 0
    department_category: str = ""
    department: str = ""
    faculty_incharge: str = ""
    contact_number: str = ""
    contact_email: str = ""


def active_bookings_for(key: str, booking_date: date_type | None = None):
    """
    Pending/Approved bookings of one resource, oldest first so conflict
    reports come out in a stable order.
    """
    qs = Booking.objects.active().for_resource_key(key).select_related("resource")
    if booking_date is not None:
        qs = qs.filter(booking_date=booking_date)
    return qs.order_by("created_at", "id")


def check_conflicts(draft: BookingDraft, *, exclude_booking_id: int | None = None) -> ConflictReport:
    """
    Re-run the conflict check for a draft against a fresh snapshot.
    Call it whenever the draft's resource, date or slots change.
    """
    snapshot = active_bookings_for(draft.resource_key, draft.booking_date)
    if exclude_booking_id is not None:
        snapshot = snapshot.exclude(id=exclude_booking_id)
    return find_conflicts(draft, list(snapshot))


def _validate_not_past(booking_date: date_type) -> None:
    if booking_date < timezone.localdate():
        raise PastBookingError("You cannot book a date in the past.")


def create_booking(*, user, data: BookingInput) -> Booking:
    """
    Create a Pending booking:
    - Validates the slot set (InvalidInput) and rejects past dates.
    - Locks the Resource row so concurrent requests for it run one at a time.
    - Re-checks conflicts in-transaction before inserting.
    """
    _validate_not_past(data.booking_date)

    with transaction.atomic():
        resource = Resource.objects.select_for_update().get(id=data.resource_id, is_active=True)
        draft = BookingDraft.build(resource.key, data.booking_date, data.selected_slots, data.duration_type)

        report = check_conflicts(draft)
        if report:
            logger.info(
                "Booking conflict on %s %s: %s",
                draft.resource_key,
                draft.booking_date,
                report.booking_ids,
            )
            raise BookingConflictError(report)

        booking = Booking.objects.create(
            resource=resource,
            booking_date=draft.booking_date,
            selected_slots=sorted(draft.slots),
            duration_type=draft.duration_type,
            status=BookingStatus.PENDING,
            event_title=data.event_title,
            event_description=data.event_description,
            attendees=data.attendees,
            department_category=data.department_category,
            department=data.department,
            faculty_incharge=data.faculty_incharge,
            contact_number=data.contact_number,
            contact_email=data.contact_email or getattr(user, "email", "") or "",
            requester=user,
        )

    logger.info("Booking %s created for %s on %s", booking.id, resource.key, booking.booking_date)
    return booking


def _notify_requester(booking: Booking, new_status: str, reason: str) -> None:
    send_booking_status_email(BookingEmailPayload.from_booking(booking, new_status, reason))


def transition_booking(*, admin, booking_id: int, new_status: str, reason: str = "") -> Booking:
    """
    Move a booking along its lifecycle (administrators only).
    Rejecting and cancelling require a reason; the requester is emailed once
    the transaction commits.
    """
    if not getattr(admin, "is_staff", False):
        raise PermissionDenied("Only administrators can change a booking's status.")

    reason = (reason or "").strip()
    if new_status in REASON_REQUIRED_STATUSES and not reason:
        raise ReasonRequiredError(f"A reason is required to mark a booking as {new_status}.")

    with transaction.atomic():
        booking = (
            Booking.objects.select_for_update()
            .select_related("resource", "requester")
            .get(id=booking_id)
        )

        if not booking.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"A {booking.status} booking cannot be marked as {new_status}."
            )

        previous = booking.status
        booking.status = new_status
        booking.status_reason = reason
        booking.reviewed_at = timezone.now()
        booking.reviewed_by = admin
        booking.save(update_fields=["status", "status_reason", "reviewed_at", "reviewed_by", "updated_at"])

        transaction.on_commit(lambda: _notify_requester(booking, new_status, reason))

    logger.info("Booking %s moved from %s to %s by %s", booking.id, previous, new_status, admin)
    return booking


def approve_booking(*, admin, booking_id: int) -> Booking:
    return transition_booking(admin=admin, booking_id=booking_id, new_status=BookingStatus.APPROVED)


def reject_booking(*, admin, booking_id: int, reason: str) -> Booking:
    return transition_booking(
        admin=admin, booking_id=booking_id, new_status=BookingStatus.REJECTED, reason=reason
    )


def cancel_booking(*, admin, booking_id: int, reason: str) -> Booking:
    return transition_booking(
        admin=admin, booking_id=booking_id, new_status=BookingStatus.CANCELLED, reason=reason
    )


def visible_bookings(user, *, booking_date: date_type | None = None):
    """
    Bookings the user may see on the shared calendar.

    BOOKING_CALENDAR_VISIBILITY = "all" shows everything; the default
    "approved_and_own" shows Approved bookings plus the user's own. Staff
    always see everything.
    """
    qs = Booking.objects.select_related("resource")
    if booking_date is not None:
        qs = qs.filter(booking_date=booking_date)

    policy = getattr(settings, "BOOKING_CALENDAR_VISIBILITY", "approved_and_own")
    if not getattr(user, "is_staff", False) and policy != "all":
        qs = qs.filter(Q(status=BookingStatus.APPROVED) | Q(requester=user))

    return qs.order_by("booking_date", "created_at", "id")
