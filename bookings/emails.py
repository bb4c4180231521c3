from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_type

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string


logger = logging.getLogger(__name__)

NOTIFIED_STATUSES = ("Approved", "Rejected", "Cancelled")


@dataclass(frozen=True)
class BookingEmailPayload:
    to_email: str
    status: str  # Approved|Rejected|Cancelled
    requester_name: str
    event_title: str
    resource_name: str
    booking_date: date_type
    time_range: str
    attendees: int
    reason: str = ""

    @classmethod
    def from_booking(cls, booking, status: str, reason: str = "") -> "BookingEmailPayload":
        requester = booking.requester
        to_email = booking.contact_email or getattr(requester, "email", "") or ""
        requester_name = requester.get_full_name() or requester.get_username()
        return cls(
            to_email=to_email,
            status=str(status),
            requester_name=requester_name,
            event_title=booking.event_title,
            resource_name=booking.resource.name,
            booking_date=booking.booking_date,
            time_range=booking.time_range_display,
            attendees=booking.attendees,
            reason=reason,
        )

    @property
    def subject(self) -> str:
        return f"Booking {self.status}: {self.event_title}"


def send_booking_status_email(payload: BookingEmailPayload) -> bool:
    """
    Notify the requester about a status change. Returns True if attempted,
    False if skipped. Never raises (logs on failure).
    """
    if not payload.to_email or payload.status not in NOTIFIED_STATUSES:
        return False

    context = {
        "requester_name": payload.requester_name,
        "event_title": payload.event_title,
        "resource_name": payload.resource_name,
        "booking_date": payload.booking_date,
        "time_range": payload.time_range,
        "attendees": payload.attendees,
        "reason": payload.reason,
    }
    template_base = f"emails/booking_{payload.status.lower()}"

    try:
        text_body = render_to_string(f"{template_base}.txt", context)
        html_body = render_to_string(f"{template_base}.html", context)

        msg = EmailMultiAlternatives(
            subject=payload.subject,
            body=text_body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[payload.to_email],
        )
        if html_body:
            msg.attach_alternative(html_body, "text/html")
        msg.send(fail_silently=False)
        return True
    except Exception:
        logger.exception("Failed to send booking email (%s) to %s", payload.status, payload.to_email)
        return True
