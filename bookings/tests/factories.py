from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from bookings.models import Booking, BookingStatus, DurationType, Resource, ResourceType


def future_date(days=7):
    return timezone.localdate() + timedelta(days=days)


def make_user(username="requester", *, is_staff=False, email=None):
    return get_user_model().objects.create_user(
        username=username,
        email=email if email is not None else f"{username}@example.edu",
        password="not-a-real-password",
        is_staff=is_staff,
    )


def make_resource(slug="ramanujan-hall", name="Ramanujan Hall", resource_type=ResourceType.VENUE, **extra):
    return Resource.objects.create(resource_type=resource_type, slug=slug, name=name, **extra)


def make_booking(
    *,
    resource,
    requester,
    booking_date,
    slots=("10:00", "10:30"),
    status=BookingStatus.PENDING,
    duration_type=DurationType.CUSTOM,
    title="Guest Lecture",
    department="CSE",
    **extra,
):
    return Booking.objects.create(
        resource=resource,
        requester=requester,
        booking_date=booking_date,
        selected_slots=list(slots),
        status=status,
        duration_type=duration_type,
        event_title=title,
        department=department,
        **extra,
    )
