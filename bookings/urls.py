from django.urls import path

from .api import (
    approve_booking_api,
    availability_api,
    calendar_api,
    cancel_booking_api,
    check_conflicts_api,
    create_booking_api,
    my_bookings_api,
    reject_booking_api,
    slots_api,
)


app_name = "bookings"

urlpatterns = [
    path("api/slots/", slots_api, name="slots_api"),
    path("api/availability/", availability_api, name="availability_api"),
    path("api/conflicts/", check_conflicts_api, name="check_conflicts_api"),
    path("api/bookings/", create_booking_api, name="create_booking_api"),
    path("api/my-bookings/", my_bookings_api, name="my_bookings_api"),
    path("api/calendar/", calendar_api, name="calendar_api"),
    path(
        "api/bookings/<int:booking_id>/approve/",
        approve_booking_api,
        name="approve_booking_api",
    ),
    path(
        "api/bookings/<int:booking_id>/reject/",
        reject_booking_api,
        name="reject_booking_api",
    ),
    path(
        "api/bookings/<int:booking_id>/cancel/",
        cancel_booking_api,
        name="cancel_booking_api",
    ),
]
