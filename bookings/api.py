from __future__ import annotations

import json
from datetime import date as date_type

from django.core.exceptions import PermissionDenied
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET
from django.views.decorators.http import require_POST

from .conflicts import BookingDraft
from .models import Booking, BookingStatus, DurationType, Resource
from .services import (
    BookingConflictError,
    BookingInput,
    InvalidTransitionError,
    PastBookingError,
    ReasonRequiredError,
    check_conflicts,
    create_booking,
    transition_booking,
    visible_bookings,
)
from .slots import InvalidInput, full_day_slots, slot_choices, slot_range_label


class PayloadError(Exception):
    """Raised for a malformed request body or query string."""


def _parse_date(value: str) -> date_type:
    return date_type.fromisoformat(value)


def _auth_error():
    return JsonResponse({"error": "Authentication required."}, status=401)


def _load_json(request) -> dict:
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise PayloadError("Invalid JSON payload.") from exc
    if not isinstance(payload, dict):
        raise PayloadError("Invalid JSON payload.")
    return payload


def _is_int(value) -> bool:
    # JSON true/false decode to bool, which is an int subclass.
    return isinstance(value, int) and not isinstance(value, bool)


def _optional_int(value: str, name: str) -> int | None:
    value = (value or "").strip()
    if not value:
        return None
    if not value.isdigit():
        raise PayloadError(f"Invalid {name}. Expected an integer.")
    return int(value)


def _text(payload: dict, name: str) -> str:
    value = payload.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PayloadError(f"{name} must be a string.")
    return value.strip()


def _draft_fields(payload: dict) -> tuple[int, date_type, list, str]:
    resource_id = payload.get("resource_id")
    date_str = _text(payload, "date")
    selected_slots = payload.get("selected_slots") or []
    duration_type = payload.get("duration_type") or DurationType.CUSTOM

    if not _is_int(resource_id):
        raise PayloadError("resource_id must be an integer.")
    if not date_str:
        raise PayloadError("date is required.")
    if not isinstance(selected_slots, list) or not all(isinstance(s, str) for s in selected_slots):
        raise PayloadError("selected_slots must be a list of HH:MM strings.")
    if duration_type not in DurationType.values:
        raise PayloadError("duration_type must be 'custom' or 'full-day'.")

    try:
        target_date = _parse_date(date_str)
    except ValueError as exc:
        raise PayloadError("Invalid date. Expected YYYY-MM-DD.") from exc

    return resource_id, target_date, selected_slots, duration_type


def _booking_to_dict(booking: Booking) -> dict:
    return {
        "id": booking.id,
        "resource_key": booking.resource_key,
        "resource_name": booking.resource.name,
        "resource_type": booking.resource.resource_type,
        "date": booking.booking_date.isoformat(),
        "selected_slots": list(booking.selected_slots),
        "duration_type": booking.duration_type,
        "time_range": booking.time_range_display,
        "status": booking.status,
        "status_reason": booking.status_reason,
        "event_title": booking.event_title,
        "department": booking.department,
        "attendees": booking.attendees,
    }


@require_GET
def slots_api(request):
    """
    GET /api/slots/

    Returns the slot vocabulary of a business day.
    """
    day = full_day_slots()
    start, end = slot_range_label(day)
    return JsonResponse(
        {
            "day_start": start,
            "day_end": end,
            "slots": [{"value": value, "label": label} for value, label in slot_choices()],
        }
    )


@require_GET
def availability_api(request):
    """
    GET /api/availability/?date=YYYY-MM-DD[&resource_id=123][&exclude_booking_id=456]

    Returns the slots held by Pending/Approved bookings per resource for the date.
    """
    if not request.user.is_authenticated:
        return _auth_error()

    date_str = request.GET.get("date", "").strip()
    if not date_str:
        return JsonResponse({"error": "Missing required query param: date"}, status=400)

    try:
        target_date = _parse_date(date_str)
    except ValueError:
        return JsonResponse({"error": "Invalid date. Expected YYYY-MM-DD."}, status=400)

    try:
        resource_id = _optional_int(request.GET.get("resource_id", ""), "resource_id")
        exclude_id = _optional_int(request.GET.get("exclude_booking_id", ""), "exclude_booking_id")
    except PayloadError as exc:
        return JsonResponse({"error": str(exc)}, status=400)

    resources_qs = Resource.objects.filter(is_active=True)
    if resource_id is not None:
        resources_qs = resources_qs.filter(id=resource_id)
    resources = list(resources_qs)

    booked_map: dict[int, set[str]] = {resource.id: set() for resource in resources}
    booked_qs = Booking.objects.active().filter(booking_date=target_date, resource__in=resources)
    if exclude_id is not None:
        booked_qs = booked_qs.exclude(id=exclude_id)
    for row in booked_qs.values("resource_id", "selected_slots"):
        booked_map[row["resource_id"]].update(row["selected_slots"] or [])

    return JsonResponse(
        {
            "date": target_date.isoformat(),
            "time_slots": [{"value": value, "label": label} for value, label in slot_choices()],
            "resources": [
                {
                    "id": resource.id,
                    "key": resource.key,
                    "name": resource.name,
                    "resource_type": resource.resource_type,
                    "booked_slots": sorted(booked_map.get(resource.id, set())),
                }
                for resource in resources
            ],
        }
    )


@require_POST
def check_conflicts_api(request):
    """
    POST /api/conflicts/
    Payload (JSON):
      - resource_id: int
      - date: YYYY-MM-DD
      - selected_slots: ["HH:MM", ...] (ignored for full-day)
      - duration_type: "custom" | "full-day"
      - exclude_booking_id: int (optional)

    Re-run this whenever the resource, date or slots of a draft change.
    """
    if not request.user.is_authenticated:
        return _auth_error()

    try:
        payload = _load_json(request)
        resource_id, target_date, selected_slots, duration_type = _draft_fields(payload)
    except PayloadError as exc:
        return JsonResponse({"error": str(exc)}, status=400)

    exclude_id = payload.get("exclude_booking_id")
    if exclude_id is not None and not _is_int(exclude_id):
        return JsonResponse({"error": "exclude_booking_id must be an integer."}, status=400)

    try:
        resource = Resource.objects.get(id=resource_id, is_active=True)
        draft = BookingDraft.build(resource.key, target_date, selected_slots, duration_type)
    except Resource.DoesNotExist:
        return JsonResponse({"error": "Resource not found."}, status=404)
    except InvalidInput as exc:
        return JsonResponse({"error": str(exc)}, status=400)

    report = check_conflicts(draft, exclude_booking_id=exclude_id)
    start, end = slot_range_label(draft.slots)
    return JsonResponse(
        {
            "resource_key": draft.resource_key,
            "date": target_date.isoformat(),
            "selected_slots": sorted(draft.slots),
            "start_time": start,
            "end_time": end,
            **report.to_dict(),
        }
    )


@require_POST
def create_booking_api(request):
    """
    POST /api/bookings/
    Payload (JSON): the /api/conflicts/ fields plus
      - event_title: str (required)
      - event_description, department_category, department, faculty_incharge,
        contact_number, contact_email: str
      - attendees: int
    """
    if not request.user.is_authenticated:
        return _auth_error()

    try:
        payload = _load_json(request)
        resource_id, target_date, selected_slots, duration_type = _draft_fields(payload)
        event_title = _text(payload, "event_title")
        attendees = payload.get("attendees", 0)
        if not event_title:
            raise PayloadError("event_title is required.")
        if not _is_int(attendees) or attendees < 0:
            raise PayloadError("attendees must be a non-negative integer.")

        data = BookingInput(
            resource_id=resource_id,
            booking_date=target_date,
            selected_slots=tuple(selected_slots),
            duration_type=duration_type,
            event_title=event_title,
            event_description=_text(payload, "event_description"),
            attendees=attendees,
            department_category=_text(payload, "department_category"),
            department=_text(payload, "department"),
            faculty_incharge=_text(payload, "faculty_incharge"),
            contact_number=_text(payload, "contact_number"),
            contact_email=_text(payload, "contact_email"),
        )
    except PayloadError as exc:
        return JsonResponse({"error": str(exc)}, status=400)

    try:
        booking = create_booking(user=request.user, data=data)
    except InvalidInput as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    except PastBookingError as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    except BookingConflictError as exc:
        return JsonResponse({"error": str(exc), **exc.report.to_dict()}, status=409)
    except Resource.DoesNotExist:
        return JsonResponse({"error": "Resource not found."}, status=404)

    return JsonResponse(
        {
            "success": True,
            "booking": _booking_to_dict(booking),
            "message": "Booking request submitted for approval.",
        },
        status=201,
    )


@require_GET
def my_bookings_api(request):
    """
    GET /api/my-bookings/

    The requester's bookings split into upcoming and past.
    """
    if not request.user.is_authenticated:
        return _auth_error()

    today = timezone.localdate()
    bookings = (
        Booking.objects.select_related("resource")
        .filter(requester=request.user)
        .order_by("-booking_date", "-created_at")
    )

    upcoming = []
    past = []
    for booking in bookings:
        if booking.booking_date >= today:
            upcoming.append(_booking_to_dict(booking))
        else:
            past.append(_booking_to_dict(booking))

    return JsonResponse({"upcoming": upcoming, "past": past})


@require_GET
def calendar_api(request):
    """
    GET /api/calendar/[?date=YYYY-MM-DD]

    Bookings visible to the caller, optionally for one day.
    """
    if not request.user.is_authenticated:
        return _auth_error()

    date_str = request.GET.get("date", "").strip()
    target_date = None
    if date_str:
        try:
            target_date = _parse_date(date_str)
        except ValueError:
            return JsonResponse({"error": "Invalid date. Expected YYYY-MM-DD."}, status=400)

    bookings = visible_bookings(request.user, booking_date=target_date)
    return JsonResponse(
        {
            "date": target_date.isoformat() if target_date else None,
            "bookings": [_booking_to_dict(booking) for booking in bookings],
        }
    )


def _transition_response(request, booking_id: int, new_status: str):
    if not request.user.is_authenticated:
        return _auth_error()

    try:
        payload = _load_json(request)
    except PayloadError as exc:
        return JsonResponse({"error": str(exc)}, status=400)

    reason = payload.get("reason") or ""
    if not isinstance(reason, str):
        return JsonResponse({"error": "reason must be a string."}, status=400)

    try:
        booking = transition_booking(
            admin=request.user,
            booking_id=booking_id,
            new_status=new_status,
            reason=reason,
        )
    except PermissionDenied:
        return JsonResponse({"error": "Only administrators can change a booking's status."}, status=403)
    except Booking.DoesNotExist:
        return JsonResponse({"error": "Booking not found."}, status=404)
    except (ReasonRequiredError, InvalidTransitionError) as exc:
        return JsonResponse({"error": str(exc)}, status=400)

    return JsonResponse(
        {
            "success": True,
            "booking": _booking_to_dict(booking),
            "message": f"Booking {booking.status.lower()}.",
        }
    )


@require_POST
def approve_booking_api(request, booking_id: int):
    """
    POST /api/bookings/<id>/approve/
    """
    return _transition_response(request, booking_id, BookingStatus.APPROVED)


@require_POST
def reject_booking_api(request, booking_id: int):
    """
    POST /api/bookings/<id>/reject/
    Payload (JSON): {"reason": str}
    """
    return _transition_response(request, booking_id, BookingStatus.REJECTED)


@require_POST
def cancel_booking_api(request, booking_id: int):
    """
    POST /api/bookings/<id>/cancel/
    Payload (JSON): {"reason": str}
    """
    return _transition_response(request, booking_id, BookingStatus.CANCELLED)
