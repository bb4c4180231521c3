from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .conflicts import BookingDraft, find_conflicts
from .slots import InvalidInput, format_slots, slot_range_label


def resource_key(resource_type: str, identifier: str) -> str:
    """
    Deterministic key for a bookable resource: "<type>:<id or sub-area>".
    """
    return f"{str(resource_type).strip().lower()}:{str(identifier).strip().lower()}"


class ResourceType(models.TextChoices):
    VENUE = "venue", "Venue"
    BUS = "bus", "Bus"
    TURF = "turf", "Turf"


class Resource(models.Model):
    resource_type = models.CharField(max_length=10, choices=ResourceType.choices)
    slug = models.SlugField(max_length=80)
    name = models.CharField(max_length=120)
    capacity = models.PositiveIntegerField(null=True, blank=True)
    facilities = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    display_order = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["resource_type", "display_order", "name"]
        constraints = [
            models.UniqueConstraint(fields=["resource_type", "slug"], name="unique_resource_type_slug"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.name} ({self.get_resource_type_display()})"

    def clean(self) -> None:
        super().clean()
        self.slug = (self.slug or "").strip().lower()

    def save(self, *args, **kwargs):
        # Keys are lowercase, so slugs are stored that way too.
        self.slug = (self.slug or "").strip().lower()
        super().save(*args, **kwargs)

    @property
    def key(self) -> str:
        return resource_key(self.resource_type, self.slug)


class BookingStatus(models.TextChoices):
    PENDING = "Pending", "Pending"
    APPROVED = "Approved", "Approved"
    REJECTED = "Rejected", "Rejected"
    CANCELLED = "Cancelled", "Cancelled"


class DurationType(models.TextChoices):
    CUSTOM = "custom", "Custom slots"
    FULL_DAY = "full-day", "Full day"


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.APPROVED)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING.value: {
        BookingStatus.APPROVED.value,
        BookingStatus.REJECTED.value,
        BookingStatus.CANCELLED.value,
    },
    BookingStatus.APPROVED.value: {BookingStatus.CANCELLED.value},
    BookingStatus.REJECTED.value: set(),
    BookingStatus.CANCELLED.value: set(),
}


class BookingQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status__in=ACTIVE_STATUSES)

    def for_resource_key(self, key: str):
        resource_type, _, slug = key.partition(":")
        return self.filter(resource__resource_type__iexact=resource_type, resource__slug__iexact=slug)


class Booking(models.Model):
    resource = models.ForeignKey(Resource, on_delete=models.PROTECT, related_name="bookings")
    booking_date = models.DateField()
    selected_slots = models.JSONField(default=list, blank=True)
    duration_type = models.CharField(max_length=10, choices=DurationType.choices, default=DurationType.CUSTOM)
    status = models.CharField(max_length=10, choices=BookingStatus.choices, default=BookingStatus.PENDING)

    event_title = models.CharField(max_length=200)
    event_description = models.TextField(blank=True)
    attendees = models.PositiveIntegerField(default=0)
    department_category = models.CharField(max_length=80, blank=True)
    department = models.CharField(max_length=120, blank=True)
    faculty_incharge = models.CharField(max_length=120, blank=True)
    contact_number = models.CharField(max_length=30, blank=True)
    contact_email = models.EmailField(blank=True)

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    status_reason = models.TextField(blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_bookings",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["resource", "booking_date"], name="idx_booking_resource_date"),
            models.Index(fields=["requester", "booking_date"], name="idx_booking_requester_date"),
            models.Index(fields=["status"], name="idx_booking_status"),
        ]
        ordering = ["-booking_date", "created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.event_title} · {self.resource} · {self.booking_date} · {self.time_range_display}"

    @property
    def resource_key(self) -> str:
        return self.resource.key

    @property
    def start_time(self) -> str:
        return slot_range_label(self.selected_slots)[0]

    @property
    def end_time(self) -> str:
        return slot_range_label(self.selected_slots)[1]

    @property
    def time_range_display(self) -> str:
        return format_slots(self.selected_slots or [], self.duration_type)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS.get(str(self.status))

    def can_transition_to(self, new_status: str) -> bool:
        return str(new_status) in ALLOWED_TRANSITIONS.get(str(self.status), set())

    def is_past(self) -> bool:
        return self.booking_date < timezone.localdate()

    def as_draft(self) -> BookingDraft:
        return BookingDraft.build(
            self.resource_key,
            self.booking_date,
            self.selected_slots,
            self.duration_type,
        )

    def clean(self) -> None:
        """
        Validate the slot set and block overlaps with other active bookings of
        the same resource and day, so the admin and any other save path get the
        same check the API runs.
        """
        super().clean()
        if not self.resource_id or not self.booking_date:
            return

        try:
            draft = self.as_draft()
        except InvalidInput as exc:
            raise ValidationError({"selected_slots": str(exc)}) from exc
        self.selected_slots = sorted(draft.slots)

        if not self.is_active:
            return

        others = (
            Booking.objects.active()
            .filter(resource_id=self.resource_id, booking_date=self.booking_date)
            .exclude(pk=self.pk)
            .select_related("resource")
            .order_by("created_at", "id")
        )
        report = find_conflicts(draft, others)
        if report:
            titles = ", ".join(f"{entry.title} ({entry.status})" for entry in report)
            raise ValidationError(
                {"selected_slots": f"These slots overlap with existing bookings: {titles}."}
            )
