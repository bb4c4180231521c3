from django import forms
from django.contrib import admin, messages
from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.utils import timezone
from django.utils.html import format_html

from .emails import BookingEmailPayload, send_booking_status_email
from .models import ACTIVE_STATUSES, Booking, BookingStatus, Resource
from .services import REASON_REQUIRED_STATUSES, BookingError, approve_booking
from .slots import slot_choices


admin.site.site_header = "Campus Booking Admin"
admin.site.site_title = "Campus Booking Admin"
admin.site.index_title = "Booking Requests"


STATUS_COLORS = {
    BookingStatus.APPROVED.value: "#22c55e",
    BookingStatus.PENDING.value: "#eab308",
    BookingStatus.REJECTED.value: "#ef4444",
    BookingStatus.CANCELLED.value: "#6b7280",
}


class BookingAdminForm(forms.ModelForm):
    selected_slots = forms.MultipleChoiceField(
        choices=slot_choices,
        required=False,
        widget=forms.CheckboxSelectMultiple,
    )

    class Meta:
        model = Booking
        fields = "__all__"

    def clean(self):
        # Slot validation and the overlap check run in Booking.clean() via _post_clean.
        cleaned = super().clean()
        status = cleaned.get("status") or self.instance.status

        if self.instance.pk and status != self.instance.status:
            if not self.instance.can_transition_to(status):
                self.add_error("status", f"A {self.instance.status} booking cannot be marked as {status}.")
            elif status in REASON_REQUIRED_STATUSES and not (cleaned.get("status_reason") or "").strip():
                self.add_error("status_reason", f"A reason is required to mark a booking as {status}.")

        return cleaned


class ActivityFilter(admin.SimpleListFilter):
    title = "activity"
    parameter_name = "activity"

    def lookups(self, request, model_admin):
        return (("active", "Active (blocks slots)"), ("inert", "Rejected / cancelled"))

    def queryset(self, request, queryset):
        value = self.value()
        if value == "active":
            return queryset.filter(status__in=ACTIVE_STATUSES)
        if value == "inert":
            return queryset.exclude(status__in=ACTIVE_STATUSES)
        return queryset


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ("name", "resource_type", "slug", "capacity", "is_active", "display_order")
    list_filter = ("resource_type", "is_active")
    search_fields = ("name", "slug")
    ordering = ("resource_type", "display_order", "name")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    form = BookingAdminForm
    list_display = (
        "id",
        "event_title",
        "resource",
        "booking_date",
        "time_range",
        "department",
        "requester_email",
        "status_badge",
        "created_at",
    )
    list_filter = ("status", ActivityFilter, "resource__resource_type", "resource", "booking_date")
    search_fields = ("event_title", "department", "requester__email", "requester__username")
    ordering = ("-booking_date", "created_at")
    readonly_fields = ("reviewed_at", "reviewed_by", "created_at", "updated_at")
    autocomplete_fields = ("requester",)
    list_select_related = ("resource", "requester")
    actions = ("approve_selected",)

    @admin.display(description="Requester", ordering="requester__email")
    def requester_email(self, obj: Booking) -> str:
        return obj.requester.email or obj.requester.get_username()

    @admin.display(description="Time")
    def time_range(self, obj: Booking) -> str:
        return obj.time_range_display

    @admin.display(description="Status", ordering="status")
    def status_badge(self, obj: Booking) -> str:
        return format_html(
            '<span style="padding:3px 8px;border-radius:999px;color:#fff;'
            'background-color:{};font-weight:600;font-size:11px;">{}</span>',
            STATUS_COLORS.get(str(obj.status), "#6b7280"),
            obj.status,
        )

    def has_change_permission(self, request, obj=None):
        has_perm = super().has_change_permission(request, obj)
        if not has_perm:
            return False
        if obj and obj.is_terminal:
            return request.method in ("GET", "HEAD", "OPTIONS")
        return True

    def changeform_view(self, request, object_id=None, form_url="", extra_context=None):
        obj = self.get_object(request, object_id) if object_id else None
        extra_context = extra_context or {}
        if obj and obj.is_terminal:
            extra_context.update(
                {
                    "show_save": False,
                    "show_save_and_continue": False,
                    "show_save_and_add_another": False,
                    "show_delete_link": False,
                }
            )
        return super().changeform_view(request, object_id, form_url, extra_context=extra_context)

    def has_delete_permission(self, request, obj=None):
        # Rejected and cancelled bookings are kept for history.
        if obj and obj.is_terminal:
            return False
        return super().has_delete_permission(request, obj)

    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    @admin.action(description="Approve selected pending bookings")
    def approve_selected(self, request, queryset):
        approved = 0
        for booking in queryset.filter(status=BookingStatus.PENDING).order_by("created_at", "id"):
            try:
                approve_booking(admin=request.user, booking_id=booking.id)
            except (BookingError, PermissionDenied) as exc:
                self.message_user(request, f"#{booking.id}: {exc}", level=messages.ERROR)
            else:
                approved += 1
        self.message_user(request, f"{approved} booking(s) approved.", level=messages.SUCCESS)

    def save_model(self, request, obj, form, change):
        # Ensure model-level validation (including the overlap check) runs before saving.
        obj.full_clean()
        status_changed = change and "status" in form.changed_data
        if status_changed:
            obj.reviewed_at = timezone.now()
            obj.reviewed_by = request.user
        super().save_model(request, obj, form, change)
        if status_changed:
            payload = BookingEmailPayload.from_booking(obj, obj.status, obj.status_reason)
            transaction.on_commit(lambda: send_booking_status_email(payload))
