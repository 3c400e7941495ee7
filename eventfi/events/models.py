from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _


class Event(models.Model):
    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="organized_events",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    start_date = models.DateTimeField(help_text=_("When the event starts"))
    end_date = models.DateTimeField(
        help_text=_("When the event ends; the chat closes 24h later"),
    )
    venue_name = models.CharField(max_length=255, blank=True, default="")
    address = models.CharField(max_length=500, blank=True, default="")
    city = models.CharField(max_length=120, blank=True, default="")
    cover_image = models.URLField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-start_date"]

    def __str__(self):
        return self.title

    def clean(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError(_("Start date cannot be after end date."))

    @property
    def location_label(self) -> str:
        return self.venue_name or self.address or self.city or "Online"


class EventTeamMember(models.Model):
    class Role(models.TextChoices):
        ORGANIZER = "ORGANIZER", _("Organizer")
        CO_HOST = "CO_HOST", _("Co-host")
        MANAGER = "MANAGER", _("Manager")
        ASSISTANT = "ASSISTANT", _("Assistant")

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", _("Active")
        PENDING = "PENDING", _("Pending")

    event = models.ForeignKey(
        Event, on_delete=models.CASCADE, related_name="team_members"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="event_teams",
        help_text=_("Empty until an emailed invite is accepted"),
    )
    email = models.EmailField()
    role = models.CharField(max_length=20, choices=Role.choices)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["event", "user"], name="unique_event_team_member"
            ),
        ]

    def __str__(self):
        return f"{self.email} ({self.role}) @ {self.event_id}"


class BookingOrder(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", _("Pending")
        CONFIRMED = "CONFIRMED", _("Confirmed")
        CANCELLED = "CANCELLED", _("Cancelled")
        REFUNDED = "REFUNDED", _("Refunded")
        EXPIRED = "EXPIRED", _("Expired")

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="booking_orders",
    )
    event = models.ForeignKey(
        Event, on_delete=models.CASCADE, related_name="booking_orders"
    )
    quantity = models.PositiveIntegerField(default=1)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event", "user", "status"], name="booking_event_user_idx"),
        ]

    def __str__(self):
        return f"Order {self.pk} - {self.user_id} @ {self.event_id} ({self.status})"
