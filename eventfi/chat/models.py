from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class ChatRole(models.TextChoices):
    MEMBER = "member", _("Member")
    MODERATOR = "moderator", _("Moderator")
    ORGANIZER = "organizer", _("Organizer")


class MessageType(models.TextChoices):
    TEXT = "text", _("Text")
    IMAGE = "image", _("Image")
    ANNOUNCEMENT = "announcement", _("Announcement")
    SYSTEM = "system", _("System")


class EventChat(models.Model):
    event = models.OneToOneField(
        "events.Event", on_delete=models.CASCADE, related_name="chat"
    )
    is_active = models.BooleanField(default=True)
    slow_mode = models.PositiveIntegerField(
        default=0,
        help_text=_("Minimum seconds between a member's messages (0 = off)"),
    )
    members_only = models.BooleanField(
        default=True,
        help_text=_("Plain members need a confirmed ticket to join"),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Chat for event {self.event_id}"


class ChatMember(models.Model):
    chat = models.ForeignKey(
        EventChat, on_delete=models.CASCADE, related_name="members"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_memberships",
    )
    role = models.CharField(
        max_length=20,
        choices=ChatRole.choices,
        default=ChatRole.MEMBER,
        help_text=_("Cached; re-derived from event/team state on each check"),
    )
    is_muted = models.BooleanField(default=False)
    muted_until = models.DateTimeField(
        null=True, blank=True, help_text=_("Empty means muted until lifted")
    )
    joined_at = models.DateTimeField(auto_now_add=True)
    last_seen_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["chat", "user"], name="unique_chat_member"
            ),
        ]
        indexes = [
            models.Index(fields=["chat", "last_seen_at"], name="chat_member_seen_idx"),
        ]

    def __str__(self):
        return f"{self.user_id} in {self.chat_id} ({self.role})"

    def mute_active(self, now) -> bool:
        return self.is_muted and (self.muted_until is None or self.muted_until > now)


class ChatMessageQuerySet(models.QuerySet):
    def visible(self):
        return self.filter(is_deleted=False)


class ChatMessage(models.Model):
    chat = models.ForeignKey(
        EventChat, on_delete=models.CASCADE, related_name="messages"
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_messages",
    )
    content = models.TextField()
    type = models.CharField(
        max_length=20, choices=MessageType.choices, default=MessageType.TEXT
    )
    reply_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="replies",
    )
    is_pinned = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ChatMessageQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["chat", "created_at"], name="chat_message_time_idx"),
            models.Index(
                fields=["chat", "sender", "created_at"],
                name="chat_message_sender_idx",
            ),
        ]

    def __str__(self):
        return f"{self.type} message {self.pk} in {self.chat_id}"
