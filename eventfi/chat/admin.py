from django.contrib import admin

from eventfi.chat import models


class ChatMemberInline(admin.TabularInline):
    model = models.ChatMember
    extra = 0
    fields = ["user", "role", "is_muted", "muted_until", "last_seen_at"]
    raw_id_fields = ["user"]


@admin.register(models.EventChat)
class EventChatAdmin(admin.ModelAdmin):
    list_display = ["id", "event", "is_active", "slow_mode", "members_only"]
    list_filter = ["is_active", "members_only"]
    inlines = [ChatMemberInline]


@admin.register(models.ChatMember)
class ChatMemberAdmin(admin.ModelAdmin):
    list_display = ["id", "chat", "user", "role", "is_muted", "last_seen_at"]
    list_filter = ["role", "is_muted"]
    raw_id_fields = ["user"]


@admin.register(models.ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ["id", "chat", "sender", "type", "is_pinned", "is_deleted", "created_at"]
    list_filter = ["type", "is_pinned", "is_deleted"]
    search_fields = ["content"]
    raw_id_fields = ["sender", "reply_to", "deleted_by"]
