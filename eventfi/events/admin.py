from django.contrib import admin

from eventfi.events import models


@admin.register(models.Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "organizer", "start_date", "end_date"]
    search_fields = ["title", "venue_name", "city"]
    list_filter = ["start_date", "end_date"]


@admin.register(models.EventTeamMember)
class EventTeamMemberAdmin(admin.ModelAdmin):
    list_display = ["id", "event", "user", "email", "role", "status"]
    search_fields = ["email"]
    list_filter = ["role", "status"]


@admin.register(models.BookingOrder)
class BookingOrderAdmin(admin.ModelAdmin):
    list_display = ["id", "event", "user", "quantity", "status", "confirmed_at"]
    list_filter = ["status", "created_at"]
