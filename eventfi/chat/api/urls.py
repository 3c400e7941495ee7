from django.urls import path

from eventfi.chat.api.views import EventChatViewSet

chat_detail = EventChatViewSet.as_view({"get": "retrieve"})
chat_messages = EventChatViewSet.as_view({"get": "messages", "post": "send"})
chat_pinned = EventChatViewSet.as_view({"get": "pinned"})
chat_message_detail = EventChatViewSet.as_view({"patch": "moderate"})
chat_members = EventChatViewSet.as_view({"get": "members"})
chat_member_mute = EventChatViewSet.as_view({"post": "mute"})
chat_settings = EventChatViewSet.as_view({"patch": "update_settings"})
chat_read = EventChatViewSet.as_view({"post": "read"})

app_name = "chat"
urlpatterns = [
    path("", chat_detail, name="detail"),
    path("messages/", chat_messages, name="messages"),
    path("messages/pinned/", chat_pinned, name="messages-pinned"),
    path("messages/<int:message_id>/", chat_message_detail, name="message-detail"),
    path("members/", chat_members, name="members"),
    path("members/<int:user_id>/mute/", chat_member_mute, name="member-mute"),
    path("settings/", chat_settings, name="settings"),
    path("read/", chat_read, name="read"),
]
