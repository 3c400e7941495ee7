from __future__ import annotations

from datetime import timedelta
from unittest import mock

from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from eventfi.chat.models import ChatMember
from eventfi.chat.models import ChatMessage
from eventfi.chat.models import EventChat
from eventfi.chat.tests.factories import post_message
from tests.chat.mixins import ChatAPITestCase


class ChatDetailTests(ChatAPITestCase):
    def test_member_opens_chat(self):
        data = self.assert_success(self.get("detail", user=self.scene.member))

        assert data["canJoin"] is True
        assert data["reason"] is None
        assert data["chat"]["eventId"] == self.event_id
        assert data["chat"]["userRole"] == "member"
        assert data["chat"]["memberCount"] == 3

    def test_outsider_is_told_why(self):
        data = self.assert_success(self.get("detail", user=self.scene.outsider))

        assert data["canJoin"] is False
        assert data["reason"] == "NO_TICKET"
        assert not ChatMember.objects.filter(user=self.scene.outsider).exists()

    def test_unknown_event(self):
        self.event_id += 100

        response = self.get("detail", user=self.scene.member)

        self.assert_chat_error(response, status.HTTP_404_NOT_FOUND, "CHAT_NOT_FOUND")

    def test_requires_authentication(self):
        response = self.client.get(self.url("detail"))

        self.assert_http_status(response, status.HTTP_401_UNAUTHORIZED)


class SendMessageTests(ChatAPITestCase):
    def test_send(self):
        response = self.post(
            "messages", user=self.scene.member, payload={"content": "hello"}
        )

        data = self.assert_success(response, status.HTTP_201_CREATED)
        assert data["content"] == "hello"
        assert data["type"] == "text"
        assert data["sender"]["id"] == self.scene.member.pk
        assert ChatMessage.objects.filter(pk=data["id"]).exists()

    def test_too_long(self):
        response = self.post(
            "messages", user=self.scene.member, payload={"content": "x" * 1001}
        )

        self.assert_chat_error(response, status.HTTP_400_BAD_REQUEST, "MESSAGE_TOO_LONG")
        assert not ChatMessage.objects.exists()

    def test_blank_content(self):
        response = self.post("messages", user=self.scene.member, payload={"content": "  "})

        self.assert_chat_error(response, status.HTTP_400_BAD_REQUEST, "INVALID_MESSAGE")

    def test_missing_content_is_a_validation_error(self):
        response = self.post("messages", user=self.scene.member, payload={})

        self.assert_http_status(response, status.HTTP_400_BAD_REQUEST)
        assert "content" in response.data

    def test_non_member(self):
        response = self.post(
            "messages", user=self.scene.outsider, payload={"content": "let me in"}
        )

        self.assert_chat_error(response, status.HTTP_403_FORBIDDEN, "NOT_AUTHORIZED")

    def test_disabled_chat(self):
        EventChat.objects.filter(pk=self.scene.chat.pk).update(is_active=False)

        response = self.post("messages", user=self.scene.member, payload={"content": "hi"})

        self.assert_chat_error(response, status.HTTP_403_FORBIDDEN, "CHAT_DISABLED")

    def test_muted(self):
        ChatMember.objects.filter(chat=self.scene.chat, user=self.scene.member).update(
            is_muted=True, muted_until=timezone.now() + timedelta(minutes=5)
        )

        response = self.post("messages", user=self.scene.member, payload={"content": "hi"})

        self.assert_chat_error(response, status.HTTP_429_TOO_MANY_REQUESTS, "USER_MUTED")

    def test_slow_mode_sets_retry_after(self):
        EventChat.objects.filter(pk=self.scene.chat.pk).update(slow_mode=30)
        first = self.post("messages", user=self.scene.member, payload={"content": "one"})
        self.assert_http_status(first, status.HTTP_201_CREATED)

        second = self.post("messages", user=self.scene.member, payload={"content": "two"})

        self.assert_chat_error(second, status.HTTP_429_TOO_MANY_REQUESTS, "SLOW_MODE")
        assert 0 < int(second["Retry-After"]) <= 30

    def test_member_cannot_announce(self):
        response = self.post(
            "messages",
            user=self.scene.member,
            payload={"content": "Free drinks!", "type": "announcement"},
        )

        self.assert_chat_error(response, status.HTTP_403_FORBIDDEN, "NOT_AUTHORIZED")

    def test_reply(self):
        original = post_message(self.scene.chat, self.scene.member, "when do doors open?")

        response = self.post(
            "messages",
            user=self.scene.organizer,
            payload={"content": "8pm", "replyToId": original.pk},
        )

        data = self.assert_success(response, status.HTTP_201_CREATED)
        assert data["replyTo"]["id"] == original.pk
        assert data["sender"]["role"] == "organizer"

    def test_new_message_is_pushed_to_live_room_after_commit(self):
        with (
            mock.patch("eventfi.realtime.events.chat.emit_event_to_event_chat") as emit,
            self.captureOnCommitCallbacks(execute=True),
        ):
            response = self.post(
                "messages", user=self.scene.member, payload={"content": "live"}
            )

        data = self.assert_success(response, status.HTTP_201_CREATED)
        emit.assert_called_once_with(self.event_id, "message", {"message": data})

    def test_push_failure_does_not_fail_request(self):
        with (
            mock.patch(
                "eventfi.realtime.events.chat.emit_event_to_event_chat",
                side_effect=ConnectionError("socket server down"),
            ),
            self.captureOnCommitCallbacks(execute=True),
        ):
            response = self.post(
                "messages", user=self.scene.member, payload={"content": "live"}
            )

        self.assert_http_status(response, status.HTTP_201_CREATED)


class HistoryTests(ChatAPITestCase):
    def test_history_pages_backwards(self):
        sent = [post_message(self.scene.chat, self.scene.member, f"m{i}") for i in range(5)]

        first = self.assert_success(
            self.get("messages", user=self.scene.member, params={"limit": 3})
        )
        assert [m["content"] for m in first["messages"]] == ["m2", "m3", "m4"]
        assert first["hasMore"] is True

        older = self.assert_success(
            self.get(
                "messages",
                user=self.scene.member,
                params={"limit": 3, "before": first["messages"][0]["id"]},
            )
        )
        assert [m["id"] for m in older["messages"]] == [sent[0].pk, sent[1].pk]
        assert older["hasMore"] is False

    def test_history_requires_membership(self):
        response = self.get("messages", user=self.scene.outsider)

        self.assert_chat_error(response, status.HTTP_403_FORBIDDEN, "NOT_AUTHORIZED")

    def test_pinned(self):
        post_message(self.scene.chat, self.scene.organizer, "rules", is_pinned=True)
        post_message(self.scene.chat, self.scene.member, "chatter")

        data = self.assert_success(self.get("messages-pinned", user=self.scene.member))

        assert [m["content"] for m in data] == ["rules"]


class ModerationTests(ChatAPITestCase):
    def test_moderator_deletes_message(self):
        message = post_message(self.scene.chat, self.scene.member, "spam")

        response = self.patch(
            "message-detail",
            user=self.scene.moderator,
            payload={"action": "delete"},
            message_id=message.pk,
        )

        data = self.assert_success(response)
        assert data == {
            "messageId": message.pk,
            "action": "deleted",
            "deletedBy": self.scene.moderator.pk,
        }

    def test_member_cannot_pin(self):
        message = post_message(self.scene.chat, self.scene.member)

        response = self.patch(
            "message-detail",
            user=self.scene.member,
            payload={"action": "pin"},
            message_id=message.pk,
        )

        self.assert_chat_error(response, status.HTTP_403_FORBIDDEN, "NOT_AUTHORIZED")

    def test_invalid_action(self):
        message = post_message(self.scene.chat, self.scene.member)

        response = self.patch(
            "message-detail",
            user=self.scene.organizer,
            payload={"action": "archive"},
            message_id=message.pk,
        )

        self.assert_chat_error(response, status.HTTP_400_BAD_REQUEST, "INVALID_ACTION")

    def test_unknown_message(self):
        response = self.patch(
            "message-detail",
            user=self.scene.organizer,
            payload={"action": "pin"},
            message_id=999999,
        )

        self.assert_chat_error(response, status.HTTP_404_NOT_FOUND, "NOT_FOUND")


class MemberTests(ChatAPITestCase):
    def test_members(self):
        data = self.assert_success(self.get("members", user=self.scene.member))

        assert data["total"] == 3
        assert {m["userId"] for m in data["members"]} == {
            self.scene.organizer.pk,
            self.scene.moderator.pk,
            self.scene.member.pk,
        }

    def test_online_filter(self):
        ChatMember.objects.filter(chat=self.scene.chat, user=self.scene.organizer).update(
            last_seen_at=timezone.now() - timedelta(hours=1)
        )

        data = self.assert_success(
            self.get("members", user=self.scene.member, params={"online": "true"})
        )

        assert self.scene.organizer.pk not in {m["userId"] for m in data["members"]}
        assert data["online"] == 2

    def test_mute(self):
        response = self.post(
            "member-mute",
            user=self.scene.moderator,
            payload={"duration": 15},
            user_id=self.scene.member.pk,
        )

        data = self.assert_success(response)
        assert data["userId"] == self.scene.member.pk
        assert data["isMuted"] is True

    def test_cannot_mute_organizer(self):
        response = self.post(
            "member-mute",
            user=self.scene.moderator,
            payload={"duration": 15},
            user_id=self.scene.organizer.pk,
        )

        self.assert_chat_error(response, status.HTTP_403_FORBIDDEN, "NOT_AUTHORIZED")

    def test_mute_requires_duration(self):
        response = self.post(
            "member-mute", user=self.scene.moderator, user_id=self.scene.member.pk
        )

        self.assert_http_status(response, status.HTTP_400_BAD_REQUEST)

    def test_read_bumps_last_seen(self):
        ChatMember.objects.filter(chat=self.scene.chat, user=self.scene.member).update(
            last_seen_at=timezone.now() - timedelta(hours=1)
        )

        response = self.post("read", user=self.scene.member)

        self.assert_http_status(response, status.HTTP_204_NO_CONTENT)
        member = ChatMember.objects.get(chat=self.scene.chat, user=self.scene.member)
        assert timezone.now() - member.last_seen_at < timedelta(minutes=1)


class SettingsTests(ChatAPITestCase):
    def test_organizer_updates_settings(self):
        response = self.patch(
            "settings", user=self.scene.organizer, payload={"slowMode": 10}
        )

        assert self.assert_success(response) == {"slowMode": 10, "isActive": True}
        self.scene.chat.refresh_from_db()
        assert self.scene.chat.slow_mode == 10

    def test_moderator_cannot_update_settings(self):
        response = self.patch(
            "settings", user=self.scene.moderator, payload={"isActive": False}
        )

        self.assert_chat_error(response, status.HTTP_403_FORBIDDEN, "NOT_AUTHORIZED")

    def test_empty_payload(self):
        response = self.patch("settings", user=self.scene.organizer, payload={})

        self.assert_http_status(response, status.HTTP_400_BAD_REQUEST)

    def test_negative_slow_mode(self):
        response = self.patch(
            "settings", user=self.scene.organizer, payload={"slowMode": -1}
        )

        self.assert_http_status(response, status.HTTP_400_BAD_REQUEST)


class UserEventChatsTests(ChatAPITestCase):
    def test_lists_joined_chats(self):
        post_message(self.scene.chat, self.scene.organizer, "see you there")
        self.authenticate(self.scene.member)

        response = self.client.get(reverse("api_v1:user-event-chats"))

        self.assert_http_status(response, status.HTTP_200_OK)
        assert response.data["status"] == "success"
        (chat,) = response.data["data"]
        assert chat["eventId"] == self.event_id
        assert chat["eventName"] == "Launch Party"

    def test_outsider_has_no_chats(self):
        self.authenticate(self.scene.outsider)

        response = self.client.get(reverse("api_v1:user-event-chats"))

        assert response.data["data"] == []
