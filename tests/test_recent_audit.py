from __future__ import annotations

from django.utils import timezone
from rest_framework import status

from eventfi.audit.models import AuditLog
from eventfi.chat.tests.factories import create_user
from eventfi.chat.tests.factories import post_message
from tests.chat.mixins import ChatAPITestCase


class TestRecentAuditEndpoint(ChatAPITestCase):
    def setUp(self):
        super().setUp()
        self.staff = create_user("staff", is_staff=True)

    def get_recent(self, user, **params):
        self.authenticate(user)
        return self.client.get("/api/v1/audit/recent/", data=params)

    def test_recent_audit_requires_staff(self):
        denied = self.get_recent(self.scene.organizer)
        self.assert_http_status(denied, status.HTTP_403_FORBIDDEN)

        allowed = self.get_recent(self.staff)
        self.assert_http_status(allowed, status.HTTP_200_OK)

    def test_recent_audit_respects_limit(self):
        # Deterministic timestamps so ordering is stable.
        base = timezone.now()
        created = [
            AuditLog.objects.create(action=f"test_action_{i}", message=str(i))
            for i in range(6)
        ]
        for i, row in enumerate(created):
            AuditLog.objects.filter(pk=row.pk).update(
                created_at=base + timezone.timedelta(seconds=i)
            )

        res = self.get_recent(self.staff, limit=5)
        self.assert_http_status(res, status.HTTP_200_OK)
        assert res.data["limit"] == 5
        actions = [r["action"] for r in res.data["results"]]
        assert actions == [
            "test_action_5",
            "test_action_4",
            "test_action_3",
            "test_action_2",
            "test_action_1",
        ]

    def test_moderation_trail(self):
        message = post_message(self.scene.chat, self.scene.member, "spam")
        self.patch(
            "message-detail",
            user=self.scene.moderator,
            payload={"action": "delete"},
            message_id=message.pk,
        )
        self.patch("settings", user=self.scene.organizer, payload={"slowMode": 5})

        res = self.get_recent(self.staff, model="ChatMessage")

        self.assert_http_status(res, status.HTTP_200_OK)
        (row,) = res.data["results"]
        assert row["action"] == "chat.message.deleted"
        assert row["record_id"] == message.pk
        assert row["actor"]["username"] == "cohost"
