from datetime import timedelta

import pytest
from django.utils import timezone

from eventfi.audit.models import AuditLog
from eventfi.chat import services
from eventfi.chat.exceptions import ChatError
from eventfi.chat.exceptions import ChatErrorCode
from eventfi.chat.models import ChatMember
from eventfi.chat.models import ChatMessage
from eventfi.chat.tests.factories import add_team_member
from eventfi.chat.tests.factories import create_event
from eventfi.chat.tests.factories import create_user
from eventfi.chat.tests.factories import join
from eventfi.chat.tests.factories import post_message

pytestmark = pytest.mark.django_db


class TestModerateMessage:
    def test_member_deletes_own_message(self, scene):
        message = post_message(scene.chat, scene.member, "oops")

        result = services.moderate_message(
            scene.event_id, message.pk, scene.member.pk, "delete"
        )

        assert result == {
            "messageId": message.pk,
            "action": "deleted",
            "deletedBy": scene.member.pk,
        }
        message.refresh_from_db()
        assert message.is_deleted is True
        assert message.content == "oops"
        history = services.get_messages(scene.event_id, scene.member.pk)
        assert message.pk not in [m["id"] for m in history["messages"]]

    def test_member_cannot_delete_others_message(self, scene):
        other = create_user("other")
        join(scene.chat, other)
        message = post_message(scene.chat, other, "mine")

        with pytest.raises(ChatError) as exc:
            services.moderate_message(
                scene.event_id, message.pk, scene.member.pk, "delete"
            )

        assert exc.value.code == ChatErrorCode.NOT_AUTHORIZED
        message.refresh_from_db()
        assert message.is_deleted is False

    def test_moderator_deletes_any_message(self, scene):
        message = post_message(scene.chat, scene.member, "spam")

        services.moderate_message(scene.event_id, message.pk, scene.moderator.pk, "delete")

        message.refresh_from_db()
        assert message.is_deleted is True
        assert message.deleted_by == scene.moderator

    def test_delete_is_idempotent(self, scene):
        message = post_message(scene.chat, scene.member, "spam")
        services.moderate_message(scene.event_id, message.pk, scene.moderator.pk, "delete")

        result = services.moderate_message(
            scene.event_id, message.pk, scene.organizer.pk, "delete"
        )

        assert result["deletedBy"] == scene.moderator.pk

    def test_delete_is_audited(self, scene):
        message = post_message(scene.chat, scene.member, "spam")

        services.moderate_message(scene.event_id, message.pk, scene.moderator.pk, "delete")

        log = AuditLog.objects.get(action="chat.message.deleted")
        assert log.actor == scene.moderator
        assert log.model_name == "ChatMessage"
        assert log.record_id == message.pk

    def test_pin_and_unpin(self, scene):
        message = post_message(scene.chat, scene.member, "important")

        pinned = services.moderate_message(
            scene.event_id, message.pk, scene.moderator.pk, "pin"
        )
        assert pinned == {"messageId": message.pk, "action": "pin", "isPinned": True}

        unpinned = services.moderate_message(
            scene.event_id, message.pk, scene.organizer.pk, "unpin"
        )
        assert unpinned["isPinned"] is False

    def test_member_cannot_pin(self, scene):
        message = post_message(scene.chat, scene.member, "me me me")

        with pytest.raises(ChatError) as exc:
            services.moderate_message(scene.event_id, message.pk, scene.member.pk, "pin")
        assert exc.value.code == ChatErrorCode.NOT_AUTHORIZED

    def test_deleted_message_cannot_be_pinned(self, scene):
        message = post_message(scene.chat, scene.member, "gone", is_deleted=True)

        with pytest.raises(ChatError) as exc:
            services.moderate_message(
                scene.event_id, message.pk, scene.moderator.pk, "pin"
            )
        assert exc.value.code == ChatErrorCode.NOT_FOUND

    def test_invalid_action(self, scene):
        message = post_message(scene.chat, scene.member)

        with pytest.raises(ChatError) as exc:
            services.moderate_message(
                scene.event_id, message.pk, scene.organizer.pk, "archive"
            )
        assert exc.value.code == ChatErrorCode.INVALID_ACTION

    def test_message_from_another_chat_is_not_found(self, scene):
        other_event = create_event(scene.organizer, title="Elsewhere")
        foreign = post_message(other_event.chat, scene.organizer)

        with pytest.raises(ChatError) as exc:
            services.moderate_message(
                scene.event_id, foreign.pk, scene.organizer.pk, "delete"
            )
        assert exc.value.code == ChatErrorCode.NOT_FOUND

    def test_non_member_cannot_moderate(self, scene):
        message = post_message(scene.chat, scene.member)

        with pytest.raises(ChatError) as exc:
            services.moderate_message(
                scene.event_id, message.pk, scene.outsider.pk, "delete"
            )
        assert exc.value.code == ChatErrorCode.NOT_AUTHORIZED


class TestMuteUser:
    def test_moderator_mutes_member(self, scene):
        before = timezone.now()

        result = services.mute_user(scene.event_id, scene.member.pk, scene.moderator.pk, 10)

        assert result["userId"] == scene.member.pk
        assert result["isMuted"] is True
        member = ChatMember.objects.get(chat=scene.chat, user=scene.member)
        assert member.is_muted is True
        assert member.muted_until >= before + timedelta(minutes=10)
        assert result["until"] == member.muted_until.isoformat()

    def test_zero_duration_unmutes(self, scene):
        services.mute_user(scene.event_id, scene.member.pk, scene.moderator.pk, 10)

        result = services.mute_user(scene.event_id, scene.member.pk, scene.moderator.pk, 0)

        assert result == {"userId": scene.member.pk, "isMuted": False, "until": None}
        member = ChatMember.objects.get(chat=scene.chat, user=scene.member)
        assert member.is_muted is False
        assert member.muted_until is None

    def test_moderator_cannot_mute_organizer(self, scene):
        with pytest.raises(ChatError) as exc:
            services.mute_user(scene.event_id, scene.organizer.pk, scene.moderator.pk, 10)
        assert exc.value.code == ChatErrorCode.NOT_AUTHORIZED

    def test_moderator_cannot_mute_peer(self, scene):
        peer = create_user("peer")
        add_team_member(scene.event, peer)
        join(scene.chat, peer, role="moderator")

        with pytest.raises(ChatError) as exc:
            services.mute_user(scene.event_id, peer.pk, scene.moderator.pk, 10)
        assert exc.value.code == ChatErrorCode.NOT_AUTHORIZED

    def test_organizer_mutes_moderator(self, scene):
        result = services.mute_user(scene.event_id, scene.moderator.pk, scene.organizer.pk, 5)
        assert result["isMuted"] is True

    def test_member_cannot_mute(self, scene):
        other = create_user("other")
        join(scene.chat, other)

        with pytest.raises(ChatError) as exc:
            services.mute_user(scene.event_id, other.pk, scene.member.pk, 10)
        assert exc.value.code == ChatErrorCode.NOT_AUTHORIZED

    def test_rank_uses_current_team_role(self, scene):
        """A stale cached member role cannot shield a freshly promoted co-host."""

        promoted = create_user("promoted")
        join(scene.chat, promoted, role="member")
        add_team_member(scene.event, promoted)

        with pytest.raises(ChatError) as exc:
            services.mute_user(scene.event_id, promoted.pk, scene.moderator.pk, 10)
        assert exc.value.code == ChatErrorCode.NOT_AUTHORIZED

    def test_unknown_target(self, scene):
        with pytest.raises(ChatError) as exc:
            services.mute_user(scene.event_id, scene.outsider.pk, scene.moderator.pk, 10)
        assert exc.value.code == ChatErrorCode.NOT_FOUND

    def test_negative_duration(self, scene):
        with pytest.raises(ChatError) as exc:
            services.mute_user(scene.event_id, scene.member.pk, scene.moderator.pk, -5)
        assert exc.value.code == ChatErrorCode.INVALID_REQUEST

    def test_mute_is_audited(self, scene):
        services.mute_user(scene.event_id, scene.member.pk, scene.moderator.pk, 10)

        log = AuditLog.objects.get(action="chat.member.muted")
        assert log.actor == scene.moderator
        assert log.after["isMuted"] is True


def test_audit_failure_does_not_block_moderation(scene, monkeypatch):
    message = post_message(scene.chat, scene.member)

    def broken(*args, **kwargs):
        msg = "audit table unavailable"
        raise RuntimeError(msg)

    monkeypatch.setattr("eventfi.audit.utils.log_action", broken)

    result = services.moderate_message(
        scene.event_id, message.pk, scene.moderator.pk, "delete"
    )

    assert result["action"] == "deleted"
    assert ChatMessage.objects.get(pk=message.pk).is_deleted is True
