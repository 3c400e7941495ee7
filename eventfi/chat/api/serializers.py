from __future__ import annotations

from rest_framework import serializers

from eventfi.chat.models import MessageType


class MessageCreateSerializer(serializers.Serializer):
    """Payload for posting a message.

    Length and blank checks are left to the message pipeline so both
    transports report the same error codes.
    """

    content = serializers.CharField(allow_blank=True, trim_whitespace=False)
    type = serializers.CharField(required=False, default=MessageType.TEXT)
    replyToId = serializers.IntegerField(required=False, allow_null=True)  # noqa: N815


class ModerateMessageSerializer(serializers.Serializer):
    action = serializers.CharField()


class MuteMemberSerializer(serializers.Serializer):
    duration = serializers.IntegerField(help_text="Minutes; 0 lifts the mute")


class ChatSettingsSerializer(serializers.Serializer):
    slowMode = serializers.IntegerField(required=False, min_value=0)  # noqa: N815
    isActive = serializers.BooleanField(required=False)  # noqa: N815

    def validate(self, attrs):
        if not attrs:
            msg = "Provide slowMode and/or isActive."
            raise serializers.ValidationError(msg)
        return attrs


class MessageHistoryQuerySerializer(serializers.Serializer):
    before = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False)


class MemberListQuerySerializer(serializers.Serializer):
    online = serializers.BooleanField(required=False, default=False)
    limit = serializers.IntegerField(required=False)
