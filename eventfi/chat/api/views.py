from __future__ import annotations

import logging
from typing import Any

from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from eventfi.chat import services
from eventfi.chat.exceptions import ChatError
from eventfi.chat.exceptions import ChatErrorCode
from eventfi.realtime.events.chat import publish_member_muted
from eventfi.realtime.events.chat import publish_message_created
from eventfi.realtime.events.chat import publish_message_moderated
from eventfi.realtime.events.chat import publish_settings_updated

from .serializers import ChatSettingsSerializer
from .serializers import MemberListQuerySerializer
from .serializers import MessageCreateSerializer
from .serializers import MessageHistoryQuerySerializer
from .serializers import ModerateMessageSerializer
from .serializers import MuteMemberSerializer

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ChatErrorCode.CHAT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ChatErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ChatErrorCode.NO_TICKET: status.HTTP_403_FORBIDDEN,
    ChatErrorCode.CHAT_DISABLED: status.HTTP_403_FORBIDDEN,
    ChatErrorCode.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    ChatErrorCode.NOT_JOINED: status.HTTP_403_FORBIDDEN,
    ChatErrorCode.USER_MUTED: status.HTTP_429_TOO_MANY_REQUESTS,
    ChatErrorCode.SLOW_MODE: status.HTTP_429_TOO_MANY_REQUESTS,
    ChatErrorCode.MESSAGE_TOO_LONG: status.HTTP_400_BAD_REQUEST,
    ChatErrorCode.INVALID_ACTION: status.HTTP_400_BAD_REQUEST,
    ChatErrorCode.INVALID_MESSAGE: status.HTTP_400_BAD_REQUEST,
    ChatErrorCode.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
}


def success(data: Any, http_status: int = status.HTTP_200_OK) -> Response:
    return Response({"status": "success", "data": data}, status=http_status)


def chat_error_response(exc: ChatError) -> Response:
    http_status = ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
    response = Response(
        {"status": "error", "code": exc.code, "detail": exc.message},
        status=http_status,
    )
    retry_after = exc.details.get("retry_after")
    if retry_after is not None:
        response["Retry-After"] = str(retry_after)
    return response


@extend_schema(tags=["Event Chat"], responses=OpenApiTypes.OBJECT)
class EventChatViewSet(ViewSet):
    """Event chat over plain HTTP, for clients that poll.

    Every action is scoped by the ``event_id`` URL kwarg. Rule violations
    come back as ``{"status": "error", "code", "detail"}``.
    """

    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc):
        if isinstance(exc, ChatError):
            return chat_error_response(exc)
        return super().handle_exception(exc)

    def retrieve(self, request, event_id=None):
        result = services.get_or_join_chat(event_id, request.user.pk)
        return success(result.as_dict())

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="before",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Only return messages older than this message id",
            ),
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Page size (default 50, max 100)",
            ),
        ],
    )
    def messages(self, request, event_id=None):
        query = MessageHistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = services.get_messages(
            event_id,
            request.user.pk,
            before=query.validated_data.get("before"),
            limit=query.validated_data.get("limit"),
        )
        return success(data)

    def pinned(self, request, event_id=None):
        return success(services.get_pinned_messages(event_id, request.user.pk))

    @extend_schema(request=MessageCreateSerializer)
    def send(self, request, event_id=None):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        message = services.send_message(
            event_id,
            request.user.pk,
            data["content"],
            data.get("type"),
            data.get("replyToId"),
        )
        publish_message_created(event_id, message)
        return success(message, status.HTTP_201_CREATED)

    @extend_schema(request=ModerateMessageSerializer)
    def moderate(self, request, event_id=None, message_id=None):
        serializer = ModerateMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.moderate_message(
            event_id,
            message_id,
            request.user.pk,
            serializer.validated_data["action"],
        )
        publish_message_moderated(event_id, result)
        return success(result)

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="online",
                type=OpenApiTypes.BOOL,
                location=OpenApiParameter.QUERY,
                description="Only members seen in the last few minutes",
            ),
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Page size (default 20, max 100)",
            ),
        ],
    )
    def members(self, request, event_id=None):
        query = MemberListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = services.get_members(
            event_id,
            request.user.pk,
            online_only=query.validated_data["online"],
            limit=query.validated_data.get("limit"),
        )
        return success(data)

    @extend_schema(request=MuteMemberSerializer)
    def mute(self, request, event_id=None, user_id=None):
        serializer = MuteMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.mute_user(
            event_id,
            user_id,
            request.user.pk,
            serializer.validated_data["duration"],
        )
        publish_member_muted(event_id, result)
        return success(result)

    @extend_schema(request=ChatSettingsSerializer)
    def update_settings(self, request, event_id=None):
        serializer = ChatSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = services.update_settings(
            event_id,
            request.user.pk,
            slow_mode=data.get("slowMode"),
            is_active=data.get("isActive"),
            actor=request.user,
        )
        publish_settings_updated(event_id, result)
        return success(result)

    @extend_schema(request=None, responses={204: None})
    def read(self, request, event_id=None):
        services.update_last_seen(event_id, request.user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
