from drf_spectacular.utils import OpenApiTypes
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import RetrieveModelMixin
from rest_framework.mixins import UpdateModelMixin
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from eventfi.audit.utils import log_action
from eventfi.chat.services import list_user_chats
from eventfi.users.models import User

from .serializers import UserSerializer


@extend_schema_view(
    retrieve=extend_schema(tags=["Users"]),
    partial_update=extend_schema(tags=["Users"]),
    update=extend_schema(tags=["Users"]),
)
class UserViewSet(RetrieveModelMixin, UpdateModelMixin, GenericViewSet):
    serializer_class = UserSerializer
    queryset = User.objects.all()
    lookup_field = "username"

    def get_queryset(self, *args, **kwargs):  # type: ignore[override]
        user = self.request.user
        if getattr(user, "is_staff", False):
            return User.objects.all()
        return User.objects.filter(pk=user.pk)

    @extend_schema(tags=["Users"])
    @action(detail=False)
    def me(self, request):
        serializer = UserSerializer(request.user, context={"request": request})
        return Response(status=status.HTTP_200_OK, data=serializer.data)

    @extend_schema(tags=["Event Chat"], responses=OpenApiTypes.OBJECT)
    @action(detail=False, url_path="event-chats")
    def event_chats(self, request):
        """Every event chat the user has joined, most recent activity first."""

        return Response({"status": "success", "data": list_user_chats(request.user.pk)})

    def perform_update(self, serializer):  # type: ignore[override]
        instance = serializer.save()
        log_action(
            "user_updated",
            actor=self.request.user,
            instance=instance,
            message=f"username={instance.username}",
        )
