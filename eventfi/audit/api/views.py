from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from eventfi.audit.api.serializers import AuditLogSerializer
from eventfi.audit.models import AuditLog

if TYPE_CHECKING:
    from django.db.models import QuerySet


class RecentAuditView(APIView):
    """Latest audit entries, newest first (staff only).

    Optional `model` filter narrows to one model, e.g. `ChatMessage` for the
    moderation trail of deleted/pinned messages.
    """

    permission_classes = [IsAdminUser]

    def get(self, request):
        try:
            limit = int(request.query_params.get("limit", "20"))
        except (TypeError, ValueError):
            limit = 20
        limit = max(1, min(limit, 100))

        qs: QuerySet[AuditLog] = AuditLog.objects.select_related("actor").all()
        model_name = request.query_params.get("model")
        if model_name:
            qs = qs.filter(model_name=model_name)
        rows = list(qs[:limit])
        data = AuditLogSerializer(rows, many=True).data
        return Response({"results": data, "limit": limit})
