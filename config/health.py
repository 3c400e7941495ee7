from __future__ import annotations

from typing import Any

import redis
from django.conf import settings
from django.db import connection
from django.db import transaction
from django.http import JsonResponse


def check_db() -> dict[str, Any]:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    else:
        return {"ok": True}


def check_redis() -> dict[str, Any]:
    """Redis backs the celery broker that runs chat housekeeping."""

    url = getattr(settings, "REDIS_URL", None)
    if not url:
        return {"ok": False, "error": "REDIS_URL not configured"}
    try:
        client = redis.Redis.from_url(
            url,
            socket_timeout=0.5,
            socket_connect_timeout=0.5,
        )
        client.ping()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    else:
        return {"ok": True}


CHECKS = {
    "db": check_db,
    "redis": check_redis,
}


# A request transaction would fail before the checks run when the db is down.
@transaction.non_atomic_requests
def health(request):
    components = {name: check() for name, check in CHECKS.items()}
    results = [c.get("ok", False) for c in components.values()]

    if all(results):
        status, http_status = "ok", 200
    else:
        status, http_status = ("degraded" if any(results) else "down"), 503

    return JsonResponse(
        {"status": status, "components": components},
        status=http_status,
    )
