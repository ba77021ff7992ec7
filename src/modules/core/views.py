import time
from typing import Any, Callable, Dict, Tuple

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

logger = structlog.get_logger()

CACHE_PROBE_KEY = "_health_check"


def _ping_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _ping_cache() -> None:
    cache.set(CACHE_PROBE_KEY, "ok", 10)
    if cache.get(CACHE_PROBE_KEY) != "ok":
        raise ConnectionError("Cache read failed")


PROBES: Tuple[Tuple[str, Callable[[], None]], ...] = (
    ("database", _ping_database),
    ("cache", _ping_cache),
)


def _probe(name: str, ping: Callable[[], None]) -> Dict[str, Any]:
    start = time.monotonic()
    try:
        ping()
    except Exception:
        logger.error("health_check.service_down", service=name, exc_info=True)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Liveness of the backing services used by order tracking.

    Public (no JWT) so load balancers can poll it; 503 when any probe fails.
    """
    services = {name: _probe(name, ping) for name, ping in PROBES}
    healthy = all(result["status"] == "up" for result in services.values())
    status = "healthy" if healthy else "unhealthy"

    logger.info("health_check.completed", status=status)

    return JsonResponse(
        {
            "status": status,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )


class CurrentActorView(APIView):
    """Identity recorded on history and audit entries for the caller.

    Requires a valid JWT (no token or bad token -> 401).
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: HttpRequest) -> Response:
        from modules.orders.dtos import Actor

        return Response(Actor.from_user(request.user).model_dump())
