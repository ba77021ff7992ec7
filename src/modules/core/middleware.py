import time
import uuid
from contextvars import ContextVar
from typing import Any, Callable, Dict, Optional

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()

# URL kwargs carrying an order's public tracking code.
TRACKING_CODE_KWARGS = ("code", "tracking_code")


class CorrelationIdMiddleware:
    """Tag every log line of a request with a correlation ID.

    Reads the X-Request-ID header or generates a UUID4, stores it in a
    ContextVar bound into structlog's context and echoes it back in the
    X-Request-ID response header.  Public tracking routes additionally
    bind the order's tracking code, so client-side lookups can be traced
    to the order without authentication.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        started = time.monotonic()
        logger.info(
            "request_started",
            method=request.method,
            path=request.get_full_path(),
        )

        response = self.get_response(request)

        logger.info(
            "request_finished",
            method=request.method,
            path=request.get_full_path(),
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )

        response["X-Request-ID"] = cid
        return response

    def process_view(
        self,
        request: HttpRequest,
        view_func: Callable[..., Any],
        view_args: tuple,
        view_kwargs: Dict[str, Any],
    ) -> Optional[HttpResponse]:
        for key in TRACKING_CODE_KWARGS:
            code = view_kwargs.get(key)
            if code:
                structlog.contextvars.bind_contextvars(tracking_code=code.upper())
                break
        return None
