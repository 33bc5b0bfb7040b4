"""Request-scoped logging context."""

from __future__ import annotations

import uuid

import structlog


class RequestContextMiddleware:
    """Binds request id, path and caller into structlog contextvars.

    Every log record emitted while the request is handled, including stdlib
    ``logging`` records rendered through the structlog formatter, carries
    these keys. The id is echoed back in the ``X-Request-ID`` header.
    """

    header = "HTTP_X_REQUEST_ID"

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = request.META.get(self.header) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.path,
        )
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            structlog.contextvars.bind_contextvars(user_id=str(user.pk))

        try:
            response = self.get_response(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response["X-Request-ID"] = request_id
        return response


class LogContextMixin:
    """Adds the DRF-authenticated caller to the logging context.

    Token authentication runs inside the view, after the middleware above,
    so ``user_id`` is bound once DRF has resolved ``request.user``.
    """

    def perform_authentication(self, request):
        super().perform_authentication(request)
        user = request.user
        if user is not None and user.is_authenticated:
            structlog.contextvars.bind_contextvars(user_id=str(user.pk))
