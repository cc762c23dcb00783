from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from aether.main.request_context import clear_request_context, set_request_context

CORRELATION_ID_HEADER = "X-Correlation-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Seeds the logging context with a correlation id for every request."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid4())
        request.state.correlation_id = correlation_id

        clear_request_context()
        set_request_context(correlation_id=correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_context()

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
