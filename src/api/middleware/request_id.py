"""Request ID tracking middleware."""

import uuid
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's request ID, or assign one, and echo it back."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
        if not incoming or len(incoming) > MAX_REQUEST_ID_LENGTH:
            incoming = uuid.uuid4().hex
        request.state.request_id = incoming

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = incoming
        return response
