"""
Request id propagation.
"""

import re
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from tresorier.infrastructure.monitoring.logger import request_id_ctx, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

# Upstream ids end up in log lines; anything else is replaced
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Bind a request id for the duration of a request.

    A well-formed incoming X-Request-ID is reused, otherwise a UUID is
    generated. The id is echoed on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        token = request_id_ctx.set(None)
        try:
            request_id = set_request_id(
                incoming if _VALID_REQUEST_ID.match(incoming) else None
            )
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
