"""
HTTP metrics middleware.
"""

import time
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from tresorier.infrastructure.monitoring import metrics

# Health checks and scrapes would drown the wallet traffic
UNTRACKED_PATHS = frozenset({"/health", "/metrics"})


def _route_template(request: Request) -> str:
    # "/api/bank-accounts/{bank_account_id}" rather than the concrete id
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def _error_type(status_code: int) -> Optional[str]:
    if status_code >= 500:
        return "server_error"
    if status_code >= 400:
        return "client_error"
    return None


class MetricsMiddleware(BaseHTTPMiddleware):
    """Count requests and errors and time every API call by route template."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in UNTRACKED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        status_code = 500
        error_type: Optional[str] = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            error_type = _error_type(status_code)
            return response
        except Exception as e:
            error_type = type(e).__name__
            raise
        finally:
            endpoint = _route_template(request)
            metrics.http_request_duration_seconds.labels(
                method=request.method, endpoint=endpoint
            ).observe(time.perf_counter() - started)
            metrics.http_requests_total.labels(
                method=request.method, endpoint=endpoint, status=status_code
            ).inc()
            if error_type is not None:
                metrics.http_errors_total.labels(
                    method=request.method, endpoint=endpoint, error_type=error_type
                ).inc()
