"""Request metrics middleware."""

from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from growthpath.telemetry import IN_FLIGHT_REQUESTS, observe_request

_UNTRACKED_PATHS = frozenset({"/metrics"})


class TelemetryMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus request metrics, skipping the scrape endpoint."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path in _UNTRACKED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        IN_FLIGHT_REQUESTS.inc()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            IN_FLIGHT_REQUESTS.dec()
            observe_request(
                request.method,
                self._route_template(request),
                status_code,
                time.perf_counter() - start_time,
            )

    @staticmethod
    def _route_template(request: Request) -> str:
        """Return the matched route path so labels stay low-cardinality."""

        route = request.scope.get("route")
        path = getattr(route, "path", None)
        return path or request.url.path
