# observability/http_metrics.py
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQS = Counter(
    "snippetbox_requests_total", "HTTP requests by route template and status",
    ["method", "route", "status"],
)
LAT = Histogram(
    "snippetbox_request_duration_seconds", "HTTP request latency (s)",
    ["method", "route"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5),
)

UNMATCHED = "<unmatched>"


def route_label(request: Request) -> str:
    """Route template the router picked, e.g. "/snippet/{snippet_id}"; never the raw path."""
    path = request.url.path
    if path.startswith("/static/"):
        return "/static"
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or UNMATCHED


class HTTPMetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            # the route is only known once routing has run
            route = route_label(request)
            LAT.labels(request.method, route).observe(time.perf_counter() - started)
            REQS.labels(request.method, route, status).inc()
