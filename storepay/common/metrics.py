"""Prometheus metric definitions shared across services."""

from time import perf_counter

from fastapi import FastAPI, Request
from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
payment_redirects_total = Counter(
    "payment_redirects_total",
    "Signed payment requests built for the gateway",
    ["service", "currency"],
)
webhook_deliveries_total = Counter(
    "webhook_deliveries_total",
    "Gateway webhook deliveries by outcome",
    ["service", "outcome"],
)
order_payment_updates_total = Counter(
    "order_payment_updates_total",
    "Order payment-status writes applied from verified webhooks",
    ["service", "payment_status"],
)


def install_http_metrics(app: FastAPI, service_name: str) -> None:
    """Record request count and latency for every HTTP call."""

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        start = perf_counter()
        route = request.url.path
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
