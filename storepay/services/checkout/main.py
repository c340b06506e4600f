"""HTTP surface for checkout: signed gateway redirects and return-page status.

Run with `uvicorn --factory storepay.services.checkout.main:create_app`.
"""

from uuid import uuid4

from fastapi import FastAPI, Header
from fastapi.responses import HTMLResponse

from storepay.common.config import GatewaySettings, load_settings
from storepay.common.db import make_session_factory
from storepay.common.errors import install_error_handlers
from storepay.common.logging import configure_logging, operation_id_ctx, trace_id_ctx
from storepay.common.metrics import install_http_metrics, metrics_response
from storepay.common.startup import log_startup_config
from storepay.common.tracing import instrument_app, setup_tracing
from storepay.services.checkout.schemas import (
    CheckoutRequest,
    CheckoutRetryRequest,
    PaymentRedirect,
    PaymentView,
)
from storepay.services.checkout.service import CheckoutService, render_redirect_form


def create_app(settings: GatewaySettings | None = None, session_factory=None) -> FastAPI:
    """Build the checkout app; settings are validated before anything else runs."""

    settings = settings or load_settings()
    configure_logging(settings.service_name, settings.log_level)
    if settings.tracing_enabled:
        setup_tracing(settings)
    log_startup_config(settings)
    if session_factory is None:
        session_factory = make_session_factory(settings.postgres_dsn, settings.db_statement_timeout_ms)
    service = CheckoutService(settings, session_factory, service_name=settings.service_name)

    app = FastAPI(title="Storepay Checkout")
    if settings.tracing_enabled:
        instrument_app(app)
    install_http_metrics(app, settings.service_name)
    install_error_handlers(app)
    app.state.checkout = service

    @app.post("/checkout", response_model=PaymentRedirect, status_code=201)
    def start_checkout(req: CheckoutRequest, x_trace_id: str | None = Header(default=None)):
        """Create a pending order and return the signed gateway form."""

        trace_id_ctx.set(x_trace_id or str(uuid4()))
        redirect = service.start_checkout(req)
        operation_id_ctx.set(redirect.request.operation_id)
        return redirect

    @app.post("/checkout/{order_id}/retry", response_model=PaymentRedirect)
    def retry_checkout(
        order_id: str,
        req: CheckoutRetryRequest | None = None,
        x_trace_id: str | None = Header(default=None),
    ):
        """Re-issue the gateway form for an order that is still awaiting payment."""

        trace_id_ctx.set(x_trace_id or str(uuid4()))
        operation_id_ctx.set(order_id)
        return service.resume_checkout(order_id, lang=req.lang if req else None)

    @app.get("/checkout/{order_id}/redirect", response_class=HTMLResponse)
    def redirect_page(order_id: str, lang: str | None = None):
        """Auto-submitting form that sends the browser to the gateway."""

        operation_id_ctx.set(order_id)
        if lang not in ("ru", "en"):
            lang = None
        return HTMLResponse(render_redirect_form(service.resume_checkout(order_id, lang=lang)))

    @app.get("/payments/{order_id}", response_model=PaymentView)
    def payment_status(order_id: str):
        """Display-only status lookup for the success/fail/status pages."""

        return service.payment_view(order_id)

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    @app.get("/health")
    def health():
        """Container health probe endpoint."""

        return {"ok": True}

    return app
