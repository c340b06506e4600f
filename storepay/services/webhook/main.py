"""HTTP ingress for gateway payment webhooks.

Run with `uvicorn --factory storepay.services.webhook.main:create_app`. This
process holds the signing secret; nothing it computes is sent to browsers.
"""

import json
from uuid import uuid4

from fastapi import FastAPI, Header, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from storepay.common.config import GatewaySettings, load_settings
from storepay.common.db import make_session_factory
from storepay.common.errors import InvalidWebhookError, install_error_handlers
from storepay.common.logging import configure_logging, logger, operation_id_ctx, trace_id_ctx
from storepay.common.metrics import install_http_metrics, metrics_response
from storepay.common.startup import log_startup_config
from storepay.common.tracing import instrument_app, setup_tracing
from storepay.services.webhook.service import ACK_BODY, WebhookService


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


async def read_webhook_params(request: Request) -> dict[str, str]:
    """Collect webhook fields from a form, JSON body, or query string."""

    content_type = request.headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
        form = await request.form()
        return {key: _as_text(value) for key, value in form.items()}
    if "application/json" in content_type:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidWebhookError("malformed JSON body") from exc
        if not isinstance(body, dict):
            raise InvalidWebhookError("JSON body must be an object")
        return {key: _as_text(value) for key, value in body.items()}
    return dict(request.query_params)


def create_app(settings: GatewaySettings | None = None, session_factory=None) -> FastAPI:
    """Build the webhook app; settings are validated before anything else runs."""

    settings = settings or load_settings()
    configure_logging(settings.service_name, settings.log_level)
    if settings.tracing_enabled:
        setup_tracing(settings)
    log_startup_config(settings)
    if session_factory is None:
        session_factory = make_session_factory(settings.postgres_dsn, settings.db_statement_timeout_ms)
    service = WebhookService(settings, session_factory, service_name=settings.service_name)

    app = FastAPI(title="Storepay Payment Webhook")
    if settings.tracing_enabled:
        instrument_app(app)
    install_http_metrics(app, settings.service_name)
    install_error_handlers(app)
    app.state.webhook = service

    @app.post("/api/payment-webhook", response_class=PlainTextResponse)
    async def payment_webhook(request: Request, x_trace_id: str | None = Header(default=None)):
        """Verify a gateway callback and update the order it refers to."""

        trace_id_ctx.set(x_trace_id or str(uuid4()))
        params = await read_webhook_params(request)
        operation_id_ctx.set(params.get("o", ""))
        logger.info("webhook_received params=%s", params)
        await run_in_threadpool(service.handle, params)
        return PlainTextResponse(ACK_BODY, status_code=200)

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    @app.get("/health")
    def health():
        """Container health probe endpoint."""

        return {"ok": True}

    return app
