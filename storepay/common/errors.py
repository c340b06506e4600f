"""Error taxonomy shared by the checkout and webhook services.

Every error carries a machine-readable `code` and the HTTP status the API
layer answers with. Nothing here is retried locally; redelivery of webhooks
is the gateway's job.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storepay.common.logging import logger


class PaymentError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "PAYMENT_ERROR"
    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(PaymentError):
    """Merchant credentials or other required settings are missing."""

    code = "CONFIGURATION_ERROR"


class InvalidPaymentRequest(PaymentError):
    code = "INVALID_PAYMENT_REQUEST"
    status_code = 422


class OrderNotFoundError(PaymentError):
    code = "ORDER_NOT_FOUND"
    status_code = 404


class CheckoutConflictError(PaymentError):
    """The order is no longer awaiting payment."""

    code = "CHECKOUT_CONFLICT"
    status_code = 409


class SignatureMismatchError(PaymentError):
    code = "INVALID_SIGNATURE"
    status_code = 400


class InvalidWebhookError(PaymentError):
    code = "INVALID_WEBHOOK"
    status_code = 400


class PersistenceError(PaymentError):
    """The order write did not commit."""

    code = "DATABASE_ERROR"
    status_code = 500


def error_body(exc: PaymentError) -> dict[str, str]:
    return {"error": exc.message, "code": exc.code}


def install_error_handlers(app: FastAPI) -> None:
    """Render `PaymentError` subclasses as `{"error", "code"}` JSON responses."""

    @app.exception_handler(PaymentError)
    async def _payment_error_handler(_: Request, exc: PaymentError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_body(exc))

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal error", "code": "INTERNAL_ERROR"})
