"""Payment request construction for the gateway redirect.

Builds the signed form the browser posts to the gateway, and creates or
reloads the order it pays for. The order id is the gateway operation id, so a
retried checkout reuses it and a redelivered webhook can never point at a
second order.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from html import escape
from urllib.parse import quote
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from storepay.common.config import GatewaySettings
from storepay.common.errors import (
    CheckoutConflictError,
    InvalidPaymentRequest,
    OrderNotFoundError,
    PersistenceError,
)
from storepay.common.logging import logger
from storepay.common.metrics import payment_redirects_total
from storepay.common.signing import OUTBOUND_SIGNATURE_FIELDS, compute_signature
from storepay.services.checkout.schemas import (
    CheckoutIntent,
    CheckoutRequest,
    PaymentRedirect,
    PaymentRequest,
    PaymentView,
)
from storepay.services.orders.models import Order


_CENT = Decimal("0.01")


def format_amount(amount) -> str:
    """Format an amount as the fixed-point string that is both signed and sent.

    `5 -> "5.00"`, `5.5 -> "5.50"`. Extra precision is rounded half-up.
    """

    try:
        value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise InvalidPaymentRequest(f"invalid amount: {amount!r}") from exc
    if not value.is_finite() or value <= 0:
        raise InvalidPaymentRequest(f"amount must be positive: {amount!r}")
    return f"{value:.2f}"


class PaymentRequestBuilder:
    """Turns a checkout intent into a signed gateway redirect."""

    def __init__(self, settings: GatewaySettings) -> None:
        self.settings = settings

    def return_url(self, outcome: str, operation_id: str) -> str:
        site_url = self.settings.site_url.rstrip("/")
        return f"{site_url}/#/payment/{outcome}?order={quote(operation_id, safe='')}"

    def build(self, intent: CheckoutIntent) -> PaymentRedirect:
        amount = format_amount(intent.amount)
        fields = {
            "merchantid": self.settings.merchant_address,
            "number": intent.operation_id,
            "currency": intent.currency.value,
            "amount": amount,
            "description": intent.description,
            "success_url": self.return_url("success", intent.operation_id),
            "fail_url": self.return_url("fail", intent.operation_id),
            "status_url": self.return_url("status", intent.operation_id),
            "interaction_url": self.settings.interaction_url,
            "lang": intent.lang,
        }
        if intent.email:
            fields["email"] = intent.email
        # The signature input is the transmitted field set itself.
        fields["sign"] = compute_signature(
            fields,
            self.settings.payment_secret_key.get_secret_value(),
            OUTBOUND_SIGNATURE_FIELDS,
        )

        request = PaymentRequest(
            operation_id=fields["number"],
            amount=fields["amount"],
            currency=fields["currency"],
            description=fields["description"],
            merchant_address=fields["merchantid"],
            success_url=fields["success_url"],
            fail_url=fields["fail_url"],
            status_url=fields["status_url"],
            interaction_url=fields["interaction_url"],
            lang=fields["lang"],
            email=fields.get("email"),
            sign=fields["sign"],
        )
        return PaymentRedirect(action=self.settings.gateway_pay_url, fields=fields, request=request)


def render_redirect_form(redirect: PaymentRedirect) -> str:
    """HTML page that posts the signed form to the gateway on load."""

    inputs = "\n".join(
        f'    <input type="hidden" name="{escape(name)}" value="{escape(value)}">'
        for name, value in redirect.fields.items()
    )
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        '<body onload="document.forms[0].submit()">\n'
        f'  <form method="{escape(redirect.method)}" action="{escape(redirect.action)}">\n'
        f"{inputs}\n"
        '    <noscript><button type="submit">Continue to payment</button></noscript>\n'
        "  </form>\n"
        "</body>\n"
        "</html>\n"
    )


class CheckoutService:
    """Creates pending orders and hands out their gateway redirects."""

    def __init__(self, settings: GatewaySettings, session_factory, service_name: str = "checkout") -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.service_name = service_name
        self.builder = PaymentRequestBuilder(settings)

    def _redirect(self, intent: CheckoutIntent) -> PaymentRedirect:
        redirect = self.builder.build(intent)
        payment_redirects_total.labels(service=self.service_name, currency=intent.currency.value).inc()
        logger.info(
            "payment_redirect_built operation_id=%s amount=%s currency=%s",
            intent.operation_id,
            redirect.request.amount,
            intent.currency.value,
        )
        return redirect

    def start_checkout(self, req: CheckoutRequest) -> PaymentRedirect:
        """Create a pending order and return its signed redirect.

        The redirect is built before the order is written, so a signing
        failure leaves no orphan order behind.
        """

        intent = CheckoutIntent(
            operation_id=str(uuid4()),
            amount=Decimal(format_amount(req.amount)),
            currency=req.currency,
            description=req.description,
            email=req.email,
            lang=req.lang or self.settings.default_language,
        )
        redirect = self._redirect(intent)

        with self.session_factory() as db:
            db.add(
                Order(
                    id=intent.operation_id,
                    email=intent.email,
                    description=intent.description,
                    total_amount=intent.amount,
                    currency=intent.currency.value,
                    status="pending",
                    payment_status="pending",
                )
            )
            try:
                db.commit()
            except SQLAlchemyError as exc:
                logger.exception("order_create_failed operation_id=%s", intent.operation_id)
                raise PersistenceError("could not create order") from exc
        return redirect

    def resume_checkout(self, order_id: str, lang: str | None = None) -> PaymentRedirect:
        """Rebuild the redirect for an existing order, reusing its operation id."""

        with self.session_factory() as db:
            order = db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        if order.payment_status != "pending":
            raise CheckoutConflictError(f"order {order_id} payment is already {order.payment_status}")

        intent = CheckoutIntent(
            operation_id=order.id,
            amount=order.total_amount,
            currency=order.currency,
            description=order.description,
            email=order.email,
            lang=lang or self.settings.default_language,
        )
        return self._redirect(intent)

    def payment_view(self, order_id: str) -> PaymentView:
        """Current order/payment status for display on the return pages."""

        with self.session_factory() as db:
            order = db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        return PaymentView(order_id=order.id, status=order.status, payment_status=order.payment_status)
