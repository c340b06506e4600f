"""Gateway webhook verification and order payment-state updates.

A delivery is verified against a signature recomputed with the server-side
secret before anything is written. The write is a single-row overwrite keyed
by operation id, so redeliveries of the same payload converge on the same
state. Later deliveries win; there is no sequencing check.
"""

from datetime import datetime, timezone

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError

from storepay.common.config import GatewaySettings
from storepay.common.errors import InvalidWebhookError, PersistenceError, SignatureMismatchError
from storepay.common.logging import logger
from storepay.common.metrics import order_payment_updates_total, webhook_deliveries_total
from storepay.common.signing import WEBHOOK_SIGNATURE_FIELDS, compute_signature, signatures_match
from storepay.common.state_machine import map_gateway_status
from storepay.common.tracing import tracer
from storepay.services.orders.models import Order
from storepay.services.webhook.schemas import WebhookOutcome, WebhookPayload


ACK_BODY = "YES"


class WebhookService:
    """Verifies gateway callbacks and applies them to orders."""

    def __init__(self, settings: GatewaySettings, session_factory, service_name: str = "webhook") -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.service_name = service_name

    def _count(self, outcome: str) -> None:
        webhook_deliveries_total.labels(service=self.service_name, outcome=outcome).inc()

    def expected_signature(self, payload: WebhookPayload) -> str:
        return compute_signature(
            payload.signed_fields(),
            self.settings.payment_secret_key.get_secret_value(),
            WEBHOOK_SIGNATURE_FIELDS,
        )

    def verify(self, payload: WebhookPayload) -> None:
        """Raise `SignatureMismatchError` unless `sign` matches the recomputed value."""

        with tracer.start_as_current_span("webhook.verify"):
            expected = self.expected_signature(payload)
            if signatures_match(expected, payload.sign):
                return
        self._count("signature_mismatch")
        logger.warning(
            "webhook_signature_mismatch operation_id=%s payload=%s",
            payload.operation_id,
            payload.model_dump(),
        )
        raise SignatureMismatchError("Invalid signature")

    def handle(self, params: dict[str, str]) -> WebhookOutcome:
        """Verify one delivery and write the mapped status onto its order."""

        payload = WebhookPayload.model_validate(params)
        self.verify(payload)
        if not payload.operation_id:
            self._count("invalid")
            raise InvalidWebhookError("missing operation id")

        payment_status, order_status = map_gateway_status(payload.st)
        applied = self._apply(payload, payment_status, order_status)
        self._count("accepted" if applied else "unknown_order")
        return WebhookOutcome(
            operation_id=payload.operation_id,
            payment_status=payment_status,
            order_status=order_status,
            applied=applied,
        )

    def _warn_on_mismatch(self, order: Order, payload: WebhookPayload) -> None:
        stored_amount = f"{order.total_amount:.2f}"
        if payload.s != stored_amount or payload.c != order.currency:
            logger.warning(
                "webhook_amount_mismatch operation_id=%s order_amount=%s order_currency=%s "
                "webhook_amount=%s webhook_currency=%s",
                order.id,
                stored_amount,
                order.currency,
                payload.s,
                payload.c,
            )

    def _apply(self, payload: WebhookPayload, payment_status: str, order_status: str) -> bool:
        try:
            with self.session_factory() as db:
                order = db.get(Order, payload.operation_id)
                if order is None:
                    logger.warning("webhook_unknown_order operation_id=%s", payload.operation_id)
                    return False
                self._warn_on_mismatch(order, payload)
                db.execute(
                    update(Order)
                    .where(Order.id == payload.operation_id)
                    .values(
                        payment_status=payment_status,
                        status=order_status,
                        # payment_id is kept from the first delivery that carried one.
                        payment_id=func.coalesce(func.nullif(Order.payment_id, ""), payload.pid or None),
                        updated_at=datetime.now(timezone.utc),
                    )
                    .execution_options(synchronize_session=False)
                )
                db.commit()
        except SQLAlchemyError as exc:
            self._count("persistence_error")
            logger.exception("webhook_update_failed operation_id=%s", payload.operation_id)
            raise PersistenceError("Database error") from exc

        order_payment_updates_total.labels(service=self.service_name, payment_status=payment_status).inc()
        logger.info(
            "order_payment_updated operation_id=%s payment_status=%s status=%s",
            payload.operation_id,
            payment_status,
            order_status,
        )
        return True
