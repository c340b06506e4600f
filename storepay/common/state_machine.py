"""Order and payment status values driven by gateway webhooks."""

ORDER_STATUSES: frozenset[str] = frozenset({"pending", "processing", "completed", "cancelled"})
PAYMENT_STATUSES: frozenset[str] = frozenset({"pending", "paid", "failed", "cancelled", "refunded"})

# Gateway status code -> (payment_status, order_status).
GATEWAY_STATUS_MAP: dict[str, tuple[str, str]] = {
    "1": ("paid", "processing"),
    "0": ("failed", "cancelled"),
    "2": ("pending", "pending"),
}
UNKNOWN_STATUS_RESULT: tuple[str, str] = ("pending", "pending")


def map_gateway_status(code: str | None) -> tuple[str, str]:
    """Translate a gateway status code into `(payment_status, order_status)`.

    Unknown or empty codes are treated as pending so that new gateway statuses
    do not break webhook handling.
    """

    return GATEWAY_STATUS_MAP.get(code or "", UNKNOWN_STATUS_RESULT)
