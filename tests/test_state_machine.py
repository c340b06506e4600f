"""Unit tests for gateway status to order/payment status mapping."""

import pytest

from storepay.common.state_machine import ORDER_STATUSES, PAYMENT_STATUSES, map_gateway_status


@pytest.mark.parametrize(
    "code, expected",
    [
        ("1", ("paid", "processing")),
        ("0", ("failed", "cancelled")),
        ("2", ("pending", "pending")),
        ("", ("pending", "pending")),
        (None, ("pending", "pending")),
        ("7", ("pending", "pending")),
        ("success", ("pending", "pending")),
    ],
)
def test_status_mapping(code, expected):
    assert map_gateway_status(code) == expected


def test_mapped_values_are_known_statuses():
    """Every mapping result must be a value the orders table accepts."""

    for code in ("0", "1", "2", "unknown"):
        payment_status, order_status = map_gateway_status(code)
        assert payment_status in PAYMENT_STATUSES
        assert order_status in ORDER_STATUSES
