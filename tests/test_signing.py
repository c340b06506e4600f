"""Unit tests for the gateway signature scheme."""

import pytest

from storepay.common.errors import ConfigurationError
from storepay.common.signing import (
    OUTBOUND_SIGNATURE_FIELDS,
    WEBHOOK_SIGNATURE_FIELDS,
    canonical_string,
    compute_signature,
    signatures_match,
)


SECRET = "s3cr3t"
OUTBOUND = {
    "amount": "10.00",
    "currency": "USD",
    "description": "Order order-123",
    "merchantid": "M1",
    "number": "order-123",
    "success_url": "https://shop.example.com/#/payment/success?order=order-123",
    "lang": "ru",
}
WEBHOOK = {"c": "USD", "o": "order-123", "oa": "M1", "s": "10.00", "st": "1", "pid": "pid-1"}


def test_canonical_string_sorts_names_and_joins_values():
    assert canonical_string(OUTBOUND, OUTBOUND_SIGNATURE_FIELDS) == "10.00USDOrder order-123M1order-123"
    assert canonical_string(WEBHOOK, WEBHOOK_SIGNATURE_FIELDS) == "USDorder-123M110.001"


def test_signature_is_pinned_lowercase_hex():
    """Golden values guard against accidental changes to the scheme."""

    assert compute_signature(OUTBOUND, SECRET, OUTBOUND_SIGNATURE_FIELDS) == "bc1ea749f4b53c8bfd24fa5523e17e89"
    assert compute_signature(WEBHOOK, SECRET, WEBHOOK_SIGNATURE_FIELDS) == "cd7b1677b4e71d33cef463324a1feb73"


def test_signature_is_deterministic():
    first = compute_signature(OUTBOUND, SECRET, OUTBOUND_SIGNATURE_FIELDS)
    second = compute_signature(dict(OUTBOUND), SECRET, OUTBOUND_SIGNATURE_FIELDS)
    assert first == second
    assert len(first) == 32
    assert first == first.lower()


@pytest.mark.parametrize("field", OUTBOUND_SIGNATURE_FIELDS)
def test_outbound_signature_changes_with_each_signed_field(field):
    original = compute_signature(OUTBOUND, SECRET, OUTBOUND_SIGNATURE_FIELDS)
    tampered = {**OUTBOUND, field: OUTBOUND[field] + "x"}
    assert compute_signature(tampered, SECRET, OUTBOUND_SIGNATURE_FIELDS) != original


@pytest.mark.parametrize("field", WEBHOOK_SIGNATURE_FIELDS)
def test_webhook_signature_changes_with_each_signed_field(field):
    original = compute_signature(WEBHOOK, SECRET, WEBHOOK_SIGNATURE_FIELDS)
    tampered = {**WEBHOOK, field: WEBHOOK[field] + "9"}
    assert compute_signature(tampered, SECRET, WEBHOOK_SIGNATURE_FIELDS) != original


@pytest.mark.parametrize(
    "fields, required, unsigned",
    [
        (OUTBOUND, OUTBOUND_SIGNATURE_FIELDS, "success_url"),
        (OUTBOUND, OUTBOUND_SIGNATURE_FIELDS, "lang"),
        (WEBHOOK, WEBHOOK_SIGNATURE_FIELDS, "pid"),
    ],
)
def test_unsigned_fields_do_not_affect_signature(fields, required, unsigned):
    original = compute_signature(fields, SECRET, required)
    changed = {**fields, unsigned: "something-else"}
    assert compute_signature(changed, SECRET, required) == original


def test_outbound_and_webhook_subsets_differ():
    assert set(OUTBOUND_SIGNATURE_FIELDS).isdisjoint(WEBHOOK_SIGNATURE_FIELDS)


def test_secret_changes_signature():
    assert compute_signature(WEBHOOK, SECRET, WEBHOOK_SIGNATURE_FIELDS) != compute_signature(
        WEBHOOK, "other", WEBHOOK_SIGNATURE_FIELDS
    )


def test_missing_fields_are_signed_as_empty_strings():
    """Lenient gateway behavior: absent signed fields contribute nothing."""

    assert compute_signature({}, SECRET, WEBHOOK_SIGNATURE_FIELDS) == "999011df0a5166246066b2ff101ea0a8"
    partial = {"c": "USD", "o": "order-123"}
    explicit = {"c": "USD", "o": "order-123", "oa": "", "s": "", "st": ""}
    assert compute_signature(partial, SECRET, WEBHOOK_SIGNATURE_FIELDS) == compute_signature(
        explicit, SECRET, WEBHOOK_SIGNATURE_FIELDS
    )


def test_empty_secret_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        compute_signature(WEBHOOK, "", WEBHOOK_SIGNATURE_FIELDS)


def test_signatures_match_is_exact():
    sign = compute_signature(WEBHOOK, SECRET, WEBHOOK_SIGNATURE_FIELDS)
    assert signatures_match(sign, sign)
    assert not signatures_match(sign, sign.upper())
    assert not signatures_match(sign, sign[:-1])
    assert not signatures_match(sign, "")
