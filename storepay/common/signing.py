"""Keyed signatures for the gateway protocol.

The gateway signs a fixed subset of transaction fields: the field names are
sorted, their values concatenated without a separator, and the result is
HMAC-MD5'd with the merchant secret. Outbound payment requests and inbound
webhooks use different subsets.
"""

import hashlib
import hmac
from collections.abc import Iterable, Mapping

from storepay.common.errors import ConfigurationError


OUTBOUND_SIGNATURE_FIELDS: tuple[str, ...] = ("amount", "currency", "description", "merchantid", "number")
WEBHOOK_SIGNATURE_FIELDS: tuple[str, ...] = ("c", "o", "oa", "s", "st")


def canonical_string(fields: Mapping[str, str], required: Iterable[str]) -> str:
    """Concatenate the values of `required` fields in sorted-name order.

    A missing field contributes an empty string. The gateway does the same,
    so failing here would reject payloads it considers valid.
    """

    return "".join(fields.get(name) or "" for name in sorted(required))


def compute_signature(fields: Mapping[str, str], secret: str, required: Iterable[str]) -> str:
    """Return the lowercase hex HMAC-MD5 of the canonical string."""

    if not secret:
        raise ConfigurationError("payment secret key is not configured")
    message = canonical_string(fields, required)
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.md5).hexdigest()


def signatures_match(expected: str, received: str) -> bool:
    """Constant-time comparison of two hex signatures."""

    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))
