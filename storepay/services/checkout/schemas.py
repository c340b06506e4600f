"""API request/response schemas for checkout endpoints."""

from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator


class Currency(str, Enum):
    """Currency codes accepted by the gateway (`RUR`, not `RUB`)."""

    RUR = "RUR"
    USD = "USD"
    EUR = "EUR"
    USDT_TRC20 = "USDT-TRC20"
    USDT_ERC20 = "USDT-ERC20"
    BTC = "BTC"


def _check_description(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("description must not be empty")
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in value):
        raise ValueError("description must not contain control characters")
    return value


class CheckoutRequest(BaseModel):
    """Checkout intent submitted by the storefront."""

    amount: Decimal = Field(gt=0, max_digits=12)
    currency: Currency
    description: str = Field(min_length=1, max_length=255)
    email: EmailStr | None = None
    lang: Literal["ru", "en"] | None = None

    check_description = field_validator("description")(_check_description)


class CheckoutRetryRequest(BaseModel):
    """Optional overrides when re-submitting payment for an existing order."""

    lang: Literal["ru", "en"] | None = None


class CheckoutIntent(BaseModel):
    """Everything the builder needs to sign one payment request."""

    operation_id: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    currency: Currency
    description: str = Field(min_length=1, max_length=255)
    email: str | None = None
    lang: Literal["ru", "en"] = "ru"

    check_description = field_validator("description")(_check_description)


class PaymentRequest(BaseModel):
    """Signed outbound payment request; built per attempt, never stored."""

    operation_id: str
    amount: str
    currency: str
    description: str
    merchant_address: str
    success_url: str
    fail_url: str
    status_url: str
    interaction_url: str
    lang: str
    email: str | None = None
    sign: str


class PaymentRedirect(BaseModel):
    """Form the browser posts to the gateway."""

    action: str
    method: str = "POST"
    fields: dict[str, str]
    request: PaymentRequest


class PaymentView(BaseModel):
    """Display-only status for the success/fail/status return pages."""

    order_id: str
    status: str
    payment_status: str
