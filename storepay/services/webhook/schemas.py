"""Inbound webhook payload and handling outcome."""

from pydantic import BaseModel, ConfigDict, Field


class WebhookPayload(BaseModel):
    """Gateway callback fields; untrusted until the signature is verified."""

    model_config = ConfigDict(extra="ignore")

    o: str = ""
    oa: str = ""
    c: str = ""
    s: str = ""
    st: str = ""
    pid: str = ""
    sign: str = ""

    @property
    def operation_id(self) -> str:
        return self.o

    def signed_fields(self) -> dict[str, str]:
        return {"c": self.c, "o": self.o, "oa": self.oa, "s": self.s, "st": self.st}


class WebhookOutcome(BaseModel):
    operation_id: str
    payment_status: str
    order_status: str
    applied: bool = Field(description="False when no order matched the operation id")
