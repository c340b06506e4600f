"""Order table whose payment lifecycle the checkout and webhook services drive.

Rows are created at checkout. `payment_status` and `payment_id` are written
only by the webhook service.
"""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from storepay.common.db import Base


class Order(Base):
    """Current fulfillment and payment state of one storefront order."""

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    description: Mapped[str] = mapped_column(String(255))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    currency: Mapped[str] = mapped_column(String(16))
    status: Mapped[str] = mapped_column(String, default="pending", index=True)
    payment_status: Mapped[str] = mapped_column(String, default="pending", index=True)
    payment_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
