"""Pydantic schemas for recorded payments."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from coworkhub.models.enums import PaymentStatus


class PaymentBase(BaseModel):
    """Shared fields for creating and reading recorded payments."""

    amount: Decimal = Field(
        ...,
        max_digits=15,
        decimal_places=2,
        description="Payment amount in its currency",
    )
    currency: str = Field(
        "USD",
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code",
    )
    reference: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    status: PaymentStatus = PaymentStatus.COMPLETED
    processed_at: Optional[datetime] = None


class PaymentCreate(PaymentBase):
    """Schema for loading a recorded payment (request body item)."""

    id: Optional[UUID] = Field(
        None,
        description="Keep the payment id from the billing system when known",
    )


class PaymentResponse(PaymentBase):
    """Schema returned when reading a recorded payment."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str
    created_at: Optional[datetime] = None


class PaymentLoadResult(BaseModel):
    """Outcome of a bulk payment load."""

    status: str = Field(..., description="success | partial | failed")
    saved: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
