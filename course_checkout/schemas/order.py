"""Order schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    user_id: UUID
    user_email: str
    user_name: str | None = None
    course_id: UUID
    status: str
    payment_method: str
    currency: str
    original_price_usd: Decimal
    original_price_uyu: Decimal | None = None
    original_amount: Decimal
    discount_percent: int
    discount_amount: Decimal
    final_amount: Decimal
    coupon_id: UUID | None = None
    coupon_code: str | None = None
    coupon_discount_percent: int | None = None
    bank_account_id: UUID | None = None
    transfer_reference: str | None = None
    transfer_proof_url: str | None = None
    gateway_preference_id: str | None = None
    gateway_payment_id: str | None = None
    gateway_status: str | None = None
    gateway_status_detail: str | None = None
    failure_reason: str | None = None
    created_at: datetime
    updated_at: datetime
    transfer_sent_at: datetime | None = None
    paid_at: datetime | None = None
    cancelled_at: datetime | None = None
    refunded_at: datetime | None = None


class TransferSentRequest(BaseModel):
    reference: str | None = Field(default=None, max_length=255)
    proof_url: str | None = Field(default=None, max_length=2048)


class RejectPaymentRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class OrderTransitionResponse(BaseModel):
    order: OrderResponse
    already_processed: bool = False
