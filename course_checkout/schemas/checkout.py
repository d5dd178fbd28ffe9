"""Checkout schemas."""

from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from course_checkout.models.order import Currency
from course_checkout.schemas.bank_account import BankAccountResponse
from course_checkout.schemas.coupon import CouponValidationResponse
from course_checkout.schemas.course import CourseResponse
from course_checkout.schemas.order import OrderResponse


class PricingResponse(BaseModel):
    currency: str
    original_price: Decimal
    discount_percent: int
    discount_amount: Decimal
    final_amount: Decimal
    is_free: bool


class EligibilityResponse(BaseModel):
    eligible: bool
    reason: str | None = None
    message: str | None = None


class CheckoutContextResponse(BaseModel):
    course: CourseResponse
    eligibility: EligibilityResponse
    coupon: CouponValidationResponse | None = None
    pricing_usd: PricingResponse | None = None
    pricing_uyu: PricingResponse | None = None
    pending_order: OrderResponse | None = None
    bank_accounts: list[BankAccountResponse] = []


class CheckoutInitiateRequest(BaseModel):
    course_id: UUID
    payment_method: Literal["mercadopago", "bank_transfer"]
    currency: Currency = Currency.USD
    coupon_code: str | None = Field(default=None, max_length=64)
    bank_account_id: UUID | None = None


class CheckoutInitiateResponse(BaseModel):
    order: OrderResponse
    redirect_url: str | None = None
