"""Coupon schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_code(value: str) -> str:
    code = value.strip().upper()
    if not code:
        raise ValueError("Coupon code cannot be blank")
    return code


class CouponCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    description: str | None = None
    discount_percent: int = Field(ge=1, le=100)
    max_uses: int = Field(default=1, ge=1)
    valid_from: datetime | None = None
    expires_at: datetime | None = None
    restricted_to_email: str | None = Field(default=None, max_length=255)
    restricted_to_course_id: UUID | None = None
    min_purchase_amount: Decimal | None = Field(default=None, ge=0)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return _normalize_code(value)

    @field_validator("restricted_to_email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value else None


class CouponUpdate(BaseModel):
    description: str | None = None
    discount_percent: int | None = Field(default=None, ge=1, le=100)
    max_uses: int | None = Field(default=None, ge=1)
    valid_from: datetime | None = None
    expires_at: datetime | None = None
    restricted_to_email: str | None = Field(default=None, max_length=255)
    restricted_to_course_id: UUID | None = None
    min_purchase_amount: Decimal | None = Field(default=None, ge=0)
    is_active: bool | None = None

    @field_validator("discount_percent", "max_uses", "is_active")
    @classmethod
    def reject_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @field_validator("restricted_to_email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value else None


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    description: str | None = None
    discount_percent: int
    max_uses: int
    current_uses: int
    valid_from: datetime | None = None
    expires_at: datetime | None = None
    restricted_to_email: str | None = None
    restricted_to_course_id: UUID | None = None
    min_purchase_amount: Decimal | None = None
    is_active: bool
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime


class ApplyCouponRequest(BaseModel):
    course_id: UUID
    code: str = Field(min_length=1, max_length=64)


class CouponValidationResponse(BaseModel):
    valid: bool
    code: str
    discount_percent: int | None = None
    rejection: str | None = None
    message: str | None = None
