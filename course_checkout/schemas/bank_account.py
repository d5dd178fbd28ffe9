"""Bank account schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from course_checkout.models.order import Currency


class BankAccountCreate(BaseModel):
    bank_name: str = Field(min_length=1, max_length=255)
    account_holder: str = Field(min_length=1, max_length=255)
    account_type: str = Field(min_length=1, max_length=50)
    account_number: str = Field(min_length=1, max_length=64)
    currency: Currency
    swift_code: str | None = Field(default=None, max_length=20)
    routing_number: str | None = Field(default=None, max_length=50)
    notes: str | None = None
    display_order: int = Field(default=0, ge=0)
    is_active: bool = True


class BankAccountUpdate(BaseModel):
    bank_name: str | None = Field(default=None, min_length=1, max_length=255)
    account_holder: str | None = Field(default=None, min_length=1, max_length=255)
    account_type: str | None = Field(default=None, min_length=1, max_length=50)
    account_number: str | None = Field(default=None, min_length=1, max_length=64)
    currency: Currency | None = None
    swift_code: str | None = Field(default=None, max_length=20)
    routing_number: str | None = Field(default=None, max_length=50)
    notes: str | None = None
    display_order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None

    @field_validator(
        "bank_name",
        "account_holder",
        "account_type",
        "account_number",
        "currency",
        "display_order",
        "is_active",
    )
    @classmethod
    def reject_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class BankAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    bank_name: str
    account_holder: str
    account_type: str
    account_number: str
    currency: str
    swift_code: str | None = None
    routing_number: str | None = None
    notes: str | None = None
    display_order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class BankAccountReorderRequest(BaseModel):
    account_ids: list[UUID] = Field(min_length=1)
