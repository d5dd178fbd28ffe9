"""Course schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from course_checkout.models.course import CourseStatus


class CourseCreate(BaseModel):
    slug: str = Field(max_length=255)
    title: str = Field(max_length=255)
    price_usd: Decimal = Field(ge=0)
    price_uyu: Decimal | None = Field(default=None, ge=0)
    max_capacity: int | None = Field(default=None, ge=1)
    enrollment_deadline: datetime | None = None
    status: CourseStatus = CourseStatus.DRAFT


class CourseUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=255)
    price_usd: Decimal | None = Field(default=None, ge=0)
    price_uyu: Decimal | None = Field(default=None, ge=0)
    max_capacity: int | None = Field(default=None, ge=1)
    enrollment_deadline: datetime | None = None
    status: CourseStatus | None = None

    @field_validator("title", "price_usd", "status")
    @classmethod
    def reject_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    title: str
    price_usd: Decimal
    price_uyu: Decimal | None = None
    max_capacity: int | None = None
    enrolled_count: int
    enrollment_deadline: datetime | None = None
    status: str
    created_at: datetime
    updated_at: datetime
