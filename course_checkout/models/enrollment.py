"""Enrollment model - the entitlement granted by a paid order."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, func

from course_checkout.core.database import Base
from course_checkout.models.shared import UUIDType, generate_uuid


class EnrollmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Enrollment(Base):
    """One row per (user, course); a refunded enrollment is reactivated, not duplicated."""

    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),)

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    course_id = Column(
        UUIDType, ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    order_id = Column(
        UUIDType, ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False, unique=True
    )
    status = Column(String(20), nullable=False, default=EnrollmentStatus.CONFIRMED.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
