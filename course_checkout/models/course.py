"""Course model - the sellable unit of the catalog."""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, func

from course_checkout.core.database import Base
from course_checkout.models.shared import UUIDType, generate_uuid


class CourseStatus(str, Enum):
    DRAFT = "draft"
    ANNOUNCED = "announced"
    ENROLLING = "enrolling"
    FULL = "full"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Course(Base):
    """Course with independent USD and UYU list prices."""

    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint(
            "max_capacity IS NULL OR enrolled_count <= max_capacity",
            name="ck_courses_capacity",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    title = Column(String(255), nullable=False)

    price_usd = Column(Numeric(12, 2), nullable=False)
    price_uyu = Column(Numeric(12, 2), nullable=True)

    max_capacity = Column(Integer, nullable=True)
    enrolled_count = Column(Integer, nullable=False, default=0)
    enrollment_deadline = Column(DateTime(timezone=True), nullable=True)

    status = Column(String(20), nullable=False, default=CourseStatus.DRAFT.value, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
