"""Coupon model for percentage discounts on courses."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)

from course_checkout.core.database import Base
from course_checkout.models.shared import UUIDType, generate_uuid


class Coupon(Base):
    """Coupon model.

    ``current_uses`` only moves through the order finalization transaction and
    can never exceed ``max_uses``.
    """

    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("current_uses <= max_uses", name="ck_coupons_uses"),
        CheckConstraint(
            "discount_percent >= 1 AND discount_percent <= 100",
            name="ck_coupons_discount_percent",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(64), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)

    discount_percent = Column(Integer, nullable=False)
    max_uses = Column(Integer, nullable=False, default=1)
    current_uses = Column(Integer, nullable=False, default=0)

    valid_from = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    restricted_to_email = Column(String(255), nullable=True)
    restricted_to_course_id = Column(
        UUIDType, ForeignKey("courses.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    min_purchase_amount = Column(Numeric(12, 2), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
