"""Order model - one purchase attempt for a course."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func

from course_checkout.core.database import Base
from course_checkout.models.shared import UUIDType, generate_uuid


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    CREATED = "created"
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_PROCESSING = "payment_processing"
    PAID = "paid"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.PAID,
        OrderStatus.REJECTED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    }
)


class PaymentMethod(str, Enum):
    MERCADOPAGO = "mercadopago"
    BANK_TRANSFER = "bank_transfer"
    FREE = "free"


class Currency(str, Enum):
    USD = "USD"
    UYU = "UYU"


class Order(Base):
    """Order model.

    Pricing and coupon terms are copied onto the order when it is created, so
    later coupon edits or deletion never rewrite historical orders.
    """

    __tablename__ = "orders"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    order_number = Column(String(32), unique=True, index=True, nullable=False)

    user_id = Column(UUIDType, nullable=False, index=True)
    user_email = Column(String(255), nullable=False)
    user_name = Column(String(255), nullable=True)
    course_id = Column(
        UUIDType, ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    status = Column(String(30), nullable=False, default=OrderStatus.CREATED.value, index=True)
    payment_method = Column(String(20), nullable=False)
    currency = Column(String(3), nullable=False, default=Currency.USD.value)

    # Pricing snapshot
    original_price_usd = Column(Numeric(12, 2), nullable=False)
    original_price_uyu = Column(Numeric(12, 2), nullable=True)
    original_amount = Column(Numeric(12, 2), nullable=False)
    discount_percent = Column(Integer, nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    final_amount = Column(Numeric(12, 2), nullable=False)

    # Coupon snapshot
    coupon_id = Column(
        UUIDType, ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True, index=True
    )
    coupon_code = Column(String(64), nullable=True)
    coupon_discount_percent = Column(Integer, nullable=True)

    # Bank transfer
    bank_account_id = Column(
        UUIDType, ForeignKey("bank_accounts.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    transfer_reference = Column(String(255), nullable=True)
    transfer_proof_url = Column(Text, nullable=True)

    # Gateway
    gateway_preference_id = Column(String(255), nullable=True, index=True)
    gateway_payment_id = Column(String(255), nullable=True, index=True)
    gateway_status = Column(String(50), nullable=True)
    gateway_status_detail = Column(String(255), nullable=True)

    failure_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    transfer_sent_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)
