"""Notification outbox model.

Rows are written in the same transaction as the order transition that produced
them and delivered later by the worker.
"""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, func

from course_checkout.core.database import Base
from course_checkout.models.shared import UUIDType, generate_uuid


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class NotificationEvent(str, Enum):
    ORDER_PAID = "order.paid"
    ADMIN_PAYMENT_RECEIVED = "admin.payment_received"
    TRANSFER_INSTRUCTIONS = "order.transfer_instructions"
    TRANSFER_NEEDS_REVIEW = "admin.transfer_needs_review"
    PAYMENT_REJECTED = "order.payment_rejected"
    ORDER_CANCELLED = "order.cancelled"
    ORDER_REFUNDED = "order.refunded"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    event_type = Column(String(50), nullable=False, index=True)
    order_id = Column(
        UUIDType, ForeignKey("orders.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    recipient = Column(String(255), nullable=True)
    payload = Column(JSON, nullable=False, default=dict)

    status = Column(String(20), nullable=False, default=NotificationStatus.PENDING.value, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    sent_at = Column(DateTime(timezone=True), nullable=True)
