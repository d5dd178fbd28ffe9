"""Order repository for data access."""

import secrets
from collections.abc import Collection
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Query, Session

from course_checkout.core.config import settings
from course_checkout.models.order import Order, OrderStatus, PaymentMethod
from course_checkout.models.shared import utc_now

MAX_ORDER_NUMBER_ATTEMPTS = 5

OPEN_ORDER_STATUSES = (
    OrderStatus.CREATED,
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.PAYMENT_PROCESSING,
)


def generate_order_number(now: datetime | None = None, prefix: str | None = None) -> str:
    """Build a human-readable order number such as ``TA-20260314-0042``."""
    now = now or utc_now()
    prefix = prefix or settings.ORDER_NUMBER_PREFIX
    return f"{prefix}-{now:%Y%m%d}-{secrets.randbelow(10000):04d}"


class OrderRepository:
    """Repository for Order model."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        status: OrderStatus | None = None,
        payment_method: PaymentMethod | None = None,
        course_id: UUID | None = None,
        user_id: UUID | None = None,
    ) -> Query[Order]:
        query = self.db.query(Order)

        if status:
            query = query.filter(Order.status == status.value)
        if payment_method:
            query = query.filter(Order.payment_method == payment_method.value)
        if course_id:
            query = query.filter(Order.course_id == course_id)
        if user_id:
            query = query.filter(Order.user_id == user_id)
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 50,
        status: OrderStatus | None = None,
        payment_method: PaymentMethod | None = None,
        course_id: UUID | None = None,
        user_id: UUID | None = None,
    ) -> list[Order]:
        """Get all orders with optional filters, newest first."""
        query = self._filtered(status, payment_method, course_id, user_id)
        return query.order_by(Order.created_at.desc()).offset(skip).limit(limit).all()

    def count(
        self,
        status: OrderStatus | None = None,
        payment_method: PaymentMethod | None = None,
        course_id: UUID | None = None,
        user_id: UUID | None = None,
    ) -> int:
        """Count orders matching the same filters as ``get_all``."""
        return self._filtered(status, payment_method, course_id, user_id).count()

    def get_by_id(self, order_id: UUID) -> Order | None:
        """Get an order by ID."""
        return self.db.query(Order).filter(Order.id == order_id).first()

    def get_by_number(self, order_number: str) -> Order | None:
        """Get an order by its order number."""
        return self.db.query(Order).filter(Order.order_number == order_number).first()

    def get_by_gateway_payment_id(self, payment_id: str) -> Order | None:
        """Get an order by the gateway's payment ID."""
        return self.db.query(Order).filter(Order.gateway_payment_id == payment_id).first()

    def get_by_gateway_preference_id(self, preference_id: str) -> Order | None:
        """Get an order by the gateway's checkout preference ID."""
        return (
            self.db.query(Order).filter(Order.gateway_preference_id == preference_id).first()
        )

    def get_for_user(self, user_id: UUID) -> list[Order]:
        """Get all orders placed by a user, newest first."""
        return (
            self.db.query(Order)
            .filter(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
            .all()
        )

    def get_open_for_course(self, user_id: UUID, course_id: UUID) -> Order | None:
        """Get the user's most recent non-terminal order for a course."""
        return (
            self.db.query(Order)
            .filter(
                Order.user_id == user_id,
                Order.course_id == course_id,
                Order.status.in_([s.value for s in OPEN_ORDER_STATUSES]),
            )
            .order_by(Order.created_at.desc())
            .first()
        )

    def get_pending_transfers(self) -> list[Order]:
        """Bank transfer orders awaiting admin review, oldest first."""
        return (
            self.db.query(Order)
            .filter(
                Order.payment_method == PaymentMethod.BANK_TRANSFER.value,
                Order.status.in_(
                    [OrderStatus.PENDING_PAYMENT.value, OrderStatus.PAYMENT_PROCESSING.value]
                ),
            )
            .order_by(Order.created_at.asc())
            .all()
        )

    def create(
        self,
        *,
        user_id: UUID,
        user_email: str,
        user_name: str | None,
        course_id: UUID,
        payment_method: PaymentMethod,
        currency: str,
        original_price_usd: Decimal,
        original_price_uyu: Decimal | None,
        original_amount: Decimal,
        discount_percent: int,
        discount_amount: Decimal,
        final_amount: Decimal,
        coupon_id: UUID | None = None,
        coupon_code: str | None = None,
        coupon_discount_percent: int | None = None,
    ) -> Order:
        """Create a new order in ``created`` status with a unique order number."""
        order_number = generate_order_number()
        attempts = 1
        while self.get_by_number(order_number) is not None:
            if attempts >= MAX_ORDER_NUMBER_ATTEMPTS:
                raise RuntimeError("Could not generate a unique order number")
            order_number = generate_order_number()
            attempts += 1

        order = Order(
            order_number=order_number,
            user_id=user_id,
            user_email=user_email,
            user_name=user_name,
            course_id=course_id,
            status=OrderStatus.CREATED.value,
            payment_method=payment_method.value,
            currency=currency,
            original_price_usd=original_price_usd,
            original_price_uyu=original_price_uyu,
            original_amount=original_amount,
            discount_percent=discount_percent,
            discount_amount=discount_amount,
            final_amount=final_amount,
            coupon_id=coupon_id,
            coupon_code=coupon_code,
            coupon_discount_percent=coupon_discount_percent,
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def compare_and_set_status(
        self,
        order_id: UUID,
        expected: Collection[OrderStatus],
        target: OrderStatus,
        **values: Any,
    ) -> bool:
        """Move an order to ``target`` only if its status is one of ``expected``.

        Single conditional UPDATE; does not commit. Returns False when another
        writer changed the status first.
        """
        result = self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status.in_([s.value for s in expected]))
            .values(status=target.value, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def record_gateway_payment(
        self,
        order_id: UUID,
        payment_id: str,
        status: str | None,
        status_detail: str | None,
    ) -> Order | None:
        """Store the gateway's payment reference on an order."""
        order = self.get_by_id(order_id)
        if not order:
            return None

        order.gateway_payment_id = payment_id  # type: ignore[assignment]
        order.gateway_status = status  # type: ignore[assignment]
        order.gateway_status_detail = status_detail  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(order)
        return order
