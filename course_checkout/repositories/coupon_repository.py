"""Coupon repository for data access."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.orm import Query, Session

from course_checkout.models.coupon import Coupon
from course_checkout.models.order import Order
from course_checkout.schemas.coupon import CouponCreate, CouponUpdate


class CouponRepository:
    """Repository for Coupon model."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        is_active: bool | None = None,
        include_expired: bool = True,
        course_id: UUID | None = None,
        search: str | None = None,
    ) -> Query[Coupon]:
        query = self.db.query(Coupon)

        if is_active is not None:
            query = query.filter(Coupon.is_active == is_active)
        if course_id:
            query = query.filter(Coupon.restricted_to_course_id == course_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Coupon.code.ilike(pattern), Coupon.description.ilike(pattern))
            )
        if not include_expired:
            now = datetime.now(UTC)
            query = query.filter(or_(Coupon.expires_at.is_(None), Coupon.expires_at > now))
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        is_active: bool | None = None,
        include_expired: bool = True,
        course_id: UUID | None = None,
        search: str | None = None,
    ) -> list[Coupon]:
        """Get all coupons with optional filters."""
        query = self._filtered(is_active, include_expired, course_id, search)
        return query.order_by(Coupon.created_at.desc()).offset(skip).limit(limit).all()

    def count(
        self,
        is_active: bool | None = None,
        include_expired: bool = True,
        course_id: UUID | None = None,
        search: str | None = None,
    ) -> int:
        """Count coupons matching the same filters as ``get_all``."""
        return self._filtered(is_active, include_expired, course_id, search).count()

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        """Get a coupon by ID."""
        return self.db.query(Coupon).filter(Coupon.id == coupon_id).first()

    def get_by_code(self, code: str) -> Coupon | None:
        """Get a coupon by code. Codes are stored upper-cased."""
        return self.db.query(Coupon).filter(Coupon.code == code.strip().upper()).first()

    def create(self, data: CouponCreate, created_by: str | None = None) -> Coupon:
        """Create a new coupon."""
        coupon = Coupon(
            code=data.code,
            description=data.description,
            discount_percent=data.discount_percent,
            max_uses=data.max_uses,
            current_uses=0,
            valid_from=data.valid_from or datetime.now(UTC),
            expires_at=data.expires_at,
            restricted_to_email=data.restricted_to_email,
            restricted_to_course_id=data.restricted_to_course_id,
            min_purchase_amount=data.min_purchase_amount,
            is_active=True,
            created_by=created_by,
        )
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def update(self, coupon_id: UUID, data: CouponUpdate) -> Coupon | None:
        """Update a coupon."""
        coupon = self.get_by_id(coupon_id)
        if not coupon:
            return None

        update_data = data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(coupon, key, value)

        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def set_active(self, coupon_id: UUID, is_active: bool) -> Coupon | None:
        """Deactivate or reactivate a coupon."""
        coupon = self.get_by_id(coupon_id)
        if not coupon:
            return None

        coupon.is_active = is_active  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def count_orders(self, coupon_id: UUID) -> int:
        """Count orders that were placed with this coupon."""
        return self.db.query(Order).filter(Order.coupon_id == coupon_id).count()

    def delete(self, coupon_id: UUID) -> bool:
        """Delete a coupon that no order references."""
        coupon = self.get_by_id(coupon_id)
        if not coupon:
            return False
        if self.count_orders(coupon_id) > 0:
            raise ValueError("Cannot delete a coupon that has been used in orders")

        self.db.delete(coupon)
        self.db.commit()
        return True

    def try_consume_use(self, coupon_id: UUID) -> bool:
        """Increment ``current_uses`` only while below ``max_uses``.

        Single conditional UPDATE; does not commit.
        """
        result = self.db.execute(
            update(Coupon)
            .where(Coupon.id == coupon_id, Coupon.current_uses < Coupon.max_uses)
            .values(current_uses=Coupon.current_uses + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
