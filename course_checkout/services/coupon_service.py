"""Coupon validation service.

Validation is read-only: the usage counter only moves when an order is
finalized, so a coupon can be validated any number of times.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from course_checkout.models.coupon import Coupon
from course_checkout.models.shared import as_utc, utc_now
from course_checkout.repositories.coupon_repository import CouponRepository


class CouponRejection(str, Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    EMAIL_MISMATCH = "email_mismatch"
    COURSE_MISMATCH = "course_mismatch"
    BELOW_MINIMUM = "below_minimum"


REJECTION_MESSAGES = {
    CouponRejection.NOT_FOUND: "Coupon not found",
    CouponRejection.INACTIVE: "This coupon is not active",
    CouponRejection.NOT_YET_VALID: "This coupon is not valid yet",
    CouponRejection.EXPIRED: "This coupon has expired",
    CouponRejection.EXHAUSTED: "This coupon has reached its maximum number of uses",
    CouponRejection.EMAIL_MISMATCH: "This coupon is not valid for your account",
    CouponRejection.COURSE_MISMATCH: "This coupon is not valid for this course",
    CouponRejection.BELOW_MINIMUM: "The purchase amount is below this coupon's minimum",
}


@dataclass(frozen=True)
class CouponSnapshot:
    """Discount terms copied onto an order."""

    coupon_id: UUID
    code: str
    discount_percent: int


@dataclass
class CouponValidation:
    """Result of validating a coupon code."""

    code: str
    snapshot: CouponSnapshot | None = None
    rejection: CouponRejection | None = None
    message: str | None = None

    @property
    def valid(self) -> bool:
        return self.snapshot is not None

    @classmethod
    def rejected(
        cls, code: str, rejection: CouponRejection, message: str | None = None
    ) -> "CouponValidation":
        return cls(
            code=code,
            rejection=rejection,
            message=message or REJECTION_MESSAGES[rejection],
        )


def normalize_code(code: str) -> str:
    return code.strip().upper()


class CouponValidator:
    """Check a coupon against a course, a purchaser and a purchase amount."""

    def __init__(self, db: Session):
        self.db = db
        self.coupon_repo = CouponRepository(db)

    def validate(
        self,
        code: str,
        course_id: UUID,
        user_email: str,
        purchase_amount: Decimal,
        now: datetime | None = None,
    ) -> CouponValidation:
        """Validate ``code`` for a purchase.

        Args:
            code: Raw code as typed by the user.
            course_id: The course being purchased.
            user_email: Purchaser email, compared case-insensitively.
            purchase_amount: Pre-discount amount in USD.
            now: Evaluation time, defaults to the current UTC time.

        Returns:
            A CouponValidation carrying either a snapshot or a rejection.
        """
        normalized = normalize_code(code)
        coupon = self.coupon_repo.get_by_code(normalized) if normalized else None
        if coupon is None:
            return CouponValidation.rejected(normalized, CouponRejection.NOT_FOUND)

        rejection = self._first_rejection(coupon, course_id, user_email, purchase_amount, now)
        if rejection is not None:
            message = None
            if rejection is CouponRejection.BELOW_MINIMUM:
                message = (
                    f"{REJECTION_MESSAGES[rejection]} "
                    f"(minimum: {coupon.min_purchase_amount} USD)"
                )
            return CouponValidation.rejected(normalized, rejection, message)

        return CouponValidation(
            code=normalized,
            snapshot=CouponSnapshot(
                coupon_id=coupon.id,  # type: ignore[arg-type]
                code=str(coupon.code),
                discount_percent=int(coupon.discount_percent),
            ),
        )

    def _first_rejection(
        self,
        coupon: Coupon,
        course_id: UUID,
        user_email: str,
        purchase_amount: Decimal,
        now: datetime | None,
    ) -> CouponRejection | None:
        now = now or utc_now()

        if not coupon.is_active:
            return CouponRejection.INACTIVE
        if coupon.valid_from and now < as_utc(coupon.valid_from):
            return CouponRejection.NOT_YET_VALID
        if coupon.expires_at and as_utc(coupon.expires_at) < now:
            return CouponRejection.EXPIRED
        if coupon.current_uses >= coupon.max_uses:
            return CouponRejection.EXHAUSTED
        if (
            coupon.restricted_to_email
            and str(coupon.restricted_to_email).lower() != user_email.strip().lower()
        ):
            return CouponRejection.EMAIL_MISMATCH
        if coupon.restricted_to_course_id and coupon.restricted_to_course_id != course_id:
            return CouponRejection.COURSE_MISMATCH
        if coupon.min_purchase_amount is not None and Decimal(str(purchase_amount)) < Decimal(
            str(coupon.min_purchase_amount)
        ):
            return CouponRejection.BELOW_MINIMUM
        return None
