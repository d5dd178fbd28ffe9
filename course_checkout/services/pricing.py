"""Per-currency pricing.

USD and UYU are independent ledgers: each currency is priced from its own list
price and the coupon percentage is applied to whichever currency the order
uses. Nothing is ever converted between currencies.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from course_checkout.models.course import Course
from course_checkout.models.order import Currency
from course_checkout.services.coupon_service import CouponSnapshot

MINOR_UNITS = {
    Currency.USD: Decimal("0.01"),
    Currency.UYU: Decimal("1"),
}

ZERO = Decimal("0")


@dataclass(frozen=True)
class Pricing:
    currency: Currency
    original_price: Decimal
    discount_percent: int
    discount_amount: Decimal
    final_amount: Decimal

    @property
    def is_free(self) -> bool:
        return self.final_amount == ZERO


def _round(amount: Decimal, currency: Currency) -> Decimal:
    return amount.quantize(MINOR_UNITS[currency], rounding=ROUND_HALF_UP)


def calculate_pricing(
    original_price: Decimal,
    discount_percent: int,
    currency: Currency,
) -> Pricing:
    """Apply a percentage discount to a list price in one currency."""
    original = _round(Decimal(str(original_price)), currency)
    discount_amount = _round(original * Decimal(discount_percent) / Decimal(100), currency)
    final_amount = max(original - discount_amount, ZERO)
    return Pricing(
        currency=currency,
        original_price=original,
        discount_percent=discount_percent,
        discount_amount=discount_amount,
        final_amount=final_amount,
    )


def list_price(course: Course, currency: Currency) -> Decimal | None:
    """The course's list price in ``currency``, or None when not sold in it."""
    price = course.price_usd if currency is Currency.USD else course.price_uyu
    return Decimal(str(price)) if price is not None else None


def price_course(
    course: Course,
    currency: Currency,
    coupon: CouponSnapshot | None = None,
) -> Pricing | None:
    """Price a course in one currency, or None when it has no list price there."""
    price = list_price(course, currency)
    if price is None:
        return None
    return calculate_pricing(price, coupon.discount_percent if coupon else 0, currency)
