"""Tests for per-currency pricing."""

from decimal import Decimal
from uuid import uuid4

from course_checkout.models.order import Currency
from course_checkout.services.coupon_service import CouponSnapshot
from course_checkout.services.pricing import calculate_pricing, list_price, price_course
from tests.conftest import make_course


class TestCalculatePricing:
    def test_no_discount(self):
        pricing = calculate_pricing(Decimal("120.00"), 0, Currency.USD)
        assert pricing.original_price == Decimal("120.00")
        assert pricing.discount_amount == Decimal("0.00")
        assert pricing.final_amount == Decimal("120.00")
        assert pricing.is_free is False

    def test_percentage_discount_usd(self):
        pricing = calculate_pricing(Decimal("100.00"), 15, Currency.USD)
        assert pricing.discount_amount == Decimal("15.00")
        assert pricing.final_amount == Decimal("85.00")

    def test_usd_rounds_half_up_to_cents(self):
        pricing = calculate_pricing(Decimal("99.99"), 15, Currency.USD)
        # 14.9985 rounds to 15.00
        assert pricing.discount_amount == Decimal("15.00")
        assert pricing.final_amount == Decimal("84.99")

    def test_uyu_rounds_to_whole_pesos(self):
        pricing = calculate_pricing(Decimal("4150"), 15, Currency.UYU)
        # 622.5 rounds to 623
        assert pricing.discount_amount == Decimal("623")
        assert pricing.final_amount == Decimal("3527")

    def test_full_discount_is_free(self):
        pricing = calculate_pricing(Decimal("100.00"), 100, Currency.USD)
        assert pricing.final_amount == Decimal("0.00")
        assert pricing.is_free is True

    def test_final_amount_never_negative(self):
        pricing = calculate_pricing(Decimal("0.01"), 100, Currency.USD)
        assert pricing.final_amount >= 0

    def test_discount_never_exceeds_price(self):
        for percent in (1, 33, 50, 99, 100):
            pricing = calculate_pricing(Decimal("3"), percent, Currency.UYU)
            assert Decimal(0) <= pricing.final_amount <= pricing.original_price


class TestPriceCourse:
    def test_prices_each_currency_from_its_own_list_price(self, db_session):
        course = make_course(db_session, price_usd="100.00", price_uyu="4000")
        snapshot = CouponSnapshot(coupon_id=uuid4(), code="X", discount_percent=10)

        usd = price_course(course, Currency.USD, snapshot)
        uyu = price_course(course, Currency.UYU, snapshot)

        assert usd.final_amount == Decimal("90.00")
        assert uyu.final_amount == Decimal("3600")

    def test_currency_not_offered(self, db_session):
        course = make_course(db_session, price_uyu=None)
        assert price_course(course, Currency.UYU) is None
        assert list_price(course, Currency.UYU) is None
        assert price_course(course, Currency.USD).final_amount == Decimal("100.00")

    def test_three_hundred_with_twenty_percent(self, db_session):
        course = make_course(db_session, price_usd="300")
        snapshot = CouponSnapshot(coupon_id=uuid4(), code="VINO20", discount_percent=20)
        pricing = price_course(course, Currency.USD, snapshot)
        assert pricing.original_price == Decimal("300.00")
        assert pricing.discount_percent == 20
        assert pricing.discount_amount == Decimal("60.00")
        assert pricing.final_amount == Decimal("240.00")

    def test_currencies_are_isolated(self, db_session):
        cheap_uyu = make_course(db_session, price_usd="250.00", price_uyu="1")
        dear_uyu = make_course(db_session, price_usd="250.00", price_uyu="999999")
        assert price_course(cheap_uyu, Currency.USD) == price_course(dear_uyu, Currency.USD)

        cheap_usd = make_course(db_session, price_usd="1.00", price_uyu="9000")
        dear_usd = make_course(db_session, price_usd="9999.00", price_uyu="9000")
        assert price_course(cheap_usd, Currency.UYU) == price_course(dear_usd, Currency.UYU)

    def test_pricing_is_idempotent(self, db_session):
        course = make_course(db_session)
        snapshot = CouponSnapshot(coupon_id=uuid4(), code="X", discount_percent=33)
        assert price_course(course, Currency.USD, snapshot) == price_course(
            course, Currency.USD, snapshot
        )
