"""Tests for order persistence helpers."""

import re
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from course_checkout.models.order import OrderStatus
from course_checkout.repositories.order_repository import (
    OrderRepository,
    generate_order_number,
)
from tests.conftest import OTHER_STUDENT, make_course, make_order


class TestGenerateOrderNumber:
    def test_format(self):
        number = generate_order_number(datetime(2026, 3, 14, tzinfo=UTC), prefix="TA")
        assert re.fullmatch(r"TA-20260314-\d{4}", number)

    def test_prefix_from_settings(self):
        with patch(
            "course_checkout.repositories.order_repository.settings.ORDER_NUMBER_PREFIX", "VX"
        ):
            assert generate_order_number().startswith("VX-")


class TestCreate:
    def test_retries_on_collision(self, db_session):
        course = make_course(db_session)
        existing = make_order(db_session, course)

        with patch(
            "course_checkout.repositories.order_repository.generate_order_number",
            side_effect=[existing.order_number, "TA-20260101-0001"],
        ):
            order = make_order(db_session, course, user=OTHER_STUDENT)

        assert order.order_number == "TA-20260101-0001"

    def test_gives_up_after_five_collisions(self, db_session):
        course = make_course(db_session)
        existing = make_order(db_session, course)

        with patch(
            "course_checkout.repositories.order_repository.generate_order_number",
            return_value=existing.order_number,
        ):
            with pytest.raises(RuntimeError):
                make_order(db_session, course, user=OTHER_STUDENT)


class TestCompareAndSetStatus:
    def test_applies_when_expected(self, db_session):
        order = make_order(db_session, make_course(db_session))
        repo = OrderRepository(db_session)

        assert repo.compare_and_set_status(
            order.id, [OrderStatus.PENDING_PAYMENT], OrderStatus.CANCELLED
        )
        db_session.commit()
        db_session.refresh(order)
        assert order.status == OrderStatus.CANCELLED.value

    def test_refuses_when_status_moved(self, db_session):
        order = make_order(db_session, make_course(db_session), status=OrderStatus.PAID)
        repo = OrderRepository(db_session)

        assert not repo.compare_and_set_status(
            order.id, [OrderStatus.PENDING_PAYMENT], OrderStatus.CANCELLED
        )
        db_session.rollback()
        db_session.refresh(order)
        assert order.status == OrderStatus.PAID.value


class TestQueries:
    def test_count_and_filters(self, db_session):
        course = make_course(db_session)
        make_order(db_session, course)
        make_order(db_session, course, user=OTHER_STUDENT, status=OrderStatus.PAID)
        repo = OrderRepository(db_session)

        assert repo.count() == 2
        assert repo.count(status=OrderStatus.PAID) == 1
        assert repo.count(user_id=OTHER_STUDENT.id) == 1
        assert len(repo.get_all(course_id=course.id)) == 2
