"""API tests for order tracking and reconciliation endpoints."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from course_checkout.main import app
from course_checkout.models.order import OrderStatus, PaymentMethod
from tests.conftest import (
    ADMIN,
    OTHER_STUDENT,
    STUDENT,
    auth_headers,
    make_course,
    make_order,
)


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


class TestListOrders:
    def test_admin_lists_with_total(self, client, db_session):
        course = make_course(db_session)
        make_order(db_session, course)
        make_order(db_session, course, user=OTHER_STUDENT, status=OrderStatus.PAID)

        response = client.get("/v1/orders/", headers=auth_headers(ADMIN))

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "2"
        assert len(response.json()) == 2

    def test_filter_by_status(self, client, db_session):
        course = make_course(db_session)
        make_order(db_session, course)
        paid = make_order(db_session, course, user=OTHER_STUDENT, status=OrderStatus.PAID)

        response = client.get(
            "/v1/orders/", params={"status": "paid"}, headers=auth_headers(ADMIN)
        )

        assert response.headers["X-Total-Count"] == "1"
        assert [o["id"] for o in response.json()] == [str(paid.id)]

    def test_student_forbidden(self, client):
        response = client.get("/v1/orders/", headers=auth_headers(STUDENT))
        assert response.status_code == 403

    def test_mine_only_returns_own(self, client, db_session):
        course = make_course(db_session)
        mine = make_order(db_session, course)
        make_order(db_session, course, user=OTHER_STUDENT)

        data = client.get("/v1/orders/mine", headers=auth_headers(STUDENT)).json()

        assert [o["id"] for o in data] == [str(mine.id)]

    def test_pending_transfers(self, client, db_session):
        course = make_course(db_session)
        waiting = make_order(db_session, course, status=OrderStatus.PAYMENT_PROCESSING)
        make_order(
            db_session,
            course,
            user=OTHER_STUDENT,
            payment_method=PaymentMethod.MERCADOPAGO,
        )

        data = client.get("/v1/orders/pending_transfers", headers=auth_headers(ADMIN)).json()

        assert [o["id"] for o in data] == [str(waiting.id)]


class TestGetOrder:
    def test_owner(self, client, db_session):
        order = make_order(db_session, make_course(db_session))

        response = client.get(f"/v1/orders/{order.id}", headers=auth_headers(STUDENT))

        assert response.status_code == 200
        assert response.json()["order_number"] == order.order_number

    def test_by_number(self, client, db_session):
        order = make_order(db_session, make_course(db_session))

        response = client.get(
            f"/v1/orders/number/{order.order_number}", headers=auth_headers(STUDENT)
        )

        assert response.json()["id"] == str(order.id)

    def test_other_student_forbidden(self, client, db_session):
        order = make_order(db_session, make_course(db_session))
        response = client.get(f"/v1/orders/{order.id}", headers=auth_headers(OTHER_STUDENT))
        assert response.status_code == 403

    def test_admin_can_view(self, client, db_session):
        order = make_order(db_session, make_course(db_session))
        response = client.get(f"/v1/orders/{order.id}", headers=auth_headers(ADMIN))
        assert response.status_code == 200

    def test_not_found(self, client):
        response = client.get(f"/v1/orders/{uuid4()}", headers=auth_headers(STUDENT))
        assert response.status_code == 404


class TestTransferSent:
    def test_owner_reports_transfer(self, client, db_session):
        order = make_order(db_session, make_course(db_session))

        response = client.post(
            f"/v1/orders/{order.id}/transfer_sent",
            json={"reference": "BROU-991", "proof_url": "https://files.test/p.png"},
            headers=auth_headers(STUDENT),
        )

        assert response.status_code == 200
        data = response.json()["order"]
        assert data["status"] == "payment_processing"
        assert data["transfer_reference"] == "BROU-991"
        assert data["transfer_sent_at"] is not None

    def test_other_student(self, client, db_session):
        order = make_order(db_session, make_course(db_session))

        response = client.post(
            f"/v1/orders/{order.id}/transfer_sent",
            json={},
            headers=auth_headers(OTHER_STUDENT),
        )

        assert response.status_code == 403
        assert response.json()["detail"]["reason"] == "forbidden"

    def test_wrong_method(self, client, db_session):
        order = make_order(
            db_session, make_course(db_session), payment_method=PaymentMethod.MERCADOPAGO
        )

        response = client.post(
            f"/v1/orders/{order.id}/transfer_sent", json={}, headers=auth_headers(STUDENT)
        )

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "wrong_payment_method"


class TestConfirmPayment:
    def test_confirm_then_repeat(self, client, db_session, notification_dispatch):
        course = make_course(db_session)
        order = make_order(db_session, course, status=OrderStatus.PAYMENT_PROCESSING)

        first = client.post(f"/v1/orders/{order.id}/confirm", headers=auth_headers(ADMIN))
        second = client.post(f"/v1/orders/{order.id}/confirm", headers=auth_headers(ADMIN))

        assert first.status_code == 200
        assert first.json()["order"]["status"] == "paid"
        assert first.json()["already_processed"] is False
        assert second.status_code == 200
        assert second.json()["already_processed"] is True
        notification_dispatch.assert_awaited_once()

        db_session.refresh(course)
        assert course.enrolled_count == 1

    def test_full_course_rejects_order(self, client, db_session):
        course = make_course(db_session, max_capacity=1, enrolled_count=1)
        order = make_order(db_session, course, status=OrderStatus.PAYMENT_PROCESSING)

        response = client.post(f"/v1/orders/{order.id}/confirm", headers=auth_headers(ADMIN))

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "capacity_exceeded"
        db_session.refresh(order)
        assert order.status == OrderStatus.REJECTED.value

    def test_student_forbidden(self, client, db_session):
        order = make_order(db_session, make_course(db_session))
        response = client.post(f"/v1/orders/{order.id}/confirm", headers=auth_headers(STUDENT))
        assert response.status_code == 403

    def test_not_found(self, client):
        response = client.post(f"/v1/orders/{uuid4()}/confirm", headers=auth_headers(ADMIN))
        assert response.status_code == 404


class TestRejectPayment:
    def test_reject_under_review(self, client, db_session):
        order = make_order(
            db_session, make_course(db_session), status=OrderStatus.PAYMENT_PROCESSING
        )

        response = client.post(
            f"/v1/orders/{order.id}/reject",
            json={"reason": "Transfer not found in bank statement"},
            headers=auth_headers(ADMIN),
        )

        assert response.status_code == 200
        data = response.json()["order"]
        assert data["status"] == "rejected"
        assert data["failure_reason"] == "Transfer not found in bank statement"

    def test_reject_before_review(self, client, db_session):
        order = make_order(db_session, make_course(db_session))

        response = client.post(
            f"/v1/orders/{order.id}/reject", json={}, headers=auth_headers(ADMIN)
        )

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "illegal_transition"


class TestCancelAndRefund:
    def test_owner_cancels(self, client, db_session):
        order = make_order(db_session, make_course(db_session))

        response = client.post(f"/v1/orders/{order.id}/cancel", headers=auth_headers(STUDENT))

        assert response.status_code == 200
        assert response.json()["order"]["status"] == "cancelled"
        assert response.json()["order"]["cancelled_at"] is not None

    def test_other_student_cannot_cancel(self, client, db_session):
        order = make_order(db_session, make_course(db_session))
        response = client.post(
            f"/v1/orders/{order.id}/cancel", headers=auth_headers(OTHER_STUDENT)
        )
        assert response.status_code == 403

    def test_cannot_cancel_paid(self, client, db_session):
        order = make_order(db_session, make_course(db_session), status=OrderStatus.PAID)
        response = client.post(f"/v1/orders/{order.id}/cancel", headers=auth_headers(ADMIN))
        assert response.status_code == 409

    def test_refund_paid_order(self, client, db_session):
        course = make_course(db_session)
        order = make_order(db_session, course, status=OrderStatus.PAYMENT_PROCESSING)
        client.post(f"/v1/orders/{order.id}/confirm", headers=auth_headers(ADMIN))

        response = client.post(f"/v1/orders/{order.id}/refund", headers=auth_headers(ADMIN))

        assert response.status_code == 200
        assert response.json()["order"]["status"] == "refunded"
        db_session.refresh(course)
        assert course.enrolled_count == 0
        enrollments = client.get("/v1/enrollments/mine", headers=auth_headers(STUDENT)).json()
        assert [e["status"] for e in enrollments] == ["cancelled"]

    def test_refund_unpaid(self, client, db_session):
        order = make_order(db_session, make_course(db_session))
        response = client.post(f"/v1/orders/{order.id}/refund", headers=auth_headers(ADMIN))
        assert response.status_code == 409
