"""API tests for the course catalog."""

from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from course_checkout.main import app
from course_checkout.models.course import CourseStatus
from tests.conftest import ADMIN, STUDENT, auth_headers, make_course


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


class TestCatalog:
    def test_list_is_public(self, client, db_session):
        make_course(db_session, slug="vinos-101")
        make_course(db_session, slug="vinos-201", status=CourseStatus.DRAFT)

        response = client.get("/v1/courses/")

        assert response.status_code == 200
        assert sorted(c["slug"] for c in response.json()) == ["vinos-101", "vinos-201"]

    def test_filter_by_status(self, client, db_session):
        make_course(db_session, slug="vinos-101")
        make_course(db_session, slug="vinos-201", status=CourseStatus.DRAFT)

        data = client.get("/v1/courses/", params={"status": "draft"}).json()

        assert [c["slug"] for c in data] == ["vinos-201"]

    def test_get(self, client, db_session):
        course = make_course(db_session, price_usd="150")

        data = client.get(f"/v1/courses/{course.id}").json()

        assert Decimal(data["price_usd"]) == Decimal("150")
        assert data["enrolled_count"] == 0

    def test_get_missing(self, client):
        assert client.get(f"/v1/courses/{uuid4()}").status_code == 404


class TestCourseAdmin:
    def test_create(self, client):
        response = client.post(
            "/v1/courses/",
            json={
                "slug": "sommelier",
                "title": "Sommelier",
                "price_usd": "500",
                "price_uyu": "20000",
                "max_capacity": 20,
            },
            headers=auth_headers(ADMIN),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "draft"
        assert data["max_capacity"] == 20

    def test_duplicate_slug(self, client, db_session):
        make_course(db_session, slug="sommelier")

        response = client.post(
            "/v1/courses/",
            json={"slug": "sommelier", "title": "Again", "price_usd": "1"},
            headers=auth_headers(ADMIN),
        )

        assert response.status_code == 409

    def test_student_cannot_create(self, client):
        response = client.post(
            "/v1/courses/",
            json={"slug": "x", "title": "X", "price_usd": "1"},
            headers=auth_headers(STUDENT),
        )
        assert response.status_code == 403

    def test_open_enrollment(self, client, db_session):
        course = make_course(db_session, status=CourseStatus.ANNOUNCED)

        response = client.put(
            f"/v1/courses/{course.id}",
            json={"status": "enrolling"},
            headers=auth_headers(ADMIN),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "enrolling"

    def test_capacity_below_enrolled(self, client, db_session):
        course = make_course(db_session, max_capacity=10, enrolled_count=6)

        response = client.put(
            f"/v1/courses/{course.id}",
            json={"max_capacity": 5},
            headers=auth_headers(ADMIN),
        )

        assert response.status_code == 422

    @pytest.mark.parametrize("field", ["title", "price_usd", "status"])
    def test_null_for_required_field_is_rejected(self, client, db_session, field):
        course = make_course(db_session)

        response = client.put(
            f"/v1/courses/{course.id}", json={field: None}, headers=auth_headers(ADMIN)
        )

        assert response.status_code == 422
        db_session.refresh(course)
        assert course.price_usd == Decimal("100.00")
        assert course.status == CourseStatus.ENROLLING.value

    def test_null_clears_optional_limits(self, client, db_session):
        course = make_course(db_session, max_capacity=10, price_uyu="4000")

        response = client.put(
            f"/v1/courses/{course.id}",
            json={"max_capacity": None, "price_uyu": None, "enrollment_deadline": None},
            headers=auth_headers(ADMIN),
        )

        assert response.status_code == 200
        assert response.json()["max_capacity"] is None
        assert response.json()["price_uyu"] is None
