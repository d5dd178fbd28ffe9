"""API tests for bank account administration."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from course_checkout.main import app
from course_checkout.repositories.bank_account_repository import BankAccountRepository
from tests.conftest import (
    ADMIN,
    STUDENT,
    auth_headers,
    make_bank_account,
    make_course,
    make_order,
)


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


ACCOUNT = {
    "bank_name": "BROU",
    "account_holder": "Escuela de Vinos SRL",
    "account_type": "Caja de ahorro",
    "account_number": "001-234567-00001",
    "currency": "UYU",
}


class TestCreateAndList:
    def test_create(self, client):
        response = client.post("/v1/bank_accounts/", json=ACCOUNT, headers=auth_headers(ADMIN))

        assert response.status_code == 201
        data = response.json()
        assert data["currency"] == "UYU"
        assert data["is_active"] is True
        assert data["display_order"] == 0

    def test_unknown_currency(self, client):
        response = client.post(
            "/v1/bank_accounts/",
            json={**ACCOUNT, "currency": "EUR"},
            headers=auth_headers(ADMIN),
        )
        assert response.status_code == 422

    def test_student_forbidden(self, client):
        response = client.post("/v1/bank_accounts/", json=ACCOUNT, headers=auth_headers(STUDENT))
        assert response.status_code == 403

    def test_list_in_display_order(self, client, db_session):
        late = make_bank_account(db_session, account_number="2", display_order=5)
        early = make_bank_account(db_session, account_number="1", display_order=1)
        off = make_bank_account(db_session, account_number="3", is_active=False)

        all_ids = [
            a["id"] for a in client.get("/v1/bank_accounts/", headers=auth_headers(ADMIN)).json()
        ]
        active_ids = [
            a["id"]
            for a in client.get(
                "/v1/bank_accounts/", params={"is_active": True}, headers=auth_headers(ADMIN)
            ).json()
        ]

        assert all_ids == [str(off.id), str(early.id), str(late.id)]
        assert active_ids == [str(early.id), str(late.id)]

    def test_get_not_found(self, client):
        response = client.get(f"/v1/bank_accounts/{uuid4()}", headers=auth_headers(ADMIN))
        assert response.status_code == 404


class TestUpdate:
    def test_update(self, client, db_session):
        account = make_bank_account(db_session)

        response = client.put(
            f"/v1/bank_accounts/{account.id}",
            json={"account_number": "555", "swift_code": None},
            headers=auth_headers(ADMIN),
        )

        assert response.status_code == 200
        assert response.json()["account_number"] == "555"
        assert response.json()["swift_code"] is None

    @pytest.mark.parametrize("field", ["bank_name", "account_number", "currency", "is_active"])
    def test_null_for_required_field_is_rejected(self, client, db_session, field):
        account = make_bank_account(db_session)

        response = client.put(
            f"/v1/bank_accounts/{account.id}", json={field: None}, headers=auth_headers(ADMIN)
        )

        assert response.status_code == 422

    def test_activate_and_deactivate(self, client, db_session):
        account = make_bank_account(db_session)

        off = client.post(f"/v1/bank_accounts/{account.id}/deactivate", headers=auth_headers(ADMIN))
        on = client.post(f"/v1/bank_accounts/{account.id}/activate", headers=auth_headers(ADMIN))

        assert off.json()["is_active"] is False
        assert on.json()["is_active"] is True

    def test_reorder(self, client, db_session):
        first = make_bank_account(db_session, account_number="1", display_order=0)
        second = make_bank_account(db_session, account_number="2", display_order=1)

        response = client.put(
            "/v1/bank_accounts/reorder",
            json={"account_ids": [str(second.id), str(first.id)]},
            headers=auth_headers(ADMIN),
        )

        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [str(second.id), str(first.id)]
        assert [a["display_order"] for a in response.json()] == [0, 1]

    def test_reorder_unknown_account(self, client, db_session):
        account = make_bank_account(db_session)

        response = client.put(
            "/v1/bank_accounts/reorder",
            json={"account_ids": [str(account.id), str(uuid4())]},
            headers=auth_headers(ADMIN),
        )

        assert response.status_code == 404
        db_session.refresh(account)
        assert account.display_order == 0


class TestDelete:
    def test_delete_unused(self, client, db_session):
        account = make_bank_account(db_session)

        response = client.delete(f"/v1/bank_accounts/{account.id}", headers=auth_headers(ADMIN))

        assert response.status_code == 204
        assert BankAccountRepository(db_session).get_by_id(account.id) is None

    def test_delete_chosen_by_order(self, client, db_session):
        account = make_bank_account(db_session)
        make_order(db_session, make_course(db_session), bank_account=account)

        response = client.delete(f"/v1/bank_accounts/{account.id}", headers=auth_headers(ADMIN))

        assert response.status_code == 409
        assert "deactivate" in response.json()["detail"]

    def test_delete_missing(self, client):
        response = client.delete(f"/v1/bank_accounts/{uuid4()}", headers=auth_headers(ADMIN))
        assert response.status_code == 404
