"""Tests for session token handling."""

from datetime import timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import jwt
import pytest
from fastapi import HTTPException

from course_checkout.core.auth import (
    CurrentUser,
    decode_session_token,
    get_current_user,
    require_admin,
)
from course_checkout.core.config import settings
from tests.conftest import ADMIN, STUDENT, issue_session_token


def _request(headers: dict[str, str]) -> MagicMock:
    request = MagicMock()
    request.headers = headers
    return request


class TestDecodeSessionToken:
    def test_round_trip(self):
        user = decode_session_token(issue_session_token(STUDENT))
        assert user == STUDENT
        assert not user.is_admin

    def test_admin_role(self):
        assert decode_session_token(issue_session_token(ADMIN)).is_admin

    def test_email_is_lowercased(self):
        token = issue_session_token(CurrentUser(id=uuid4(), email="Ana@Example.COM"))
        assert decode_session_token(token).email == "ana@example.com"

    def test_missing_email(self):
        token = jwt.encode(
            {"sub": str(uuid4())}, settings.jwt_secret, algorithm=settings.jwt_algorithm
        )
        with pytest.raises(jwt.InvalidTokenError):
            decode_session_token(token)

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "email": "a@b.c"}, "other", algorithm="HS256"
        )
        with pytest.raises(jwt.InvalidTokenError):
            decode_session_token(token)


class TestGetCurrentUser:
    def test_valid(self):
        token = issue_session_token(STUDENT)
        user = get_current_user(_request({"Authorization": f"Bearer {token}"}))
        assert user.id == STUDENT.id

    @pytest.mark.parametrize(
        "headers",
        [{}, {"Authorization": "Basic abc"}, {"Authorization": "Bearer "}],
    )
    def test_rejected_headers(self, headers):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_request(headers))
        assert exc_info.value.status_code == 401

    def test_expired(self):
        token = issue_session_token(STUDENT, expires_in=timedelta(seconds=-10))
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_request({"Authorization": f"Bearer {token}"}))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Session has expired"

    def test_garbage_token(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_request({"Authorization": "Bearer not-a-jwt"}))
        assert exc_info.value.detail == "Invalid session token"

    def test_non_uuid_subject(self):
        token = jwt.encode(
            {"sub": "user-1", "email": "a@b.c"},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_request({"Authorization": f"Bearer {token}"}))
        assert exc_info.value.status_code == 401


class TestRequireAdmin:
    def test_admin_passes(self):
        assert require_admin(ADMIN) is ADMIN

    def test_student_forbidden(self):
        with pytest.raises(HTTPException) as exc_info:
            require_admin(STUDENT)
        assert exc_info.value.status_code == 403
