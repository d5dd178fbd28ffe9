from dataclasses import dataclass
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request

from course_checkout.core.config import settings

ADMIN_ROLE = "superadmin"


@dataclass(frozen=True)
class CurrentUser:
    id: UUID
    email: str
    name: str | None = None
    role: str = "student"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def decode_session_token(token: str) -> CurrentUser:
    """Decode and validate a session JWT.

    Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError on failure.
    """
    payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    email = payload.get("email")
    if not email:
        raise jwt.InvalidTokenError("Token has no email claim")
    return CurrentUser(
        id=UUID(payload["sub"]),
        email=str(email).lower(),
        name=payload.get("name"),
        role=payload.get("role") or "student",
    )


def get_current_user(request: Request) -> CurrentUser:
    """Extract the session user from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Authentication required")

    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    token = auth_header[7:]
    if not token:
        raise HTTPException(status_code=401, detail="Session token is required")

    try:
        return decode_session_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Session has expired") from None
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid session token") from None


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
