"""Authentication dependencies for admin-only routes."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.errors import UnauthorizedError
from services.session_token import decode_session_token


auth_scheme = HTTPBearer(auto_error=False)


@dataclass
class AdminContext:
    role: str
    email: Optional[str] = None
    expires_at: Optional[int] = None


async def require_admin(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
) -> AdminContext:
    """Resolve the admin identity from a Bearer session token."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Not authorized, token missing")

    try:
        payload = decode_session_token(credentials.credentials)
    except ValueError as exc:
        raise UnauthorizedError(str(exc)) from exc

    return AdminContext(
        role=str(payload.get("role", "")),
        email=str(payload.get("email", "")) or None,
        expires_at=payload.get("exp"),
    )
