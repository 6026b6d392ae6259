"""Admin session token helpers."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import settings


SESSION_TOKEN_TYPE = "research_hub_admin"
ADMIN_SUBJECT = "admin"
ADMIN_ROLE = "admin"


def _token_lifetime(expires_days: Optional[int]) -> timedelta:
    days = int(expires_days or settings.JWT_EXPIRATION_DAYS or 7)
    return timedelta(days=max(days, 1))


def _admin_claims(issued_at: datetime, expires_at: datetime, email: Optional[str]) -> Dict[str, Any]:
    claims: Dict[str, Any] = {
        "sub": ADMIN_SUBJECT,
        "role": ADMIN_ROLE,
        "type": SESSION_TOKEN_TYPE,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    if email:
        claims["email"] = email
    return claims


def ensure_admin_claims(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Reject decoded claims that do not describe an admin session."""
    if str(payload.get("type", "")).strip() != SESSION_TOKEN_TYPE:
        raise ValueError("Invalid session token type.")
    if str(payload.get("sub", "")).strip() != ADMIN_SUBJECT or payload.get("role") != ADMIN_ROLE:
        raise ValueError("Session token is not an admin session.")
    return payload


def create_session_token(
    email: Optional[str] = None,
    expires_days: Optional[int] = None,
) -> Dict[str, Any]:
    """Sign a 7-day (by default) admin token; returns ``{token, expires_at}``."""
    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + _token_lifetime(expires_days)
    token = jwt.encode(
        _admin_claims(issued_at, expires_at, email),
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    return {"token": token, "expires_at": int(expires_at.timestamp())}


def decode_session_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry, then the admin claims. Raises ``ValueError``."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired session token.") from exc
    return ensure_admin_claims(payload)
