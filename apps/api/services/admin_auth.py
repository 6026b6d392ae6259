"""Single-admin login against the configured credential pair."""

from __future__ import annotations

import hmac
import logging
from typing import Any, Dict, Optional

from config import settings
from services.errors import InvalidInputError, UnauthorizedError
from services.session_token import ADMIN_ROLE, create_session_token

logger = logging.getLogger(__name__)


def _matches(supplied: str, expected: str) -> bool:
    if not expected:
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def admin_user_payload(email: Optional[str]) -> Dict[str, Any]:
    return {"email": email or settings.ADMIN_EMAIL, "role": ADMIN_ROLE}


def login_admin_service(email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
    """
    Issue an admin session token for the configured credentials.

    Unknown email and wrong password fail identically.
    """
    email = (email or "").strip()
    password = password or ""
    if not email or not password:
        raise InvalidInputError("Email and password are required")

    # Evaluate both comparisons so the failure path does not short-circuit.
    email_ok = _matches(email, (settings.ADMIN_EMAIL or "").strip())
    password_ok = _matches(password, settings.ADMIN_PASSWORD or "")
    if not (email_ok and password_ok):
        logger.warning("admin_login_rejected")
        raise UnauthorizedError("Invalid credentials")

    session = create_session_token(email=email)
    logger.info("admin_login_succeeded")
    return {
        "token": session["token"],
        "expires_at": session["expires_at"],
        "user": admin_user_payload(email),
    }
