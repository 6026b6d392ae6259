"""PIN gate for reading a research document."""

from __future__ import annotations

import hmac
from enum import Enum
from typing import Optional

from services.errors import ForbiddenError


class AccessDecision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


def evaluate_access(pin: Optional[str], credential: Optional[str]) -> AccessDecision:
    """
    Decide whether a document's content may be returned.

    An empty pin means the document is public. Otherwise the credential must be
    present and identical to the pin.
    """
    if not pin:
        return AccessDecision.ALLOW
    if not credential:
        return AccessDecision.DENY
    if hmac.compare_digest(credential.encode("utf-8"), pin.encode("utf-8")):
        return AccessDecision.ALLOW
    return AccessDecision.DENY


def require_access(pin: Optional[str], credential: Optional[str]) -> None:
    """Raise ForbiddenError when ``evaluate_access`` denies."""
    if evaluate_access(pin, credential) is AccessDecision.DENY:
        message = "PIN required" if not credential else "PIN required or invalid"
        raise ForbiddenError(message)
