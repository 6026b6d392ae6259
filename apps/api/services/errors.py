"""Error taxonomy shared by services and the HTTP boundary."""

from __future__ import annotations


class ResearchHubError(Exception):
    """Base error carrying the HTTP status the boundary handler should use."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InvalidInputError(ResearchHubError):
    status_code = 400
    default_message = "Invalid input"


class UnauthorizedError(ResearchHubError):
    status_code = 401
    default_message = "Not authorized"


class ForbiddenError(ResearchHubError):
    status_code = 403
    default_message = "PIN required or invalid"


class NotFoundError(ResearchHubError):
    status_code = 404
    default_message = "Research document not found"


class UploadError(ResearchHubError):
    """Asset host misconfiguration or transport failure."""

    status_code = 500
    default_message = "Asset upload failed"


__all__ = [
    "ResearchHubError",
    "InvalidInputError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "UploadError",
]
