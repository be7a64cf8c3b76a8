"""Share-link error taxonomy. Each error knows the HTTP status it maps to."""

from fastapi import status


class ShareError(Exception):
    """Base class for share-link failures reported to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, reason: str | None = None):
        self.message = message
        # Internal reason for logs; may be more specific than the public message.
        self.reason = reason or message
        super().__init__(message)


class Unauthorized(ShareError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidRequest(ShareError):
    status_code = status.HTTP_400_BAD_REQUEST


class Forbidden(ShareError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ShareError):
    status_code = status.HTTP_404_NOT_FOUND


class Expired(ShareError):
    status_code = status.HTTP_410_GONE


class Conflict(ShareError):
    status_code = status.HTTP_409_CONFLICT
