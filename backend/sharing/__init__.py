"""Time-limited share links: issuance, redemption, revocation."""

from .errors import Conflict, Expired, Forbidden, InvalidRequest, NotFound, ShareError, Unauthorized
from .redemption import RedemptionHandler
from .service import IssuedShare, ShareService

__all__ = [
    "Conflict",
    "Expired",
    "Forbidden",
    "InvalidRequest",
    "IssuedShare",
    "NotFound",
    "RedemptionHandler",
    "ShareError",
    "ShareService",
    "Unauthorized",
]
