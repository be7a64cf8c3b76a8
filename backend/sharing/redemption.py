"""Redemption of share tokens on the public, unauthenticated path."""

import logging
from datetime import datetime
from typing import Callable

from document.catalog import DocumentCatalog
from models import utcnow

from .errors import Expired, NotFound, ShareError
from .store import LinkStore
from .tokens import token_prefix

logger = logging.getLogger(__name__)

MULTI_USE = "multi_use"
SINGLE_USE = "single_use"

# Public messages stay generic; the log line carries the precise reason.
_NOT_FOUND = "Share link not found"
_EXPIRED = "Share link expired"


class RedemptionHandler:
    """Resolve a share token to its document's current location.

    Under the ``multi_use`` policy redemption is read-only and any number of
    redemptions inside the validity window succeed. Under ``single_use`` the
    first redemption consumes the link.
    """

    def __init__(
        self,
        catalog: DocumentCatalog,
        links: LinkStore,
        *,
        policy: str = MULTI_USE,
        clock: Callable[[], datetime] = utcnow,
    ):
        if policy not in (MULTI_USE, SINGLE_USE):
            raise ValueError(f"Unknown redemption policy: {policy}")
        self.catalog = catalog
        self.links = links
        self.policy = policy
        self.clock = clock

    async def redeem(self, token: str) -> str:
        """Return the location to redirect to.

        Raises:
            NotFound: Unknown token, or the document is gone.
            Expired: Past ``expires_at``, revoked, or already consumed.
        """
        link = await self.links.find_by_token(token) if token else None
        if link is None:
            raise self._refuse(NotFound(_NOT_FOUND, reason="unknown token"), token)

        now = self.clock()
        if link.is_revoked:
            raise self._refuse(Expired(_EXPIRED, reason="revoked"), token)
        if link.is_expired(now):
            raise self._refuse(Expired(_EXPIRED, reason="expired"), token)

        location = await self.catalog.resolve_location(link.document_id)
        if location is None:
            raise self._refuse(
                NotFound(_NOT_FOUND, reason=f"document {link.document_id} no longer exists"), token
            )

        if self.policy == SINGLE_USE and not await self.links.claim_redemption(token, now):
            raise self._refuse(Expired(_EXPIRED, reason="already redeemed"), token)

        logger.info("Share link %s… redeemed for document %s", token_prefix(token), link.document_id)
        return location

    @staticmethod
    def _refuse(error: ShareError, token: str) -> ShareError:
        logger.info("Share link %s… refused: %s", token_prefix(token or ""), error.reason)
        return error
