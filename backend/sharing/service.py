"""Share service: authorize, mint a token, persist the link, hand back its URL."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from auth.directory import Principal
from document.catalog import DocumentCatalog
from models import SharedLink, utcnow

from .access import can_share
from .errors import Conflict, Forbidden, InvalidRequest, NotFound, Unauthorized
from .store import LinkStore, TokenCollision
from .tokens import generate_share_token, token_prefix

logger = logging.getLogger(__name__)

DEFAULT_TTL_MINUTES = 60
MAX_TTL_MINUTES = 30 * 24 * 60
MAX_TOKEN_ATTEMPTS = 3


@dataclass(frozen=True)
class IssuedShare:
    link: SharedLink
    url: str

    @property
    def token(self) -> str:
        return self.link.token

    @property
    def expires_at(self) -> datetime:
        return self.link.expires_at


def parse_document_id(value) -> uuid.UUID:
    """Coerce a request value to a document UUID or raise InvalidRequest."""
    if isinstance(value, uuid.UUID):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidRequest("document_id required")
    if not isinstance(value, str):
        raise InvalidRequest("document_id must be a UUID")
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        raise InvalidRequest("document_id must be a UUID")


class ShareService:
    """Issues, lists and revokes share links on behalf of an authenticated principal.

    Not idempotent: every successful ``create_share_link`` call mints a new
    token, even for the same document.
    """

    def __init__(
        self,
        catalog: DocumentCatalog,
        links: LinkStore,
        *,
        base_url: str,
        default_ttl_minutes: int = DEFAULT_TTL_MINUTES,
        max_ttl_minutes: int = MAX_TTL_MINUTES,
        max_attempts: int = MAX_TOKEN_ATTEMPTS,
        token_factory: Callable[[], str] = generate_share_token,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.catalog = catalog
        self.links = links
        self.base_url = base_url.rstrip("/")
        self.default_ttl_minutes = default_ttl_minutes
        self.max_ttl_minutes = max_ttl_minutes
        self.max_attempts = max_attempts
        self.token_factory = token_factory
        self.clock = clock

    def share_url(self, token: str) -> str:
        return f"{self.base_url}/api/shares/{token}"

    async def create_share_link(
        self,
        principal: Principal | None,
        document_id,
        ttl_minutes: int | None = None,
    ) -> IssuedShare:
        """Create a new link for ``document_id`` valid for ``ttl_minutes``.

        Raises:
            Unauthorized: No principal.
            InvalidRequest: Missing/malformed document id or out-of-range TTL.
            NotFound: The document does not exist.
            Forbidden: The principal is neither the owner nor an admin.
            Conflict: Every generated token collided with an existing one.
        """
        if principal is None:
            raise Unauthorized("Unauthorized")
        doc_id = parse_document_id(document_id)
        await self._authorize(principal, doc_id)
        ttl = self._validate_ttl(ttl_minutes)

        for attempt in range(1, self.max_attempts + 1):
            now = self.clock()
            link = SharedLink(
                token=self.token_factory(),
                document_id=doc_id,
                created_by=principal.id,
                created_at=now,
                expires_at=now + timedelta(minutes=ttl),
            )
            try:
                link = await self.links.insert(link)
            except TokenCollision:
                logger.warning(
                    "Share token collision for document %s (attempt %d/%d)",
                    doc_id, attempt, self.max_attempts,
                )
                continue
            logger.info(
                "Share link %s… created for document %s by %s, ttl=%dmin",
                token_prefix(link.token), doc_id, principal.id, ttl,
            )
            return IssuedShare(link=link, url=self.share_url(link.token))

        raise Conflict(
            "Could not allocate a unique share token",
            reason=f"token collision after {self.max_attempts} attempts",
        )

    async def list_share_links(self, principal: Principal | None, document_id) -> list[SharedLink]:
        """All links for a document, newest first."""
        if principal is None:
            raise Unauthorized("Unauthorized")
        doc_id = parse_document_id(document_id)
        await self._authorize(principal, doc_id)
        return await self.links.list_for_document(doc_id)

    async def revoke_share_link(self, principal: Principal | None, token: str) -> SharedLink:
        """Revoke a link. Revoking twice is a no-op.

        Callers who may not manage the underlying document get NotFound, so
        a token's existence is not confirmed to them.
        """
        if principal is None:
            raise Unauthorized("Unauthorized")
        link = await self.links.find_by_token(token) if token else None
        if link is None:
            raise NotFound("Share link not found", reason="unknown token")
        owner_id = await self.catalog.get_owner(link.document_id)
        if not can_share(principal, owner_id):
            raise NotFound("Share link not found", reason="principal may not manage this link")
        was_revoked = link.is_revoked
        link = await self.links.revoke(link, self.clock())
        if not was_revoked:
            logger.info("Share link %s… revoked by %s", token_prefix(token), principal.id)
        return link

    async def _authorize(self, principal: Principal, doc_id: uuid.UUID) -> None:
        owner_id = await self.catalog.get_owner(doc_id)
        if owner_id is None:
            raise NotFound("Not found", reason=f"document {doc_id} does not exist")
        if not can_share(principal, owner_id):
            logger.info("Principal %s refused share access to document %s", principal.id, doc_id)
            raise Forbidden("Forbidden")

    def _validate_ttl(self, ttl_minutes) -> int:
        if ttl_minutes is None:
            return self.default_ttl_minutes
        if isinstance(ttl_minutes, bool) or not isinstance(ttl_minutes, int):
            raise InvalidRequest("ttl_minutes must be an integer")
        if ttl_minutes < 1 or ttl_minutes > self.max_ttl_minutes:
            raise InvalidRequest(f"ttl_minutes must be between 1 and {self.max_ttl_minutes}")
        return ttl_minutes
