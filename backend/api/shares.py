"""Share-link endpoints.

POST   /api/shares          — Mint a time-limited link for a document (owner or admin)
GET    /api/shares          — List a document's links (owner or admin)
GET    /api/shares/{token}  — Public redemption: 302 to the document, 404 or 410
DELETE /api/shares/{token}  — Revoke a link
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from auth.directory import Principal, get_optional_principal
from config import settings
from document.catalog import SqlDocumentCatalog
from models import SharedLink, as_utc, get_db
from sharing import RedemptionHandler, ShareService
from sharing.store import SqlLinkStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shares", tags=["shares"])


class CreateShareRequest(BaseModel):
    # Left untyped: ShareService validates both so bad input is a 400, after the auth check.
    document_id: Any = None
    ttl_minutes: Any = Field(
        None, validation_alias=AliasChoices("ttl_minutes", "expires_in_minutes")
    )


class ShareLinkOut(BaseModel):
    token: str
    url: str
    document_id: str
    created_at: datetime
    expires_at: datetime
    revoked: bool = False


class ShareLinkListResponse(BaseModel):
    items: list[ShareLinkOut]


def get_share_service(db: AsyncSession = Depends(get_db)) -> ShareService:
    return ShareService(
        SqlDocumentCatalog(db),
        SqlLinkStore(db),
        base_url=settings.public_base_url,
        default_ttl_minutes=settings.share_default_ttl_minutes,
        max_ttl_minutes=settings.share_max_ttl_minutes,
        max_attempts=settings.share_token_max_attempts,
    )


def get_redemption_handler(db: AsyncSession = Depends(get_db)) -> RedemptionHandler:
    return RedemptionHandler(
        SqlDocumentCatalog(db),
        SqlLinkStore(db),
        policy=settings.share_redemption_policy,
    )


def _link_out(link: SharedLink, service: ShareService) -> ShareLinkOut:
    return ShareLinkOut(
        token=link.token,
        url=service.share_url(link.token),
        document_id=str(link.document_id),
        created_at=as_utc(link.created_at),
        expires_at=as_utc(link.expires_at),
        revoked=link.is_revoked,
    )


@router.post("", response_model=ShareLinkOut)
async def create_share(
    body: CreateShareRequest | None = None,
    principal: Principal | None = Depends(get_optional_principal),
    service: ShareService = Depends(get_share_service),
):
    """Create a share link. Each call mints a new token."""
    body = body or CreateShareRequest()
    issued = await service.create_share_link(principal, body.document_id, body.ttl_minutes)
    return _link_out(issued.link, service)


@router.get("", response_model=ShareLinkListResponse)
async def list_shares(
    document_id: str | None = None,
    principal: Principal | None = Depends(get_optional_principal),
    service: ShareService = Depends(get_share_service),
):
    """List every link issued for a document, newest first."""
    links = await service.list_share_links(principal, document_id)
    return ShareLinkListResponse(items=[_link_out(link, service) for link in links])


@router.get("/{token}")
async def redeem_share(
    token: str,
    handler: RedemptionHandler = Depends(get_redemption_handler),
):
    """Redirect to the shared document while the link is valid."""
    location = await handler.redeem(token)
    return RedirectResponse(url=location, status_code=status.HTTP_302_FOUND)


@router.delete("/{token}")
async def revoke_share(
    token: str,
    principal: Principal | None = Depends(get_optional_principal),
    service: ShareService = Depends(get_share_service),
):
    """Revoke a link; it redeems as expired from now on."""
    await service.revoke_share_link(principal, token)
    return {"ok": True}
