"""Persistence for share links.

Token uniqueness is enforced by the ``shared_links.token`` unique constraint;
a violation on insert surfaces as ``TokenCollision`` so the caller can retry
with a fresh token.
"""

import uuid
from datetime import datetime
from typing import Protocol

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models import SharedLink


class TokenCollision(Exception):
    """The generated token is already taken."""


class LinkStore(Protocol):
    async def insert(self, link: SharedLink) -> SharedLink: ...

    async def find_by_token(self, token: str) -> SharedLink | None: ...

    async def list_for_document(self, document_id: uuid.UUID) -> list[SharedLink]: ...

    async def revoke(self, link: SharedLink, at: datetime) -> SharedLink: ...

    async def claim_redemption(self, token: str, at: datetime) -> bool: ...


class SqlLinkStore:
    """Link store over an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(self, link: SharedLink) -> SharedLink:
        self.db.add(link)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            # Only the unique token index makes this a retryable collision.
            if await self.find_by_token(link.token) is not None:
                raise TokenCollision(link.token)
            raise
        await self.db.refresh(link)
        return link

    async def find_by_token(self, token: str) -> SharedLink | None:
        result = await self.db.execute(select(SharedLink).where(SharedLink.token == token))
        return result.scalar_one_or_none()

    async def list_for_document(self, document_id: uuid.UUID) -> list[SharedLink]:
        result = await self.db.execute(
            select(SharedLink)
            .where(SharedLink.document_id == document_id)
            .order_by(SharedLink.created_at.desc())
        )
        return list(result.scalars().all())

    async def revoke(self, link: SharedLink, at: datetime) -> SharedLink:
        if link.revoked_at is None:
            link.revoked_at = at
            await self.db.commit()
            await self.db.refresh(link)
        return link

    async def claim_redemption(self, token: str, at: datetime) -> bool:
        """Mark the link consumed. Only the first caller gets True."""
        result = await self.db.execute(
            update(SharedLink)
            .where(SharedLink.token == token, SharedLink.redeemed_at.is_(None))
            .values(redeemed_at=at)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def delete_expired(self, before: datetime) -> int:
        """Delete links that expired or were revoked before ``before``."""
        result = await self.db.execute(
            delete(SharedLink).where(
                or_(SharedLink.expires_at < before, SharedLink.revoked_at < before)
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0
