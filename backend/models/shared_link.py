"""Time-limited share links pointing at vault documents."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, as_utc, utcnow


class SharedLink(Base):
    """A capability to fetch one document until ``expires_at``.

    ``document_id`` is deliberately not a foreign key: the link never owns
    the document, and redemption re-resolves it every time.
    """
    __tablename__ = "shared_links"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    document_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    redeemed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def is_expired(self, now: datetime) -> bool:
        """Valid through ``expires_at`` inclusive; expired strictly after it."""
        return as_utc(now) > as_utc(self.expires_at)

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None
