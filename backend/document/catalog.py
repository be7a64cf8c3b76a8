"""Document catalog: ownership and current object-store location of vault documents."""

import uuid
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Document


class DocumentCatalog(Protocol):
    async def get_owner(self, document_id: uuid.UUID) -> uuid.UUID | None: ...

    async def resolve_location(self, document_id: uuid.UUID) -> str | None: ...


class SqlDocumentCatalog:
    """Catalog backed by the ``documents`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_owner(self, document_id: uuid.UUID) -> uuid.UUID | None:
        result = await self.db.execute(select(Document.user_id).where(Document.id == document_id))
        return result.scalar_one_or_none()

    async def resolve_location(self, document_id: uuid.UUID) -> str | None:
        result = await self.db.execute(select(Document.file_url).where(Document.id == document_id))
        return result.scalar_one_or_none()
