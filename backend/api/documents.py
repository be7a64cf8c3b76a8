"""Vault document endpoints — list, register, delete, summary stats.

File bytes live in the object store; this API records metadata and the
object's access URL.
"""

import uuid
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from auth.directory import Principal, get_current_principal
from models import Category, Document, DocumentStatus, User, as_utc, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])

EXPIRING_SOON_DAYS = 30


class DocumentOut(BaseModel):
    id: str
    user_id: str
    file_name: str
    file_url: str
    document_type: str | None
    tags: list[str] | None
    expiry_date: date | None
    category_id: int | None
    status: str
    created_at: datetime
    expiring_soon: bool
    owner_email: str | None = None
    owner_name: str | None = None


class DocumentListResponse(BaseModel):
    data: list[DocumentOut]


class CreateDocumentRequest(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1)
    document_type: str | None = Field(None, max_length=100)
    tags: list[str] | None = None
    expiry_date: date | None = None
    category_id: int | None = None


class DeleteDocumentRequest(BaseModel):
    # Parsed in the handler so a malformed id is a 400, not a validation error.
    document_id: Any = None


class CategoryOut(BaseModel):
    id: int
    name: str


class DocumentStats(BaseModel):
    total: int
    approved: int
    pending: int
    rejected: int
    expiring_soon: int


def is_expiring_soon(expiry_date: date | None, today: date | None = None) -> bool:
    """True when the document expires within EXPIRING_SOON_DAYS (or already has)."""
    if expiry_date is None:
        return False
    today = today or datetime.now(timezone.utc).date()
    return expiry_date <= today + timedelta(days=EXPIRING_SOON_DAYS)


def _document_out(doc: Document, owner: User | None = None) -> DocumentOut:
    return DocumentOut(
        id=str(doc.id),
        user_id=str(doc.user_id),
        file_name=doc.file_name,
        file_url=doc.file_url,
        document_type=doc.document_type,
        tags=doc.tags,
        expiry_date=doc.expiry_date,
        category_id=doc.category_id,
        status=doc.status.value,
        created_at=as_utc(doc.created_at),
        expiring_soon=is_expiring_soon(doc.expiry_date),
        owner_email=owner.email if owner else None,
        owner_name=owner.full_name if owner else None,
    )


async def _visible_documents(db: AsyncSession, principal: Principal) -> list[tuple[Document, User]]:
    """Documents the principal may see: their own, or everything for admins."""
    query = (
        select(Document, User)
        .join(User, User.id == Document.user_id)
        .order_by(Document.created_at.desc())
    )
    if not principal.is_admin:
        query = query.where(Document.user_id == principal.id)
    result = await db.execute(query)
    return [(row[0], row[1]) for row in result.all()]


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    tag: str | None = None,
    document_type: str | None = None,
    category_id: int | None = None,
    status_filter: DocumentStatus | None = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List documents, newest first. Admins see every user's documents."""
    rows = await _visible_documents(db, principal)

    # Tags are a JSON list; match in Python so the filter behaves the same on every backend.
    items = []
    for doc, owner in rows:
        if tag and tag not in (doc.tags or []):
            continue
        if document_type and doc.document_type != document_type:
            continue
        if category_id is not None and doc.category_id != category_id:
            continue
        if status_filter is not None and doc.status != status_filter:
            continue
        items.append(_document_out(doc, owner))
    return DocumentListResponse(data=items)


@router.get("/stats", response_model=DocumentStats)
async def document_stats(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Counts by status plus how many documents expire within 30 days."""
    docs = [doc for doc, _owner in await _visible_documents(db, principal)]
    return DocumentStats(
        total=len(docs),
        approved=sum(1 for d in docs if d.status == DocumentStatus.APPROVED),
        pending=sum(1 for d in docs if d.status == DocumentStatus.PENDING),
        rejected=sum(1 for d in docs if d.status == DocumentStatus.REJECTED),
        expiring_soon=sum(1 for d in docs if is_expiring_soon(d.expiry_date)),
    )


@router.get("/categories", response_model=list[CategoryOut])
async def list_categories(
    _principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Category).order_by(Category.name))
    return [CategoryOut(id=c.id, name=c.name) for c in result.scalars().all()]


@router.post("", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
async def create_document(
    body: CreateDocumentRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Record an uploaded file. New documents start as Pending review."""
    if body.category_id is not None and await db.get(Category, body.category_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown category_id")

    doc = Document(
        user_id=principal.id,
        file_name=body.file_name,
        file_url=body.file_url,
        document_type=body.document_type,
        tags=body.tags,
        expiry_date=body.expiry_date,
        category_id=body.category_id,
        status=DocumentStatus.PENDING,
    )
    db.add(doc)
    await db.commit()
    await db.refresh(doc)
    logger.info("Document %s registered by %s", doc.id, principal.id)
    return _document_out(doc)


@router.delete("")
async def delete_document(
    body: DeleteDocumentRequest | None = None,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Delete a document. Owners may delete their own; admins may delete any.

    Share links pointing at it stay in place and redeem as not found.
    """
    raw_id = body.document_id if body else None
    if raw_id is None or raw_id == "":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Document ID is required")
    try:
        doc_id = uuid.UUID(raw_id) if isinstance(raw_id, str) else None
    except ValueError:
        doc_id = None
    if doc_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid document ID")

    doc = await db.get(Document, doc_id)
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    if doc.user_id != principal.id and not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: You can only delete your own documents",
        )

    await db.execute(delete(Document).where(Document.id == doc_id))
    await db.commit()
    logger.info("Document %s deleted by %s", doc_id, principal.id)
    return {"message": "Document deleted successfully"}
