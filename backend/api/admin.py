"""Admin API — document review and role management, restricted to admins."""

import uuid
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth.directory import Principal, require_admin
from models import Document, DocumentStatus, Role, User, as_utc, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

REVIEW_OUTCOMES = {DocumentStatus.APPROVED, DocumentStatus.REJECTED}


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

# Fields stay untyped so any malformed payload answers 400 "Invalid payload".
class ApproveRequest(BaseModel):
    id: Any = None
    status: Any = None


class RoleRequest(BaseModel):
    user_id: Any = None
    role: Any = None


def _uuid_or_none(value: Any) -> uuid.UUID | None:
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


def _enum_or_none(enum_cls, value: Any):
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


class UserOut(BaseModel):
    id: str
    email: str
    full_name: str | None
    role: str
    created_at: str


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/approve")
async def review_document(
    body: ApproveRequest | None = None,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a pending document."""
    body = body or ApproveRequest()
    doc_id = _uuid_or_none(body.id)
    outcome = _enum_or_none(DocumentStatus, body.status)
    if doc_id is None or outcome not in REVIEW_OUTCOMES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    doc = await db.get(Document, doc_id)
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")

    doc.status = outcome
    await db.commit()
    logger.info("Document %s marked %s by admin %s", doc_id, outcome.value, admin.id)
    return {"ok": True}


@router.get("/users", response_model=list[UserOut])
async def list_users(
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return [
        UserOut(
            id=str(u.id),
            email=u.email,
            full_name=u.full_name,
            role=u.role.value,
            created_at=as_utc(u.created_at).isoformat(),
        )
        for u in result.scalars().all()
    ]


@router.post("/role")
async def set_role(
    body: RoleRequest | None = None,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Promote a user to admin or demote them back to user."""
    body = body or RoleRequest()
    user_id = _uuid_or_none(body.user_id)
    role = _enum_or_none(Role, body.role)
    if user_id is None or role is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.role = role
    await db.commit()
    logger.info("User %s role set to %s by admin %s", user_id, role.value, admin.id)
    return {"ok": True}
