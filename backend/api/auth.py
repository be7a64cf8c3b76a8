"""Vault account endpoints: sign-up, sign-in, token rotation, whoami.

Every account starts with the ``user`` role; only an admin can promote
it (see ``api/admin.py``).
"""

import uuid
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from auth.directory import AccountDirectory, Principal, get_current_principal
from auth.jwt import create_access_token, create_refresh_token, decode_token
from models import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class Credentials(BaseModel):
    email: EmailStr
    password: str


class SignUpRequest(Credentials):
    # bcrypt ignores bytes past 72
    password: str = Field(..., min_length=6, max_length=72)
    full_name: Optional[str] = Field(None, max_length=200)


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class AccountOut(BaseModel):
    id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    role: str


def _issue_tokens(user_id: uuid.UUID) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id),
        refresh_token=create_refresh_token(user_id),
    )


@router.post("/register", response_model=TokenPair, status_code=status.HTTP_201_CREATED)
async def register(body: SignUpRequest, db: AsyncSession = Depends(get_db)):
    try:
        user = await AccountDirectory(db).register(body.email, body.password, body.full_name)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    logger.info("Registered user %s", user.id)
    return _issue_tokens(user.id)


@router.post("/login", response_model=TokenPair)
async def login(body: Credentials, db: AsyncSession = Depends(get_db)):
    user = await AccountDirectory(db).authenticate(body.email, body.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _issue_tokens(user.id)


@router.post("/refresh", response_model=TokenPair)
async def refresh(body: RefreshRequest):
    """Rotate both tokens. Only a refresh token is accepted here."""
    return _issue_tokens(decode_token(body.refresh_token, expected_type="refresh"))


@router.get("/me", response_model=AccountOut)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    user = await AccountDirectory(db).get_user(principal.id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return AccountOut(id=user.id, email=user.email, full_name=user.full_name, role=user.role.value)


class ProfileUpdate(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, max_length=200)


@router.patch("/me", response_model=AccountOut)
async def update_me(
    body: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Update the caller's email or display name; an empty name clears it."""
    directory = AccountDirectory(db)
    user = await directory.get_user(principal.id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    try:
        user = await directory.update_profile(user, email=body.email, full_name=body.full_name)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return AccountOut(id=user.id, email=user.email, full_name=user.full_name, role=user.role.value)
