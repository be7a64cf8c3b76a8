"""Account directory: who is calling, and what role they hold."""

import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.hash import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth.jwt import decode_token
from models import Role, User, get_db

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """An authenticated caller."""

    id: uuid.UUID
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class AccountDirectory:
    """Account and role lookups backed by the ``users`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: uuid.UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def authenticate(self, email: str, password: str) -> User | None:
        """Return the user when the password matches, else None."""
        user = await self.find_by_email(email)
        if user is None or not bcrypt.verify(password, user.hashed_password):
            return None
        return user

    async def register(self, email: str, password: str, full_name: str | None = None) -> User:
        """Create a ``user``-role account. Raises ValueError if the email is taken."""
        if await self.find_by_email(email) is not None:
            raise ValueError("Email already registered")
        user = User(email=email.lower(), hashed_password=bcrypt.hash(password), full_name=full_name)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def update_profile(
        self, user: User, *, email: str | None = None, full_name: str | None = None
    ) -> User:
        """Change email and/or display name. Raises ValueError if the email is taken."""
        if email is not None and email.lower() != user.email:
            if await self.find_by_email(email) is not None:
                raise ValueError("Email already registered")
            user.email = email.lower()
        if full_name is not None:
            user.full_name = full_name.strip() or None
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def get_role(self, user_id: uuid.UUID) -> Role | None:
        result = await self.db.execute(select(User.role).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def principal_for(self, user_id: uuid.UUID) -> Principal | None:
        role = await self.get_role(user_id)
        if role is None:
            return None
        return Principal(id=user_id, role=role)


async def get_optional_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal | None:
    """Resolve the bearer token to a principal, or None when no token was sent.

    A token that is present but invalid still raises 401.
    """
    if credentials is None:
        return None
    user_id = decode_token(credentials.credentials, expected_type="access")
    principal = await AccountDirectory(db).principal_for(user_id)
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return principal


async def get_current_principal(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    """FastAPI dependency that requires an authenticated principal."""
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Raise 403 unless the caller holds the admin role."""
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return principal
