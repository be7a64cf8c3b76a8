from .base import Base, as_utc, async_engine, async_session_factory, get_db, utcnow
from .user import Role, User
from .document import Category, Document, DocumentStatus
from .shared_link import SharedLink

__all__ = [
    "Base",
    "as_utc",
    "async_engine",
    "async_session_factory",
    "get_db",
    "utcnow",
    "Role",
    "User",
    "Category",
    "Document",
    "DocumentStatus",
    "SharedLink",
]
