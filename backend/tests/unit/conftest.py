"""In-memory collaborators for exercising the sharing core without a database."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from auth.directory import Principal
from models import Role, SharedLink
from sharing.store import TokenCollision


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeCatalog:
    def __init__(self):
        self.documents: dict[uuid.UUID, tuple[uuid.UUID, str]] = {}

    def add(self, owner_id: uuid.UUID, location: str = "https://objects.example.com/doc") -> uuid.UUID:
        doc_id = uuid.uuid4()
        self.documents[doc_id] = (owner_id, location)
        return doc_id

    def remove(self, doc_id: uuid.UUID) -> None:
        self.documents.pop(doc_id, None)

    async def get_owner(self, document_id):
        entry = self.documents.get(document_id)
        return entry[0] if entry else None

    async def resolve_location(self, document_id):
        entry = self.documents.get(document_id)
        return entry[1] if entry else None


class FakeLinkStore:
    """Dict-backed store that enforces token uniqueness like the real table."""

    def __init__(self):
        self.links: dict[str, SharedLink] = {}
        self.insert_calls = 0

    async def insert(self, link: SharedLink) -> SharedLink:
        self.insert_calls += 1
        if link.token in self.links:
            raise TokenCollision(link.token)
        self.links[link.token] = link
        return link

    async def find_by_token(self, token):
        return self.links.get(token)

    async def list_for_document(self, document_id):
        found = [l for l in self.links.values() if l.document_id == document_id]
        return sorted(found, key=lambda l: l.created_at, reverse=True)

    async def revoke(self, link, at):
        if link.revoked_at is None:
            link.revoked_at = at
        return link

    async def claim_redemption(self, token, at):
        link = self.links.get(token)
        if link is None or link.redeemed_at is not None:
            return False
        link.redeemed_at = at
        return True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def links() -> FakeLinkStore:
    return FakeLinkStore()


@pytest.fixture
def owner() -> Principal:
    return Principal(id=uuid.uuid4(), role=Role.USER)


@pytest.fixture
def stranger() -> Principal:
    return Principal(id=uuid.uuid4(), role=Role.USER)


@pytest.fixture
def admin() -> Principal:
    return Principal(id=uuid.uuid4(), role=Role.ADMIN)
