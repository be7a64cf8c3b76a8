"""Authorization gate for share-link management."""

import uuid

from auth.directory import Principal


def can_share(principal: Principal, owner_id: uuid.UUID | None) -> bool:
    """Whether ``principal`` may create, list or revoke links for a document.

    Admins may share anything. Everyone else must own the document; a
    missing document (``owner_id is None``) is simply a no.
    """
    if principal.is_admin:
        return True
    return owner_id is not None and owner_id == principal.id
