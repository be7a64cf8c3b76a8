"""Share token generation."""

import secrets

TOKEN_BYTES = 32  # 256 bits


def generate_share_token() -> str:
    """Return a URL-safe token drawn from the OS CSPRNG."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def token_prefix(token: str) -> str:
    """Short, non-secret form of a token for log lines."""
    return token[:8]
