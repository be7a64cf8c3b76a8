"""
Application configuration with Docker secrets support.

Secrets are read using the _read_secret() pattern:
  1. Direct env var (e.g., APP_SECRET_KEY)
  2. File-based env var (e.g., APP_SECRET_KEY_FILE → reads file path)
  3. Raises ValueError if neither is set
"""

import os
import logging

logger = logging.getLogger(__name__)

REDEMPTION_POLICIES = ("multi_use", "single_use")


def _read_secret(env_var: str, file_env_var: str | None = None) -> str:
    """Read a secret from env var or Docker secrets file.

    Args:
        env_var: Direct environment variable name (e.g., APP_SECRET_KEY)
        file_env_var: File path env var name (e.g., APP_SECRET_KEY_FILE).
                      If None, defaults to env_var + '_FILE'.

    Returns:
        The secret value.

    Raises:
        ValueError: If neither source provides a value.
    """
    if file_env_var is None:
        file_env_var = f"{env_var}_FILE"

    # Priority 1: Direct env var
    value = os.environ.get(env_var)
    if value:
        return value

    # Priority 2: File-based (Docker secrets pattern)
    file_path = os.environ.get(file_env_var)
    if file_path:
        try:
            with open(file_path, "r") as f:
                value = f.read().strip()
            if value:
                return value
        except FileNotFoundError:
            logger.error(f"Secret file not found: {file_path} (from {file_env_var})")
        except PermissionError:
            logger.error(f"Permission denied reading: {file_path} (from {file_env_var})")

    raise ValueError(
        f"Secret not configured. Set {env_var} env var or {file_env_var} pointing to a file."
    )


def _read_int(env_var: str, default: int, minimum: int = 0) -> int:
    """Read a non-negative integer setting, failing loudly on garbage."""
    raw = os.environ.get(env_var)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{env_var} must be an integer, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{env_var} must be >= {minimum}, got {value}")
    return value


class Settings:
    """Application settings loaded from environment and Docker secrets."""

    def __init__(self):
        # Database
        self.database_url = self._build_database_url()

        # Secrets (loaded lazily on first access via properties)
        self._app_secret_key: str | None = None

        # Public config
        self.public_base_url = os.environ.get("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
        self.cors_origins = [
            origin.strip()
            for origin in os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]

        # Share links
        self.share_default_ttl_minutes = _read_int("SHARE_DEFAULT_TTL_MINUTES", 60, minimum=1)
        self.share_max_ttl_minutes = _read_int("SHARE_MAX_TTL_MINUTES", 30 * 24 * 60, minimum=1)
        self.share_token_max_attempts = _read_int("SHARE_TOKEN_MAX_ATTEMPTS", 3, minimum=1)
        self.share_redemption_policy = os.environ.get("SHARE_REDEMPTION_POLICY", "multi_use").strip().lower()
        if self.share_redemption_policy not in REDEMPTION_POLICIES:
            raise ValueError(
                f"SHARE_REDEMPTION_POLICY must be one of {', '.join(REDEMPTION_POLICIES)}, "
                f"got {self.share_redemption_policy!r}"
            )
        if self.share_default_ttl_minutes > self.share_max_ttl_minutes:
            raise ValueError("SHARE_DEFAULT_TTL_MINUTES cannot exceed SHARE_MAX_TTL_MINUTES")

        # Housekeeping
        self.share_sweep_interval_seconds = _read_int("SHARE_SWEEP_INTERVAL_SECONDS", 3600)
        self.share_sweep_grace_hours = _read_int("SHARE_SWEEP_GRACE_HOURS", 24)

    def _build_database_url(self) -> str:
        """Build async database URL with password from secrets."""
        base_url = os.environ.get(
            "DATABASE_URL", "postgresql+asyncpg://docvault@postgres:5432/docvault"
        )
        try:
            password = _read_secret("POSTGRES_PASSWORD")
            # Insert password into URL: postgresql+asyncpg://user@host → user:pass@host
            if "://" in base_url and "@" in base_url:
                scheme_user, rest = base_url.split("@", 1)
                if ":" not in scheme_user.split("://")[1]:
                    # No password in URL yet, add it
                    base_url = f"{scheme_user}:{password}@{rest}"
        except ValueError:
            logger.warning("POSTGRES_PASSWORD not set, using DATABASE_URL as-is")
        return base_url

    @property
    def app_secret_key(self) -> str:
        if self._app_secret_key is None:
            self._app_secret_key = _read_secret("APP_SECRET_KEY")
        return self._app_secret_key


settings = Settings()
