"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded secrets)
- Settings are immutable dataclasses for safety and clarity
- Single source of truth for all configurable values

EXTENSIBILITY:
- To add a storage backend: add its path setting to StorageSettings
- To serve another storefront: change HUB_ALLOWED_ORIGIN
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file if present (development convenience)
load_dotenv()

STORAGE_BACKENDS = ("memory", "sqlite", "spreadsheet")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "")
    return int(value) if value.strip().isdigit() else default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, ""))
    except ValueError:
        return default


@dataclass(frozen=True)
class ServerSettings:
    """Web server settings."""

    host: str = field(default_factory=lambda: os.getenv("HUB_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _env_int("HUB_PORT", 8000))
    log_level: str = field(default_factory=lambda: os.getenv("HUB_LOG_LEVEL", "info").lower())
    reload: bool = field(default_factory=lambda: os.getenv("HUB_RELOAD", "") == "1")


@dataclass(frozen=True)
class StorageSettings:
    """Which backend holds the ledgers, and where."""

    backend: str = field(default_factory=lambda: os.getenv("HUB_STORAGE", "sqlite").lower())
    db_path: Path = field(
        default_factory=lambda: Path(os.getenv("HUB_DB_PATH", "thehub.db"))
    )
    workbook_path: Path = field(
        default_factory=lambda: Path(os.getenv("HUB_WORKBOOK_PATH", "thehub.xlsx"))
    )


@dataclass(frozen=True)
class CorsSettings:
    """Cross-origin settings. Exactly one origin is allowed."""

    allowed_origin: str = field(
        default_factory=lambda: os.getenv("HUB_ALLOWED_ORIGIN", "https://the-hubja.netlify.app")
    )
    allowed_methods: tuple = ("GET", "POST", "OPTIONS")
    allowed_headers: tuple = ("Content-Type",)
    max_age: int = 3600


@dataclass(frozen=True)
class ClientSettings:
    """HTTP client settings."""

    api_url: str = field(
        default_factory=lambda: os.getenv("HUB_API_URL", "http://127.0.0.1:8000/exec")
    )

    # Callers must apply a timeout; a timeout is retryable but never retried automatically
    timeout_seconds: float = field(default_factory=lambda: _env_float("HUB_REQUEST_TIMEOUT", 15.0))


@dataclass(frozen=True)
class IdentitySettings:
    """Local device identity storage."""

    db_path: Path = field(
        default_factory=lambda: Path(os.getenv("HUB_IDENTITY_DB", "identity.db"))
    )


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from thehub.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.storage.backend)
    """

    # Sub-settings groups
    server: ServerSettings = field(default_factory=ServerSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    cors: CorsSettings = field(default_factory=CorsSettings)
    client: ClientSettings = field(default_factory=ClientSettings)
    identity: IdentitySettings = field(default_factory=IdentitySettings)

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings/errors.
        Returns empty list if all settings are valid.
        """
        issues = []

        if self.storage.backend not in STORAGE_BACKENDS:
            issues.append(
                f"ERROR: HUB_STORAGE={self.storage.backend!r} is not one of "
                f"{', '.join(STORAGE_BACKENDS)}."
            )

        if self.storage.backend == "memory":
            issues.append(
                "WARNING: HUB_STORAGE=memory. Votes and reviews are lost on restart."
            )

        if not self.cors.allowed_origin.startswith(("http://", "https://")):
            issues.append(
                f"WARNING: HUB_ALLOWED_ORIGIN looks invalid: {self.cors.allowed_origin}"
            )

        if self.client.timeout_seconds <= 0:
            issues.append("WARNING: HUB_REQUEST_TIMEOUT must be positive.")

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
