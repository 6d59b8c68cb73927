"""
Storage backend factory.
"""

from __future__ import annotations

import logging
from pathlib import Path

from core.config import Settings, settings as default_settings
from services.storage.base import StorageBackend
from services.storage.local_backend import LocalBackend
from services.storage.postgresql_backend import PostgreSQLBackend

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "local"
BACKEND_ALIASES = {
    "local": "local",
    "postgresql": "postgresql",
    "postgres": "postgresql",
}


def resolve_backend_kind(backend_type: str | None, settings: Settings) -> str:
    """
    Resolve the backend kind from the argument, then settings.STORE_BACKEND.

    Unset or unrecognized kinds fall back to the embedded local backend.
    """
    requested = backend_type or settings.STORE_BACKEND
    if not requested:
        logger.info("No storage backend configured, using %s", DEFAULT_BACKEND)
        return DEFAULT_BACKEND

    kind = BACKEND_ALIASES.get(requested.strip().lower())
    if kind is None:
        logger.warning(
            "Unknown storage backend: %s. Supported backends: %s. Falling back to %s",
            requested,
            ", ".join(sorted(BACKEND_ALIASES)),
            DEFAULT_BACKEND,
        )
        return DEFAULT_BACKEND
    return kind


def create_storage_backend(
    backend_type: str | None = None, settings: Settings | None = None
) -> StorageBackend:
    """
    Storage backend 생성 팩토리.

    Args:
        backend_type: Storage backend 타입
            - "local": embedded document store (default)
            - "postgresql" / "postgres": PostgreSQL via SQLAlchemy
            - None: Use settings.STORE_BACKEND

    Returns:
        StorageBackend instance (not yet initialized)
    """
    settings = settings or default_settings
    backend = resolve_backend_kind(backend_type, settings)

    if backend == "postgresql":
        logger.info("Creating PostgreSQL storage backend")
        return PostgreSQLBackend(settings)

    logger.info("Creating local storage backend")
    working_dir = Path(settings.LOCAL_STORE_DIR) if settings.LOCAL_STORE_DIR else None
    return LocalBackend(working_dir)
