"""
Storage backend abstraction layer.

Supports multiple storage backends:
- Local (default): embedded document store, in-memory or JSON files
- PostgreSQL: SQLAlchemy async engine + JSONB columns
"""

from services.storage.base import StorageBackend
from services.storage.factory import create_storage_backend

__all__ = ["StorageBackend", "create_storage_backend"]
