"""
Services module for the module registry store
"""

from services.registry_service import RegistryService
from services.storage import StorageBackend, create_storage_backend

__all__ = [
    "RegistryService",
    "StorageBackend",
    "create_storage_backend",
]
