"""Shared fixtures for the registry store tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from core.config import Settings
from services.registry_service import RegistryService
from services.storage.base import StorageBackend


@pytest.fixture
def settings() -> Settings:
    """Settings pinned to the in-memory local store."""
    return Settings(STORE_BACKEND=None, LOCAL_STORE_DIR=None, DATABASE_URL="")


@pytest_asyncio.fixture
async def registry(settings: Settings) -> AsyncIterator[RegistryService]:
    """Registry bound to a fresh in-memory local backend."""
    service = RegistryService(settings=settings)
    await service.initialize("local")
    yield service
    await service.close()


@pytest.fixture
def mock_backend() -> AsyncMock:
    """Backend double recording every call made to it."""
    backend = AsyncMock(spec=StorageBackend)
    backend.store_type = "mock"
    return backend


@pytest.fixture
def mocked_registry(mock_backend: AsyncMock, settings: Settings) -> RegistryService:
    return RegistryService(backend=mock_backend, settings=settings)
