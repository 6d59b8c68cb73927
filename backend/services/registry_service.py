"""
Registry service: the single entry point for module, provider and
publisher persistence.

Every operation validates its input, dispatches to the bound storage backend
and normalizes the result. Backend errors propagate unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from core.config import Settings, settings as default_settings
from core.exceptions import ConfigurationError, ErrorCode
from models.pagination import PaginationMeta
from services import normalizers, validators
from services.storage.base import Filter, Record, StorageBackend
from services.storage.factory import create_storage_backend

logger = logging.getLogger(__name__)


class RegistryService:
    """Facade over exactly one storage backend.

    The backend is either passed in or bound by ``initialize()``, which
    resolves the kind from its argument or ``STORE_BACKEND``. Calling
    ``initialize()`` again finalizes the old backend and binds a new one;
    do not rebind while other calls are in flight.
    """

    def __init__(
        self,
        backend: StorageBackend | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self._backend = backend

    async def initialize(self, kind: str | None = None) -> StorageBackend:
        """Create, initialize and bind a storage backend."""
        backend = create_storage_backend(kind, self.settings)
        await backend.initialize()

        previous, self._backend = self._backend, backend
        if previous is not None and previous is not backend:
            await previous.finalize()

        logger.info("Registry bound to %s storage backend", backend.store_type)
        return backend

    async def close(self) -> None:
        if self._backend is not None:
            await self._backend.finalize()
            self._backend = None

    @property
    def backend(self) -> StorageBackend:
        if self._backend is None:
            raise ConfigurationError(
                "Storage backend not initialized; call initialize() first",
                error_code=ErrorCode.STORE_NOT_INITIALIZED,
            )
        return self._backend

    @property
    def store_type(self) -> str:
        return self.backend.store_type

    @property
    def module_db(self) -> Any:
        return self.backend.module_db

    @property
    def provider_db(self) -> Any:
        return self.backend.provider_db

    @property
    def publisher_db(self) -> Any:
        return self.backend.publisher_db

    async def _find_window(
        self,
        options: Filter,
        offset: Any,
        limit: Any,
        count: Callable[[Filter], Awaitable[int]],
        fetch: Callable[[Filter, PaginationMeta, int, int], Awaitable[list[Record]]],
        key: str,
    ) -> dict[str, Any]:
        offset, limit = validators.validate_paging(offset, limit)
        logger.debug("search store with %s", options)

        total_rows = await count(options)
        meta = PaginationMeta.calculate(offset, limit, total_rows)
        records = await fetch(options, meta, offset, limit)
        return normalizers.listing(meta, key, records)

    def _limit(self, limit: Any) -> Any:
        return self.settings.DEFAULT_PAGE_LIMIT if limit is None else limit

    # ==================== modules ====================

    async def save_module(self, data: Mapping[str, Any]) -> Record:
        validators.require(data, validators.MODULE_FIELDS)
        definition = validators.validate_definition(data.get("definition"))

        module = normalizers.build_module_record(data, definition)
        saved = await self.backend.save_module(module)
        logger.debug("saved the module into store: %s", module)
        return saved

    async def find_all_modules(
        self,
        selector: Mapping[str, Any] | None = None,
        namespace: str = "",
        provider: str = "",
        offset: Any = 0,
        limit: Any = None,
    ) -> dict[str, Any]:
        options = dict(selector or {})
        if namespace:
            options["namespace"] = namespace
        if provider:
            options["provider"] = provider

        backend = self.backend
        return await self._find_window(
            options,
            offset,
            self._limit(limit),
            backend.count_modules,
            backend.find_all_modules,
            "modules",
        )

    async def get_module_versions(
        self, namespace: str | None = None, name: str | None = None, provider: str | None = None
    ) -> list[Record]:
        options = {"namespace": namespace, "name": name, "provider": provider}
        validators.require(options, validators.MODULE_LOOKUP_FIELDS)

        logger.debug("search versions in store with %s", options)
        docs = await self.backend.get_module_versions(options)
        return normalizers.module_versions(docs)

    async def get_module_latest_version(
        self, namespace: str | None = None, name: str | None = None, provider: str | None = None
    ) -> Record | None:
        options = {"namespace": namespace, "name": name, "provider": provider}
        validators.require(options, validators.MODULE_LOOKUP_FIELDS)

        return await self.backend.get_module_latest_version(options)

    async def find_one_module(
        self,
        namespace: str | None = None,
        name: str | None = None,
        provider: str | None = None,
        version: str | None = None,
    ) -> Record | None:
        options = {"namespace": namespace, "name": name, "provider": provider, "version": version}
        validators.require(options, validators.MODULE_FIELDS)

        logger.debug("search a module in store with %s", options)
        return await self.backend.find_one_module(options)

    async def increase_module_download(
        self,
        namespace: str | None = None,
        name: str | None = None,
        provider: str | None = None,
        version: str | None = None,
    ) -> Record | None:
        options = {"namespace": namespace, "name": name, "provider": provider, "version": version}
        validators.require(options, validators.MODULE_FIELDS)

        return await self.backend.increase_module_download(options)

    # ==================== providers ====================

    async def save_provider(self, data: Mapping[str, Any]) -> Record:
        validators.require(data, validators.PROVIDER_FIELDS)
        platforms = validators.validate_platforms(data.get("platforms"))

        provider = normalizers.build_provider_record(data, platforms)
        saved = await self.backend.save_provider(provider)
        logger.debug("saved the provider into store: %s", provider)
        return saved

    async def find_all_providers(
        self,
        selector: Mapping[str, Any] | None = None,
        namespace: str = "",
        type: str = "",
        offset: Any = 0,
        limit: Any = None,
    ) -> dict[str, Any]:
        options = dict(selector or {})
        if namespace:
            options["namespace"] = namespace
        if type:
            options["type"] = type

        backend = self.backend
        return await self._find_window(
            options,
            offset,
            self._limit(limit),
            backend.count_providers,
            backend.find_all_providers,
            "providers",
        )

    async def get_provider_versions(
        self, namespace: str | None = None, type: str | None = None
    ) -> Record:
        options = {"namespace": namespace, "type": type}
        validators.require(options, validators.PROVIDER_LOOKUP_FIELDS)

        logger.debug("search versions in store with %s", options)
        docs = await self.backend.get_provider_versions(options)
        result = normalizers.provider_versions(docs)
        logger.debug("search provider versions result from store: %s", result)
        return result

    async def find_provider_package(
        self,
        namespace: str | None = None,
        type: str | None = None,
        version: str | None = None,
        os: str | None = None,
        arch: str | None = None,
    ) -> Record | None:
        validators.require(
            {"namespace": namespace, "type": type, "version": version, "os": os, "arch": arch},
            validators.PROVIDER_PACKAGE_FIELDS,
        )

        options = {
            "namespace": namespace,
            "type": type,
            "version": version,
            "platforms.os": os,
            "platforms.arch": arch,
        }
        logger.debug("search a provider store with %s", options)
        return await self.backend.find_provider_package(options)

    # ==================== publishers ====================

    async def save_publisher(self, data: Mapping[str, Any]) -> Record:
        validators.require(data, ["name"])
        gpg_keys = validators.validate_gpg_keys(data.get("gpgKeys"))

        publisher = normalizers.build_publisher_record(data, gpg_keys)
        return await self.backend.save_publisher(publisher)

    async def update_publisher(self, data: Mapping[str, Any]) -> Record | None:
        logger.debug("update a publisher with %s", data)
        return await self.backend.update_publisher(dict(data))

    async def find_all_publishers(
        self,
        selector: Mapping[str, Any] | None = None,
        offset: Any = 0,
        limit: Any = None,
    ) -> dict[str, Any]:
        options = dict(selector or {})

        backend = self.backend
        return await self._find_window(
            options,
            offset,
            self._limit(limit),
            backend.count_publishers,
            backend.find_all_publishers,
            "publishers",
        )

    async def find_one_publisher(self, name: str | None = None) -> Record | None:
        options = {"name": name}
        validators.require(options, ["name"])

        logger.debug("search a publisher in store with %s", options)
        return await self.backend.find_one_publisher(options)
