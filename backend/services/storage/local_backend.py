"""
Local storage backend: embedded document store kept in memory,
optionally mirrored to JSON files.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from core.exceptions import DatabaseError, ErrorCode
from services.storage.base import Filter, Record, StorageBackend
from services.storage.versioning import latest_version

if TYPE_CHECKING:
    from models.pagination import PaginationMeta

logger = logging.getLogger(__name__)

MODULE_KEY = ("namespace", "name", "provider", "version")
PROVIDER_KEY = ("namespace", "type", "version")
PUBLISHER_KEY = ("name",)


def matches(document: Record, filter: Filter) -> bool:
    """
    Check a document against an equality filter.

    Dotted keys address nested fields. When the parent field is a list, one
    element must satisfy every dotted key sharing that parent.
    """
    nested: dict[str, Filter] = {}
    for key, expected in filter.items():
        if "." in key:
            head, _, rest = key.partition(".")
            nested.setdefault(head, {})[rest] = expected
        elif document.get(key) != expected:
            return False

    for head, sub_filter in nested.items():
        value = document.get(head)
        if isinstance(value, list):
            if not any(isinstance(item, dict) and matches(item, sub_filter) for item in value):
                return False
        elif not isinstance(value, dict) or not matches(value, sub_filter):
            return False
    return True


class LocalCollection:
    """A list of documents guarded by an asyncio lock."""

    def __init__(self, name: str, path: Path | None = None) -> None:
        self.name = name
        self.path = path
        self.documents: list[Record] = []
        self.lock = asyncio.Lock()

    async def load(self) -> None:
        if self.path is None:
            return

        def _read() -> list[Record]:
            if not self.path.exists():
                return []
            try:
                with self.path.open("r", encoding="utf-8") as fp:
                    return json.load(fp)
            except json.JSONDecodeError:
                logger.warning("Local store file corrupted, starting empty: %s", self.path)
                return []

        self.documents = await asyncio.to_thread(_read)

    async def commit(self, documents: list[Record]) -> None:
        """Write ``documents`` to disk, then make them the collection contents."""
        if self.path is not None:
            await self._write(copy.deepcopy(documents))
        self.documents = documents

    async def _write(self, documents: list[Record]) -> None:
        def _dump() -> None:
            with self.path.open("w", encoding="utf-8") as fp:
                json.dump(documents, fp, ensure_ascii=False, indent=2)

        await asyncio.to_thread(_dump)

    def replace(self, old: Record, new: Record) -> list[Record]:
        """Copy of the documents with ``old`` swapped for ``new``."""
        return [new if doc is old else doc for doc in self.documents]

    def find(self, filter: Filter) -> list[Record]:
        return [doc for doc in self.documents if matches(doc, filter)]

    def find_one(self, filter: Filter) -> Record | None:
        for doc in self.documents:
            if matches(doc, filter):
                return doc
        return None


class LocalBackend(StorageBackend):
    """
    Embedded storage backend (default).

    Each entity family lives in its own LocalCollection. With a working
    directory, collections are loaded on initialize and written back after
    every change as modules.json, providers.json and publishers.json.
    """

    store_type = "local"

    def __init__(self, working_dir: Path | None = None) -> None:
        """
        Local backend 초기화.

        Args:
            working_dir: 로컬 저장소 디렉토리 (None이면 메모리에만 저장)
        """
        self.working_dir = working_dir
        self._modules = LocalCollection("modules", self._path_for("modules"))
        self._providers = LocalCollection("providers", self._path_for("providers"))
        self._publishers = LocalCollection("publishers", self._path_for("publishers"))
        self._initialized = False

    def _path_for(self, name: str) -> Path | None:
        if self.working_dir is None:
            return None
        return Path(self.working_dir) / f"{name}.json"

    @property
    def module_db(self) -> LocalCollection:
        return self._modules

    @property
    def provider_db(self) -> LocalCollection:
        return self._providers

    @property
    def publisher_db(self) -> LocalCollection:
        return self._publishers

    async def initialize(self) -> None:
        """로컬 스토리지 초기화."""
        if self._initialized:
            logger.info("Local backend already initialized")
            return

        if self.working_dir is not None:
            Path(self.working_dir).mkdir(parents=True, exist_ok=True)
            for collection in (self._modules, self._providers, self._publishers):
                await collection.load()

        self._initialized = True
        logger.info("Local backend initialized at %s", self.working_dir or "<memory>")

    async def finalize(self) -> None:
        """로컬 스토리지 정리."""
        self._initialized = False
        logger.info("Local backend finalized")

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    async def _insert(
        self,
        collection: LocalCollection,
        record: Record,
        key_fields: tuple[str, ...],
        operation: str,
    ) -> Record:
        await self._ensure_initialized()
        async with collection.lock:
            key = {field: record.get(field) for field in key_fields}
            if collection.find_one(key) is not None:
                raise DatabaseError(
                    message=f"Duplicate {collection.name} record for {key}",
                    operation=operation,
                    error_code=ErrorCode.DATABASE_CONSTRAINT_VIOLATION,
                )

            document = copy.deepcopy(record)
            document["id"] = uuid.uuid4().hex
            document["createdAt"] = datetime.now(timezone.utc).isoformat()
            await collection.commit([*collection.documents, document])

        logger.debug("Inserted %s record: %s", collection.name, document["id"])
        return copy.deepcopy(document)

    async def _find(self, collection: LocalCollection, filter: Filter) -> list[Record]:
        await self._ensure_initialized()
        async with collection.lock:
            return copy.deepcopy(collection.find(filter))

    async def _find_window(
        self, collection: LocalCollection, filter: Filter, offset: int, limit: int
    ) -> list[Record]:
        docs = await self._find(collection, filter)
        return docs[offset : offset + limit]

    async def _find_one(self, collection: LocalCollection, filter: Filter) -> Record | None:
        await self._ensure_initialized()
        async with collection.lock:
            return copy.deepcopy(collection.find_one(filter))

    # ==================== modules ====================

    async def save_module(self, record: Record) -> Record:
        return await self._insert(
            self._modules, {**record, "downloads": 0}, MODULE_KEY, "save_module"
        )

    async def find_modules(self, filter: Filter) -> list[Record]:
        return await self._find(self._modules, filter)

    async def find_all_modules(
        self, filter: Filter, meta: PaginationMeta, offset: int, limit: int
    ) -> list[Record]:
        return await self._find_window(self._modules, filter, offset, limit)

    async def get_module_versions(self, filter: Filter) -> list[Record]:
        return await self._find(self._modules, filter)

    async def get_module_latest_version(self, filter: Filter) -> Record | None:
        return latest_version(await self._find(self._modules, filter))

    async def find_one_module(self, filter: Filter) -> Record | None:
        return await self._find_one(self._modules, filter)

    async def increase_module_download(self, filter: Filter) -> Record | None:
        await self._ensure_initialized()
        async with self._modules.lock:
            document = self._modules.find_one(filter)
            if document is None:
                return None
            updated = {**document, "downloads": int(document.get("downloads") or 0) + 1}
            await self._modules.commit(self._modules.replace(document, updated))
            return copy.deepcopy(updated)

    # ==================== providers ====================

    async def save_provider(self, record: Record) -> Record:
        return await self._insert(self._providers, record, PROVIDER_KEY, "save_provider")

    async def find_providers(self, filter: Filter) -> list[Record]:
        return await self._find(self._providers, filter)

    async def find_all_providers(
        self, filter: Filter, meta: PaginationMeta, offset: int, limit: int
    ) -> list[Record]:
        return await self._find_window(self._providers, filter, offset, limit)

    async def get_provider_versions(self, filter: Filter) -> list[Record]:
        return await self._find(self._providers, filter)

    async def find_provider_package(self, filter: Filter) -> Record | None:
        return await self._find_one(self._providers, filter)

    # ==================== publishers ====================

    async def save_publisher(self, record: Record) -> Record:
        return await self._insert(self._publishers, record, PUBLISHER_KEY, "save_publisher")

    async def update_publisher(self, partial: Record) -> Record | None:
        await self._ensure_initialized()
        if partial.get("id"):
            key = {"id": partial["id"]}
        else:
            key = {"name": partial.get("name")}

        async with self._publishers.lock:
            document = self._publishers.find_one(key)
            if document is None:
                return None

            new_name = partial.get("name")
            if new_name and new_name != document.get("name"):
                if self._publishers.find_one({"name": new_name}) is not None:
                    raise DatabaseError(
                        message=f"Duplicate publishers record for {{'name': {new_name!r}}}",
                        operation="update_publisher",
                        error_code=ErrorCode.DATABASE_CONSTRAINT_VIOLATION,
                    )

            changes = {k: v for k, v in partial.items() if k not in ("id", "createdAt")}
            updated = {**document, **copy.deepcopy(changes)}
            await self._publishers.commit(self._publishers.replace(document, updated))
            return copy.deepcopy(updated)

    async def find_publishers(self, filter: Filter) -> list[Record]:
        return await self._find(self._publishers, filter)

    async def find_all_publishers(
        self, filter: Filter, meta: PaginationMeta, offset: int, limit: int
    ) -> list[Record]:
        return await self._find_window(self._publishers, filter, offset, limit)

    async def find_one_publisher(self, filter: Filter) -> Record | None:
        return await self._find_one(self._publishers, filter)
